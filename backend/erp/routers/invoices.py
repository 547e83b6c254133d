from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
import logging

from erp.database import get_db
from erp.schemas.invoice import (
    InvoiceCreate,
    InvoiceStatusUpdate,
    PaymentRecord,
    InvoiceResponse,
    InvoiceListResponse,
)
from erp.services.invoice_service import invoice_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get("", response_model=InvoiceListResponse)
def list_invoices(
    status: Optional[str] = Query(None, description="Filter by status"),
    contact_id: Optional[int] = Query(None, description="Filter by contact ID"),
    search: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db)
):
    """List invoices with optional filters"""
    invoices, pagination = invoice_service.list_invoices(
        db, status=status, contact_id=contact_id, search=search,
        from_date=from_date, to_date=to_date, page=page, limit=limit,
    )
    return {"invoices": invoices, "pagination": pagination}


@router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(data: InvoiceCreate, db: Session = Depends(get_db)):
    """Invoice a sales order"""
    return invoice_service.create_from_order(db, data)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    return invoice_service.get(db, invoice_id)


@router.delete("/{invoice_id}", status_code=204)
def delete_invoice(invoice_id: int, db: Session = Depends(get_db)):
    invoice_service.delete(db, invoice_id)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
def update_invoice_status(invoice_id: int, data: InvoiceStatusUpdate, db: Session = Depends(get_db)):
    return invoice_service.update_status(db, invoice_id, data.status)


@router.patch("/{invoice_id}/payment", response_model=InvoiceResponse)
def record_payment(invoice_id: int, data: PaymentRecord, db: Session = Depends(get_db)):
    """Add a payment to the cumulative amount paid"""
    return invoice_service.record_payment(db, invoice_id, data)
