from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
import logging

from erp.database import get_db
from erp.schemas.quotation import (
    QuotationCreate,
    QuotationUpdate,
    QuotationStatusUpdate,
    QuotationResponse,
    QuotationListResponse,
)
from erp.schemas.sales_order import ConvertToOrderRequest, ConversionResponse
from erp.services.quotation_service import quotation_service
from erp.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quotations", tags=["quotations"])


@router.get("", response_model=QuotationListResponse)
def list_quotations(
    status: Optional[str] = Query(None, description="Filter by status"),
    contact_id: Optional[int] = Query(None, description="Filter by contact ID"),
    search: Optional[str] = Query(None, description="Number, notes or contact name"),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db)
):
    """List quotations; sent quotations past their expiration date are expired first"""
    quotations, pagination = quotation_service.list_quotations(
        db, status=status, contact_id=contact_id, search=search,
        from_date=from_date, to_date=to_date, page=page, limit=limit,
    )
    return {"quotations": quotations, "pagination": pagination}


@router.post("", response_model=QuotationResponse, status_code=201)
def create_quotation(data: QuotationCreate, db: Session = Depends(get_db)):
    return quotation_service.create(db, data)


@router.get("/{quotation_id}", response_model=QuotationResponse)
def get_quotation(quotation_id: int, db: Session = Depends(get_db)):
    return quotation_service.get(db, quotation_id)


@router.put("/{quotation_id}", response_model=QuotationResponse)
def update_quotation(quotation_id: int, data: QuotationUpdate, db: Session = Depends(get_db)):
    """Replace header and all lines; totals are recomputed"""
    return quotation_service.update(db, quotation_id, data)


@router.delete("/{quotation_id}", status_code=204)
def delete_quotation(quotation_id: int, db: Session = Depends(get_db)):
    quotation_service.delete(db, quotation_id)


@router.patch("/{quotation_id}/status", response_model=QuotationResponse)
def update_quotation_status(quotation_id: int, data: QuotationStatusUpdate, db: Session = Depends(get_db)):
    return quotation_service.update_status(db, quotation_id, data.status)


@router.post("/{quotation_id}/duplicate", response_model=QuotationResponse, status_code=201)
def duplicate_quotation(quotation_id: int, db: Session = Depends(get_db)):
    return quotation_service.duplicate(db, quotation_id)


@router.post("/{quotation_id}/convert-to-order", response_model=ConversionResponse, status_code=201)
def convert_to_order(
    quotation_id: int,
    data: Optional[ConvertToOrderRequest] = None,
    db: Session = Depends(get_db)
):
    """Create the sales order of an accepted quotation; stock shortfalls come back as warnings"""
    result = order_service.convert(db, quotation_id, data or ConvertToOrderRequest())
    response = ConversionResponse.model_validate(result.order)
    response.warnings = result.warnings
    return response
