from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
import logging

from erp.database import get_db
from erp.schemas.sales_order import (
    SalesOrderCreate,
    SalesOrderStatusUpdate,
    SalesOrderResponse,
    SalesOrderListResponse,
    ConversionResponse,
    PaymentEntryCreate,
    PaymentEntryUpdate,
)
from erp.services.order_service import order_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sales-orders", tags=["sales-orders"])


@router.get("", response_model=SalesOrderListResponse)
def list_sales_orders(
    status: Optional[str] = Query(None, description="Filter by status"),
    contact_id: Optional[int] = Query(None, description="Filter by contact ID"),
    search: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db)
):
    orders, pagination = order_service.list_orders(
        db, status=status, contact_id=contact_id, search=search,
        from_date=from_date, to_date=to_date, page=page, limit=limit,
    )
    return {"sales_orders": orders, "pagination": pagination}


@router.post("", response_model=ConversionResponse, status_code=201)
def create_sales_order(data: SalesOrderCreate, db: Session = Depends(get_db)):
    """Convert the given quotation into a sales order"""
    result = order_service.convert(db, data.quotation_id, data)
    response = ConversionResponse.model_validate(result.order)
    response.warnings = result.warnings
    return response


@router.get("/{order_id}", response_model=SalesOrderResponse)
def get_sales_order(order_id: int, db: Session = Depends(get_db)):
    return order_service.get(db, order_id)


@router.delete("/{order_id}", status_code=204)
def delete_sales_order(order_id: int, db: Session = Depends(get_db)):
    """Hard delete; consumed stock is restored unless the order was already cancelled"""
    order_service.delete(db, order_id)


@router.patch("/{order_id}/status", response_model=SalesOrderResponse)
def update_sales_order_status(order_id: int, data: SalesOrderStatusUpdate, db: Session = Depends(get_db)):
    return order_service.update_status(db, order_id, data)


@router.post("/{order_id}/cancel", response_model=SalesOrderResponse)
def cancel_sales_order(order_id: int, db: Session = Depends(get_db)):
    return order_service.cancel(db, order_id)


@router.post("/{order_id}/payments", response_model=SalesOrderResponse, status_code=201)
def add_payment(order_id: int, data: PaymentEntryCreate, db: Session = Depends(get_db)):
    return order_service.add_payment(db, order_id, data)


@router.put("/{order_id}/payments/{payment_id}", response_model=SalesOrderResponse)
def update_payment(order_id: int, payment_id: str, data: PaymentEntryUpdate, db: Session = Depends(get_db)):
    return order_service.update_payment(db, order_id, payment_id, data)


@router.delete("/{order_id}/payments/{payment_id}", response_model=SalesOrderResponse)
def delete_payment(order_id: int, payment_id: str, db: Session = Depends(get_db)):
    return order_service.delete_payment(db, order_id, payment_id)
