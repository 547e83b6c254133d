from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from erp.schemas.common import Pagination, PaymentMethod, SalesOrderStatus


class ConvertToOrderRequest(BaseModel):
    """Delivery overrides and optional down payment supplied at conversion"""
    expected_delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    notes: Optional[str] = None
    down_payment_amount: Decimal = Field(Decimal("0"), ge=0)
    down_payment_method: Optional[PaymentMethod] = None
    down_payment_date: Optional[date] = None
    down_payment_notes: Optional[str] = None


class SalesOrderCreate(ConvertToOrderRequest):
    quotation_id: int


class SalesOrderStatusUpdate(BaseModel):
    status: SalesOrderStatus
    shipped_date: Optional[date] = None
    delivered_date: Optional[date] = None
    tracking_number: Optional[str] = None


class PaymentEntryCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    method: PaymentMethod
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class PaymentEntryUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    method: Optional[PaymentMethod] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class PaymentEntry(BaseModel):
    id: str
    amount: Decimal
    method: Optional[str] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class SalesOrderItemResponse(BaseModel):
    id: int
    line_number: int
    product_id: Optional[int]
    product_name: str
    product_sku: Optional[str]
    description: Optional[str]
    quantity: Decimal
    unit_price: Decimal
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    line_total: Decimal
    is_customized: bool
    custom_components: Optional[List[Dict[str, Any]]] = None

    class Config:
        from_attributes = True


class SalesOrderSummary(BaseModel):
    id: int
    order_number: str
    quotation_id: Optional[int]
    quotation_number: Optional[str] = None
    contact_id: int
    contact_name: Optional[str] = None
    status: str
    order_date: date
    expected_delivery_date: Optional[date]
    total_amount: Decimal
    total_paid: Decimal
    balance_due: Decimal
    currency: str
    invoice_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class SalesOrderResponse(SalesOrderSummary):
    shipped_date: Optional[date]
    delivered_date: Optional[date]
    tracking_number: Optional[str]
    delivery_address: Optional[str]
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    installation_cost: Decimal
    down_payment_amount: Decimal
    down_payment_method: Optional[str]
    down_payment_date: Optional[date]
    down_payment_notes: Optional[str]
    payments: List[PaymentEntry] = []
    payment_terms: Optional[str]
    delivery_terms: Optional[str]
    terms_conditions: Optional[str]
    notes: Optional[str]
    updated_at: datetime
    items: List[SalesOrderItemResponse] = []


class ConversionResponse(SalesOrderResponse):
    warnings: List[str] = []


class SalesOrderListResponse(BaseModel):
    sales_orders: List[SalesOrderSummary]
    pagination: Pagination
