from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from erp.schemas.common import InvoiceStatus, Pagination, PaymentMethod


class InvoiceCreate(BaseModel):
    sales_order_id: int
    due_date: Optional[date] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class PaymentRecord(BaseModel):
    amount_paid: Decimal = Field(..., gt=0)
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = None
    payment_date: Optional[date] = None


class InvoiceItemResponse(BaseModel):
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

    class Config:
        from_attributes = True


class InvoiceSummary(BaseModel):
    id: int
    invoice_number: str
    sales_order_id: Optional[int]
    order_number: Optional[str] = None
    contact_id: int
    contact_name: Optional[str] = None
    status: str
    invoice_date: date
    due_date: Optional[date]
    total_amount: Decimal
    down_payment_amount: Decimal
    amount_paid: Decimal
    amount_due: Decimal
    currency: str
    created_at: datetime

    class Config:
        from_attributes = True


class InvoiceResponse(InvoiceSummary):
    quotation_id: Optional[int]
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    shipping_cost: Decimal
    installation_cost: Decimal
    payment_method: Optional[str]
    payment_reference: Optional[str]
    payment_date: Optional[date]
    payment_terms: Optional[str]
    notes: Optional[str]
    terms_conditions: Optional[str]
    updated_at: datetime
    items: List[InvoiceItemResponse] = []


class InvoiceListResponse(BaseModel):
    invoices: List[InvoiceSummary]
    pagination: Pagination
