from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from erp.schemas.common import DiscountType, Pagination, QuotationStatus
from erp.schemas.pricing import PricingLineInput


class CustomComponentInput(BaseModel):
    component_name: Optional[str] = None
    material_id: Optional[int] = None
    finish_id: Optional[int] = None
    quantity: Decimal = Field(Decimal("0"), ge=0)  # per unit of product
    unit_cost: Decimal = Field(Decimal("0"), ge=0)
    upcharge_percentage: Decimal = Field(Decimal("0"), ge=0)


class QuotationLineInput(PricingLineInput):
    product_id: Optional[int] = None
    product_name: str = Field(..., min_length=1)
    product_sku: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    is_optional: bool = False
    is_customized: bool = False
    custom_components: List[CustomComponentInput] = []


class QuotationBase(BaseModel):
    contact_id: int
    expiration_date: Optional[date] = None
    delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    payment_terms: Optional[str] = None
    delivery_terms: Optional[str] = None
    line_items: List[QuotationLineInput]
    discount_type: DiscountType = "percent"
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    installation_cost: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Decimal = Field(Decimal("20"), ge=0, le=100)
    include_tax: bool = True
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    terms_conditions: Optional[str] = None


class QuotationCreate(QuotationBase):
    validity_days: Optional[int] = Field(None, ge=1, le=365)


class QuotationUpdate(QuotationBase):
    pass


class QuotationStatusUpdate(BaseModel):
    status: QuotationStatus


class ComponentResponse(BaseModel):
    id: int
    component_name: Optional[str]
    material_id: Optional[int]
    finish_id: Optional[int]
    quantity: Decimal
    unit_cost: Decimal
    upcharge_percentage: Decimal

    class Config:
        from_attributes = True


class QuotationLineResponse(BaseModel):
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
    notes: Optional[str]
    is_optional: bool
    is_customized: bool
    components: List[ComponentResponse] = []

    class Config:
        from_attributes = True


class QuotationSummary(BaseModel):
    id: int
    quotation_number: str
    contact_id: int
    contact_name: Optional[str] = None
    status: str
    expiration_date: Optional[date]
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    sales_order_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class QuotationResponse(QuotationSummary):
    delivery_date: Optional[date]
    delivery_address: Optional[str]
    payment_terms: Optional[str]
    delivery_terms: Optional[str]
    discount_type: str
    discount_value: Decimal
    shipping_cost: Decimal
    installation_cost: Decimal
    tax_rate: Decimal
    include_tax: bool
    notes: Optional[str]
    internal_notes: Optional[str]
    terms_conditions: Optional[str]
    converted_to_order_at: Optional[datetime]
    updated_at: datetime
    lines: List[QuotationLineResponse] = []


class QuotationListResponse(BaseModel):
    quotations: List[QuotationSummary]
    pagination: Pagination
