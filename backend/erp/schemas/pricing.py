from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from erp.schemas.common import DiscountType


class PricingLineInput(BaseModel):
    """Fields of a line that drive its price"""
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    discount_type: DiscountType = "percent"
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100)


class PricingPreviewRequest(BaseModel):
    line_items: List[PricingLineInput] = []
    discount_type: DiscountType = "percent"
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    installation_cost: Decimal = Field(Decimal("0"), ge=0)
    tax_rate: Decimal = Field(Decimal("20"), ge=0, le=100)
    include_tax: bool = True


class LineBreakdownResponse(BaseModel):
    line_subtotal: Decimal
    discount_amount: Decimal
    line_total: Decimal
    tax_amount: Decimal

    class Config:
        from_attributes = True


class PricingPreviewResponse(BaseModel):
    lines: List[LineBreakdownResponse] = []
    subtotal: Decimal
    discount_amount: Decimal
    subtotal_after_discount: Decimal
    shipping_cost: Decimal
    installation_cost: Decimal
    base_for_tax: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    class Config:
        from_attributes = True


class ComponentSelection(BaseModel):
    component_name: Optional[str] = None
    material_id: Optional[int] = None
    finish_id: Optional[int] = None


class CustomPriceRequest(BaseModel):
    product_id: Optional[int] = None
    base_price: Decimal = Field(..., ge=0)
    custom_components: List[ComponentSelection]


class UpchargeDetailResponse(BaseModel):
    component_name: Optional[str]
    kind: str
    name: str
    upcharge_percentage: Decimal
    upcharge_amount: Decimal

    class Config:
        from_attributes = True


class CustomPriceResponse(BaseModel):
    base_price: Decimal
    total_upcharge: Decimal
    custom_price: Decimal
    component_details: List[UpchargeDetailResponse] = []

    class Config:
        from_attributes = True
