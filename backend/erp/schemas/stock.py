from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime
from decimal import Decimal


class StockAdjustmentRequest(BaseModel):
    target_type: Literal["product", "material"]
    target_id: int
    mode: Literal["add", "remove", "set"]
    quantity: Decimal = Field(..., ge=0)
    reason: str = Field(..., min_length=1)
    notes: Optional[str] = None


class StockMovementResponse(BaseModel):
    id: int
    target_type: str
    product_id: Optional[int]
    material_id: Optional[int]
    movement_type: str
    quantity: Decimal
    quantity_before: Decimal
    quantity_after: Decimal
    reason: str
    reference_number: Optional[str]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
