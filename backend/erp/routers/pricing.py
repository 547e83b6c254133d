from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from erp.database import get_db
from erp.schemas.pricing import (
    PricingPreviewRequest,
    PricingPreviewResponse,
    CustomPriceRequest,
    CustomPriceResponse,
)
from erp.services.pricing_service import pricing_service

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


@router.post("/preview", response_model=PricingPreviewResponse)
def preview_totals(data: PricingPreviewRequest):
    """Totals of an unsaved cart"""
    return pricing_service.preview(data)


@router.post("/custom-price", response_model=CustomPriceResponse)
def custom_price(data: CustomPriceRequest, db: Session = Depends(get_db)):
    """Unit price of a product with material/finish substitutions"""
    return pricing_service.custom_price(db, data)
