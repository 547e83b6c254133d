from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from erp.database import get_db
from erp.schemas.stock import StockAdjustmentRequest, StockMovementResponse
from erp.services.stock_ledger import StockTarget, stock_ledger

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("/movements", response_model=List[StockMovementResponse])
def list_movements(
    product_id: Optional[int] = Query(None),
    material_id: Optional[int] = Query(None),
    reference_number: Optional[str] = Query(None, description="Order or quotation number"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """Movement history, newest first"""
    return stock_ledger.list_movements(
        db, product_id=product_id, material_id=material_id,
        reference_number=reference_number, limit=limit,
    )


@router.post("/movements", response_model=StockMovementResponse, status_code=201)
def adjust_stock(data: StockAdjustmentRequest, db: Session = Depends(get_db)):
    """Manual adjustment; rejected when it would leave negative stock"""
    target = StockTarget(data.target_type, data.target_id)
    return stock_ledger.adjust(db, target, data.mode, data.quantity, data.reason, data.notes)
