"""
Stock Ledger - the only writer of product and material stock levels.

Every change goes through ``apply_delta``, which locks the stock row, moves
the level and appends an immutable StockMovement in the caller's transaction.
Pipeline consumption may drive stock negative (backorders); manual
adjustments may not.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from erp.database import transaction
from erp.errors import NotFoundError, ValidationError
from erp.models.material import Material
from erp.models.product import Product
from erp.models.stock_movement import StockMovement
from erp.utils.pricing import round_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockTarget:
    kind: str  # product, material
    id: int

    @classmethod
    def product(cls, product_id: int) -> "StockTarget":
        return cls("product", product_id)

    @classmethod
    def material(cls, material_id: int) -> "StockTarget":
        return cls("material", material_id)

    @property
    def model(self):
        return Product if self.kind == "product" else Material


def movement_type_for(quantity: Decimal) -> str:
    if quantity > 0:
        return "in"
    if quantity < 0:
        return "out"
    return "adjustment"


class StockLedger:
    """Stock level changes with an audit trail"""

    def get_target(self, db: Session, target: StockTarget, lock: bool = False):
        query = db.query(target.model).filter(target.model.id == target.id)
        if lock:
            query = query.with_for_update().populate_existing()
        row = query.first()
        if row is None:
            raise NotFoundError(f"{target.kind.capitalize()} {target.id} not found")
        return row

    def apply_delta(
        self,
        db: Session,
        target: StockTarget,
        quantity,
        reason: str,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> StockMovement:
        """
        Move the stock of `target` by the signed `quantity` and record it.

        Does not commit: the movement belongs to the caller's unit of work.
        """
        row = self.get_target(db, target, lock=True)

        delta = round_quantity(quantity)
        before = round_quantity(row.stock_quantity)
        after = before + delta
        row.stock_quantity = after

        movement = StockMovement(
            product_id=target.id if target.kind == "product" else None,
            material_id=target.id if target.kind == "material" else None,
            movement_type=movement_type_for(delta),
            quantity=delta,
            quantity_before=before,
            quantity_after=after,
            reason=reason,
            reference_number=reference_number,
            notes=notes,
        )
        db.add(movement)
        db.flush()

        if after < 0:
            logger.warning(f"{target.kind} {target.id} stock is negative ({after}) after '{reason}' {reference_number or ''}")
        return movement

    def shortfall(self, db: Session, target: StockTarget, required) -> Optional[str]:
        """Human-readable shortfall when current stock cannot cover `required`, else None."""
        row = self.get_target(db, target, lock=True)
        available = round_quantity(row.stock_quantity)
        required = round_quantity(required)
        if available >= required:
            return None
        return f"Insufficient stock for {row.name}: {available} available, {required} required"

    def adjust(
        self,
        db: Session,
        target: StockTarget,
        mode: str,
        quantity,
        reason: str,
        notes: Optional[str] = None,
    ) -> StockMovement:
        """
        Manual adjustment (add, remove or set to an absolute level).

        Raises:
            ValidationError: the result would be negative
        """
        quantity = round_quantity(quantity)
        with transaction(db):
            row = self.get_target(db, target, lock=True)
            current = round_quantity(row.stock_quantity)

            if mode == "add":
                delta = quantity
            elif mode == "remove":
                delta = -quantity
            elif mode == "set":
                delta = quantity - current
            else:
                raise ValidationError(f"Unknown adjustment mode: {mode}")

            if current + delta < 0:
                raise ValidationError(
                    f"Adjustment would leave {row.name} at {current + delta}; stock cannot go negative"
                )

            movement = self.apply_delta(db, target, delta, reason, notes=notes)

        logger.info(f"Manual stock adjustment on {target.kind} {target.id}: {mode} {quantity} ({reason})")
        return movement

    def list_movements(
        self,
        db: Session,
        product_id: Optional[int] = None,
        material_id: Optional[int] = None,
        reference_number: Optional[str] = None,
        limit: int = 50,
    ) -> List[StockMovement]:
        query = db.query(StockMovement)
        if product_id is not None:
            query = query.filter(StockMovement.product_id == product_id)
        if material_id is not None:
            query = query.filter(StockMovement.material_id == material_id)
        if reference_number:
            query = query.filter(StockMovement.reference_number == reference_number)
        return query.order_by(StockMovement.id.desc()).limit(limit).all()


stock_ledger = StockLedger()
