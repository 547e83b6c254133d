from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Text, CheckConstraint, event
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from erp.database import Base


class StockMovement(Base):
    """
    Append-only audit row for one stock change. Rows are never updated or
    deleted; a reversal is a new row with the negated quantity.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        CheckConstraint(
            "(product_id IS NULL) <> (material_id IS NULL)",
            name="ck_stock_movements_single_target",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=True, index=True)
    movement_type = Column(String, nullable=False)  # in, out, adjustment
    quantity = Column(Numeric(12, 3), nullable=False)  # signed delta
    quantity_before = Column(Numeric(12, 3), nullable=False)
    quantity_after = Column(Numeric(12, 3), nullable=False)
    reason = Column(String, nullable=False)
    reference_number = Column(String, nullable=True, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    product = relationship("Product")
    material = relationship("Material")

    @property
    def target_type(self) -> str:
        return "product" if self.product_id is not None else "material"


@event.listens_for(StockMovement, "before_update")
def _reject_movement_update(mapper, connection, target):
    raise RuntimeError(f"Stock movement {target.id} is immutable")


@event.listens_for(StockMovement, "before_delete")
def _reject_movement_delete(mapper, connection, target):
    raise RuntimeError(f"Stock movement {target.id} cannot be deleted")
