from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from erp.database import Base


class QuotationLineComponent(Base):
    """Material/finish substitution on a customized quotation line."""
    __tablename__ = "quotation_line_components"

    id = Column(Integer, primary_key=True, index=True)
    quotation_line_id = Column(Integer, ForeignKey("quotation_lines.id", ondelete="CASCADE"), nullable=False, index=True)
    component_name = Column(String, nullable=True)
    material_id = Column(Integer, ForeignKey("materials.id"), nullable=True)
    finish_id = Column(Integer, ForeignKey("finishes.id"), nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False, default=0)  # per unit of product
    unit_cost = Column(Numeric(12, 2), nullable=False, default=0)
    upcharge_percentage = Column(Numeric(6, 2), nullable=False, default=0)

    # Relationships
    line = relationship("QuotationLine", back_populates="components")

    def snapshot(self) -> dict:
        """Frozen copy stored on sales order items."""
        return {
            "component_name": self.component_name,
            "material_id": self.material_id,
            "finish_id": self.finish_id,
            "quantity": str(self.quantity),
            "unit_cost": str(self.unit_cost),
            "upcharge_percentage": str(self.upcharge_percentage),
        }
