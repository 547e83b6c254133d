from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Boolean, Text
from sqlalchemy.orm import relationship
from erp.database import Base


class QuotationLine(Base):
    __tablename__ = "quotation_lines"

    id = Column(Integer, primary_key=True, index=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    line_number = Column(Integer, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)  # null for custom lines
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount_type = Column(String, default="percent")  # percent, amount
    discount_value = Column(Numeric(12, 2), default=0)
    discount_amount = Column(Numeric(12, 2), default=0)
    tax_rate = Column(Numeric(5, 2), default=0)
    tax_amount = Column(Numeric(12, 2), default=0)  # informational only
    line_total = Column(Numeric(12, 2), nullable=False)  # tax-exclusive
    notes = Column(Text, nullable=True)
    is_optional = Column(Boolean, default=False)
    is_customized = Column(Boolean, default=False)

    # Relationships
    quotation = relationship("Quotation", back_populates="lines")
    components = relationship(
        "QuotationLineComponent",
        back_populates="line",
        cascade="all, delete-orphan",
        order_by="QuotationLineComponent.id",
    )
