from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Date, Boolean, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from erp.database import Base


class Quotation(Base):
    """
    Customer quotation (devis). Totals are persisted as computed by the
    pricing engine at create/update time and copied verbatim downstream.
    """
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    quotation_number = Column(String, unique=True, nullable=False, index=True)  # DEV-YYYYMM-NNN
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    status = Column(String, default="draft", index=True)  # draft, sent, accepted, rejected, expired
    expiration_date = Column(Date, nullable=True)

    # Delivery / terms
    delivery_date = Column(Date, nullable=True)
    delivery_address = Column(Text, nullable=True)
    payment_terms = Column(String, nullable=True)
    delivery_terms = Column(String, nullable=True)

    # Pricing inputs
    discount_type = Column(String, default="percent")  # percent, amount
    discount_value = Column(Numeric(12, 2), default=0)
    shipping_cost = Column(Numeric(12, 2), default=0)
    installation_cost = Column(Numeric(12, 2), default=0)
    tax_rate = Column(Numeric(5, 2), default=0)
    include_tax = Column(Boolean, default=True)

    # Computed totals (tax-exclusive subtotal)
    subtotal = Column(Numeric(12, 2), default=0)
    discount_amount = Column(Numeric(12, 2), default=0)
    tax_amount = Column(Numeric(12, 2), default=0)
    total_amount = Column(Numeric(12, 2), default=0)
    currency = Column(String, default="EUR")

    notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)
    terms_conditions = Column(Text, nullable=True)

    # Set once, when converted
    sales_order_id = Column(
        Integer,
        ForeignKey("sales_orders.id", use_alter=True, name="fk_quotations_sales_order_id", ondelete="SET NULL"),
        nullable=True,
    )
    converted_to_order_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    contact = relationship("Contact")
    lines = relationship(
        "QuotationLine",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationLine.line_number",
    )

    @property
    def contact_name(self):
        return self.contact.display_name if self.contact else None
