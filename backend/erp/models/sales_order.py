from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Date, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from erp.database import Base


class SalesOrder(Base):
    """
    Sales order materialized from an accepted quotation. Financial fields and
    items are frozen copies; later quotation edits never reach the order.
    """
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, nullable=False, index=True)  # CMD-YYYYMM-NNN
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="SET NULL"), nullable=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    status = Column(String, default="in_progress", index=True)  # in_progress, in_preparation, shipped, delivered, completed, cancelled

    order_date = Column(Date, nullable=False)
    expected_delivery_date = Column(Date, nullable=True)
    shipped_date = Column(Date, nullable=True)
    delivered_date = Column(Date, nullable=True)
    tracking_number = Column(String, nullable=True)
    delivery_address = Column(Text, nullable=True)

    # Financial snapshot copied from the quotation
    subtotal = Column(Numeric(12, 2), default=0)
    discount_amount = Column(Numeric(12, 2), default=0)
    tax_amount = Column(Numeric(12, 2), default=0)
    shipping_cost = Column(Numeric(12, 2), default=0)
    installation_cost = Column(Numeric(12, 2), default=0)
    total_amount = Column(Numeric(12, 2), default=0)
    currency = Column(String, default="EUR")

    # Down payment collected at order time
    down_payment_amount = Column(Numeric(12, 2), default=0)
    down_payment_method = Column(String, nullable=True)  # cash, card, transfer, check
    down_payment_date = Column(Date, nullable=True)
    down_payment_notes = Column(Text, nullable=True)

    # Cumulative payments: [{"id", "amount", "method", "date", "notes"}]
    payments = Column(JSON, nullable=False, default=list)

    payment_terms = Column(String, nullable=True)
    delivery_terms = Column(String, nullable=True)
    terms_conditions = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Set once, when invoiced
    invoice_id = Column(
        Integer,
        ForeignKey("invoices.id", use_alter=True, name="fk_sales_orders_invoice_id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    contact = relationship("Contact")
    quotation = relationship("Quotation", foreign_keys=[quotation_id])
    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.line_number",
    )

    @property
    def contact_name(self):
        return self.contact.display_name if self.contact else None

    @property
    def quotation_number(self):
        return self.quotation.quotation_number if self.quotation else None

    @property
    def total_paid(self) -> Decimal:
        return sum((Decimal(str(p["amount"])) for p in (self.payments or [])), Decimal("0.00"))

    @property
    def balance_due(self) -> Decimal:
        return Decimal(str(self.total_amount or 0)) - self.total_paid
