from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Date, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from erp.database import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String, unique=True, nullable=False, index=True)  # FAC-YYYYMM-NNN
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="SET NULL"), nullable=True, index=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="SET NULL"), nullable=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False, index=True)
    status = Column(String, default="draft", index=True)  # draft, sent, paid, overdue, cancelled
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)

    # Financial snapshot copied from the sales order
    subtotal = Column(Numeric(12, 2), default=0)
    discount_amount = Column(Numeric(12, 2), default=0)
    tax_amount = Column(Numeric(12, 2), default=0)
    shipping_cost = Column(Numeric(12, 2), default=0)
    installation_cost = Column(Numeric(12, 2), default=0)
    total_amount = Column(Numeric(12, 2), default=0)
    currency = Column(String, default="EUR")

    # Settlement
    down_payment_amount = Column(Numeric(12, 2), default=0)
    amount_paid = Column(Numeric(12, 2), default=0)  # cumulative, excludes down payment
    amount_due = Column(Numeric(12, 2), default=0)
    payment_method = Column(String, nullable=True)
    payment_reference = Column(String, nullable=True)
    payment_date = Column(Date, nullable=True)

    payment_terms = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    terms_conditions = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    contact = relationship("Contact")
    sales_order = relationship("SalesOrder", foreign_keys=[sales_order_id])
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.line_number",
    )

    @property
    def contact_name(self):
        return self.contact.display_name if self.contact else None

    @property
    def order_number(self):
        return self.sales_order.order_number if self.sales_order else None
