from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, Boolean, Text, JSON
from sqlalchemy.orm import relationship
from erp.database import Base


class SalesOrderItem(Base):
    __tablename__ = "sales_order_items"

    id = Column(Integer, primary_key=True, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    line_number = Column(Integer, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount_type = Column(String, default="percent")
    discount_value = Column(Numeric(12, 2), default=0)
    discount_amount = Column(Numeric(12, 2), default=0)
    tax_rate = Column(Numeric(5, 2), default=0)
    tax_amount = Column(Numeric(12, 2), default=0)
    line_total = Column(Numeric(12, 2), nullable=False)
    is_customized = Column(Boolean, default=False)
    custom_components = Column(JSON, nullable=True)  # frozen QuotationLineComponent snapshots

    # Relationships
    sales_order = relationship("SalesOrder", back_populates="items")
