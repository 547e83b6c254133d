from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime
from sqlalchemy.sql import func
from erp.database import Base


class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=True, index=True)
    name = Column(String, nullable=False)
    unit_of_measure = Column(String, default="m2")
    cost_per_unit = Column(Numeric(12, 2), nullable=False, default=0)
    upcharge_percentage = Column(Numeric(6, 2), nullable=False, default=0)
    stock_quantity = Column(Numeric(12, 3), nullable=False, default=0)
    min_stock_level = Column(Numeric(12, 3), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
