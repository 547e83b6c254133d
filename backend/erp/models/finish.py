from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime
from sqlalchemy.sql import func
from erp.database import Base


class Finish(Base):
    __tablename__ = "finishes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    extra_cost = Column(Numeric(12, 2), nullable=False, default=0)
    upcharge_percentage = Column(Numeric(6, 2), nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
