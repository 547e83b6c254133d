from sqlalchemy import Column, Integer, String, UniqueConstraint
from erp.database import Base


class DocumentSequence(Base):
    """Per-month counter backing DEV/CMD/FAC document numbers."""
    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("prefix", "period", name="uq_document_sequences_prefix_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    prefix = Column(String, nullable=False)
    period = Column(String(6), nullable=False)  # YYYYMM
    last_value = Column(Integer, nullable=False, default=0)
