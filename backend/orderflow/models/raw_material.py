"""
Raw material model

Stock is only ever changed through services/inventory_ledger.py.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, CheckConstraint
from datetime import datetime

from orderflow.db.base import Base


class RawMaterial(Base):
    """Raw material master with on-hand stock - matches raw_materials table"""
    __tablename__ = "raw_materials"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_raw_materials_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=True, index=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(20), default="pcs", nullable=False)

    # Quantities
    stock = Column(Numeric(18, 4), default=0, nullable=False)
    # Per-material low stock threshold; falls back to LOW_STOCK_THRESHOLD when null
    lower_limit = Column(Numeric(18, 4), nullable=True)

    active = Column(Boolean, default=True, nullable=False)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<RawMaterial {self.code or self.id}: {self.stock} {self.unit}>"
