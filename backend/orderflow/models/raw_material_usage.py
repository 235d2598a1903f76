"""
Raw material usage ledger

Append-only: rows are written on order confirmation (one per order item ×
ingredient) or by manual usage entry. Removing a row restores its stock.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from orderflow.db.base import Base


class RawMaterialUsage(Base):
    """Raw material consumption record - matches raw_material_usages table"""
    __tablename__ = "raw_material_usages"

    id = Column(Integer, primary_key=True, index=True)

    # Source references (null for manual usage entries)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="SET NULL"), nullable=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True, index=True)

    raw_material_id = Column(Integer, ForeignKey("raw_materials.id"), nullable=False, index=True)
    quantity_used = Column(Numeric(18, 4), nullable=False)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_by = Column(String(100), nullable=True)

    order = relationship("Order")
    order_item = relationship("OrderItem")
    product = relationship("Product")
    raw_material = relationship("RawMaterial")

    def __repr__(self):
        return f"<RawMaterialUsage material={self.raw_material_id}: {self.quantity_used}>"
