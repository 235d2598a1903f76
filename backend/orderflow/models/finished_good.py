"""
Finished goods produced against a work order
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from orderflow.db.base import Base


class FinishedGood(Base):
    """Production output record - matches finished_goods table"""
    __tablename__ = "finished_goods"

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    produced_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_by = Column(String(100), nullable=True)

    work_order = relationship("WorkOrder", back_populates="finished_goods")
    product = relationship("Product")

    def __repr__(self):
        return f"<FinishedGood work_order={self.work_order_id} product={self.product_id}: {self.quantity}>"
