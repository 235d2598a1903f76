"""
Work Order model

One work order per confirmed order (by convention). Tracks production and
owns the delivery orders that ship the order's items.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from orderflow.db.base import Base


class WorkOrder(Base):
    """
    Work Order (SPK)

    Lifecycle: pending → in_progress → completed, or cancelled.
    completed ↔ pending also happens automatically as delivery orders are
    created and deleted.
    """
    __tablename__ = "work_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    # Reference number, e.g. 007/SPK/XII/2025
    no_surat = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    status = Column(String(50), default="pending", nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_by = Column(String(100), nullable=True)
    completed_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)

    # Relationships
    order = relationship("Order", back_populates="work_orders")
    delivery_orders = relationship(
        "DeliveryOrder",
        back_populates="work_order",
        order_by="DeliveryOrder.id",
    )
    finished_goods = relationship(
        "FinishedGood",
        back_populates="work_order",
        order_by="FinishedGood.id",
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<WorkOrder {self.no_surat}: {self.status}>"
