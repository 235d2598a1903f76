"""
Delivery Order models

A delivery order ships part (or all) of a work order's ordered items.
Item name and unit are snapshots taken at creation time.
"""
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from orderflow.db.base import Base


class DeliveryOrder(Base):
    """Delivery Order (surat jalan) - matches delivery_orders table"""
    __tablename__ = "delivery_orders"

    id = Column(Integer, primary_key=True, index=True)
    # DO-YYYYMMDD-NNN
    order_code = Column(String(50), unique=True, nullable=False, index=True)

    work_order_id = Column(Integer, ForeignKey("work_orders.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    description = Column(Text, nullable=True)

    # Status: pending → shipped → delivered, or cancelled
    status = Column(String(50), default="pending", nullable=False, index=True)

    planned_delivery_date = Column(Date, nullable=True)
    shipped_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_by = Column(String(100), nullable=True)

    work_order = relationship("WorkOrder", back_populates="delivery_orders")
    order = relationship("Order")
    items = relationship(
        "DeliveryOrderItem",
        back_populates="delivery_order",
        cascade="all, delete-orphan",
        order_by="DeliveryOrderItem.id",
    )

    def __repr__(self):
        return f"<DeliveryOrder {self.order_code}: {self.status}>"


class DeliveryOrderItem(Base):
    """Delivery order line"""
    __tablename__ = "delivery_order_items"

    id = Column(Integer, primary_key=True, index=True)
    delivery_order_id = Column(
        Integer, ForeignKey("delivery_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    # Snapshots - do not follow later product edits
    product_name = Column(String(255), nullable=False)
    unit = Column(String(20), nullable=True)

    quantity = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    delivery_order = relationship("DeliveryOrder", back_populates="items")

    def __repr__(self):
        return f"<DeliveryOrderItem {self.product_name}: {self.quantity}>"
