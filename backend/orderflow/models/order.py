"""
Order models

Lifecycle handled here: draft → confirm (see services/order_confirmation.py).
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from orderflow.db.base import Base


class Order(Base):
    """Customer order - matches orders table"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)

    # Customer
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    delivery_address = Column(Text, nullable=True)
    po_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    # Status: draft, confirm, pending, processing, shipped, delivered, cancelled
    status = Column(String(50), default="draft", nullable=False, index=True)
    confirmed_at = Column(DateTime, nullable=True)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_by = Column(String(100), nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    work_orders = relationship("WorkOrder", back_populates="order")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def work_order(self):
        """The active (not soft-deleted) work order, if any."""
        for work_order in self.work_orders:
            if work_order.deleted_at is None:
                return work_order
        return None

    def __repr__(self):
        return f"<Order {self.order_number}: {self.status}>"


class OrderItem(Base):
    """Order line - one per product"""
    __tablename__ = "order_items"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_items_order_product"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    remark = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    def __repr__(self):
        return f"<OrderItem order={self.order_id} product={self.product_id} qty={self.quantity}>"
