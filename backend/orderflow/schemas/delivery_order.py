"""
Delivery Order Pydantic Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime

from orderflow.core.status_config import DeliveryOrderStatus


# ============================================================================
# Request Schemas
# ============================================================================

class DeliveryItemInput(BaseModel):
    """Requested delivery line"""
    product_id: int = Field(..., description="Product ID (must be on the order)")
    quantity: int = Field(..., gt=0, description="Units to deliver")


class DeliveryOrderCreate(BaseModel):
    """Create a delivery order against a work order"""
    work_order_id: int = Field(..., description="Work order ID")
    items: List[DeliveryItemInput] = Field(..., min_length=1, description="Delivery lines")
    planned_delivery_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=5000)


class DeliveryOrderUpdate(BaseModel):
    """Edit a pending delivery order. Omitted fields are left unchanged."""
    description: Optional[str] = Field(None, max_length=5000)
    planned_delivery_date: Optional[date] = None


class DeliveryOrderStatusUpdate(BaseModel):
    """Change delivery order status. Timestamps are optional overrides."""
    status: DeliveryOrderStatus = Field(..., description="New status")
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class DeliveryOrderMarkDelivered(BaseModel):
    """Mark a delivery order delivered"""
    delivered_at: Optional[datetime] = None


# ============================================================================
# Response Schemas
# ============================================================================

class DeliveryOrderItemResponse(BaseModel):
    """Delivery line response"""
    id: int
    product_id: int
    product_name: str
    unit: Optional[str] = None
    quantity: int

    class Config:
        from_attributes = True


class DeliveryOrderResponse(BaseModel):
    """Delivery order details"""
    id: int
    order_code: str
    work_order_id: int
    order_id: int
    description: Optional[str] = None
    status: str
    planned_delivery_date: Optional[date] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    items: List[DeliveryOrderItemResponse] = []
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class DeliveryOrderResult(BaseModel):
    """Delivery order plus the work order status after re-sync"""
    delivery_order: DeliveryOrderResponse
    work_order_status: str
    work_order_status_changed: bool = False
