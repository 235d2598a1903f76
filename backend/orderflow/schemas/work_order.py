"""
Work Order Pydantic Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from orderflow.core.status_config import WorkOrderStatus


class WorkOrderCreate(BaseModel):
    """Create (or fetch the existing) work order for a confirmed order"""
    order_id: int = Field(..., description="Confirmed order ID")
    description: Optional[str] = Field(None, max_length=5000)


class WorkOrderUpdate(BaseModel):
    """Update work order details"""
    description: Optional[str] = Field(None, max_length=5000)


class WorkOrderStatusUpdate(BaseModel):
    """Manual work order status change"""
    status: WorkOrderStatus = Field(..., description="New status")


class WorkOrderResponse(BaseModel):
    """Work order details"""
    id: int
    order_id: int
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    no_surat: str
    description: Optional[str] = None
    status: str
    allowed_transitions: List[str] = []
    delivery_order_count: int = 0
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None


class DeliverySummaryLine(BaseModel):
    """Per-product delivery progress of a work order"""
    product_id: int
    product_name: str
    unit: Optional[str] = None
    ordered: int
    delivered: int
    remaining: int


class DeliverySummaryResponse(BaseModel):
    """Delivery progress of a work order"""
    work_order_id: int
    status: str
    fully_delivered: bool
    lines: List[DeliverySummaryLine]


class ProductionSummaryLine(BaseModel):
    """Per-product production progress of a work order"""
    product_id: int
    product_name: str
    ordered: int
    produced: int
    outstanding: int


class ProductionSummaryResponse(BaseModel):
    """Production progress of a work order"""
    work_order_id: int
    fully_produced: bool
    lines: List[ProductionSummaryLine]
