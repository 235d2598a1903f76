"""
Order Pydantic Schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


# ============================================================================
# Request Schemas
# ============================================================================

class OrderItemInput(BaseModel):
    """Order line for create/update. One line per product."""
    product_id: int = Field(..., description="Product ID")
    quantity: int = Field(..., gt=0, description="Quantity (units of product)")
    remark: Optional[str] = Field(None, max_length=1000)


def _reject_duplicate_products(items: Optional[List[OrderItemInput]]):
    if items is None:
        return items
    seen = set()
    for item in items:
        if item.product_id in seen:
            raise ValueError(f"Product {item.product_id} appears more than once")
        seen.add(item.product_id)
    return items


class OrderCreate(BaseModel):
    """Create a draft order"""
    name: str = Field(..., min_length=1, max_length=255, description="Customer name")
    email: str = Field(..., min_length=3, max_length=255, description="Customer email")
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=2000)
    delivery_address: Optional[str] = Field(None, max_length=2000)
    po_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=5000)

    items: List[OrderItemInput] = Field(default_factory=list, description="Initial order lines")

    @field_validator('items')
    @classmethod
    def validate_items(cls, v):
        return _reject_duplicate_products(v)


class OrderUpdate(BaseModel):
    """
    Update an order.

    Customer fields are always editable. ``items``, when given, replaces
    the line list and is only accepted while the order is a draft.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=2000)
    delivery_address: Optional[str] = Field(None, max_length=2000)
    po_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=5000)

    items: Optional[List[OrderItemInput]] = None

    @field_validator('items')
    @classmethod
    def validate_items(cls, v):
        return _reject_duplicate_products(v)


# ============================================================================
# Response Schemas
# ============================================================================

class OrderItemResponse(BaseModel):
    """Order line response"""
    id: int
    product_id: int
    product_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: int
    remark: Optional[str] = None

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Full order details"""
    id: int
    order_number: str
    status: str

    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    delivery_address: Optional[str] = None
    po_number: Optional[str] = None
    notes: Optional[str] = None

    items: List[OrderItemResponse] = []

    # Active work order, once confirmed
    work_order_id: Optional[int] = None
    work_order_no_surat: Optional[str] = None

    confirmed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class InsufficientMaterial(BaseModel):
    """One short raw material in a failed confirmation"""
    raw_material_id: int
    raw_material_name: str
    required: float
    available: float
    shortage: float


class OrderConfirmResponse(BaseModel):
    """Result of confirming an order"""
    order: OrderResponse
    work_order_id: Optional[int] = None
    work_order_no_surat: Optional[str] = None
    already_confirmed: bool = False
    used_raw_material_ids: List[int] = []
    low_stock_notification: Optional[dict] = None


class BulkDeleteResponse(BaseModel):
    """Result of a mass delete"""
    deleted_count: int
    not_found: List[int] = []
