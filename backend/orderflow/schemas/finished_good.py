"""
Finished Good Pydantic Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class FinishedGoodCreate(BaseModel):
    """Record production output against a work order"""
    product_id: int
    quantity: int = Field(..., gt=0)
    produced_at: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)


class FinishedGoodUpdate(BaseModel):
    """Correct a production record. Omitted fields are left unchanged."""
    quantity: Optional[int] = Field(None, gt=0)
    produced_at: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)


class FinishedGoodResponse(BaseModel):
    """Production output record"""
    id: int
    work_order_id: int
    product_id: int
    quantity: int
    notes: Optional[str] = None
    produced_at: datetime
    created_at: datetime
    created_by: Optional[str] = None

    class Config:
        from_attributes = True
