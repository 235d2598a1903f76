"""
Raw Material Usage Pydantic Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class RawMaterialUsageCreate(BaseModel):
    """Manual usage entry. Deducts stock."""
    raw_material_id: int
    quantity_used: Decimal = Field(..., gt=0)
    order_id: Optional[int] = None
    order_item_id: Optional[int] = None
    product_id: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=2000)


class RawMaterialUsageUpdate(BaseModel):
    """Edit a usage entry. Stock is restored and re-deducted."""
    raw_material_id: Optional[int] = None
    quantity_used: Optional[Decimal] = Field(None, gt=0)
    notes: Optional[str] = Field(None, max_length=2000)


class RawMaterialUsageMassDelete(BaseModel):
    """Delete several usage entries at once"""
    ids: List[int] = Field(..., min_length=1)


class RawMaterialUsageResponse(BaseModel):
    """Usage ledger row"""
    id: int
    raw_material_id: int
    raw_material_name: Optional[str] = None
    quantity_used: float
    order_id: Optional[int] = None
    order_item_id: Optional[int] = None
    product_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    created_by: Optional[str] = None
