"""
Raw Material Pydantic Schemas (read-only)
"""
from pydantic import BaseModel
from typing import Optional


class RawMaterialResponse(BaseModel):
    """Raw material with current stock"""
    id: int
    code: Optional[str] = None
    name: str
    unit: str
    stock: float
    lower_limit: Optional[float] = None
    active: bool


class AvailabilityResponse(BaseModel):
    """Answer to "can stock cover this quantity?" """
    raw_material_id: int
    raw_material_name: str
    sufficient: bool
    required: float
    available: float
    shortage: float
