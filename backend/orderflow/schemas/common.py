"""
Common API Response Schemas

Every endpoint answers with the same envelope:

    {"success": true, "message": "...", "data": ...}

Errors add a machine-readable ``error`` code (see orderflow/exceptions.py).
"""
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field, field_validator


T = TypeVar('T')


# ============================================================================
# Envelope
# ============================================================================

class ApiResponse(BaseModel, Generic[T]):
    """
    Standard success envelope.

    The generic type T is the payload carried in ``data``.
    """
    success: bool = Field(True, description="Whether the request succeeded")
    message: str = Field("", description="Human-readable result message")
    data: Optional[T] = Field(None, description="Response payload")

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Order confirmed",
                "data": {}
            }
        }


class ErrorResponse(BaseModel):
    """
    Standard error envelope.

    Error Codes:
        - VALIDATION_ERROR: Request validation failed (422)
        - INSUFFICIENT_RAW_MATERIAL: Stock cannot cover a requirement (422)
        - DELIVERY_QUANTITY_EXCEEDED: Delivery exceeds remaining quantity (422)
        - NOT_FOUND: Resource not found (404)
        - CONFLICT: Resource conflict (409)
        - INVALID_STATE: Operation not allowed in current state (409)
        - DATABASE_ERROR: Database operation failed (500)
        - INTERNAL_ERROR: Unexpected internal error (500)
    """
    success: bool = Field(False, description="Always false")
    message: str = Field(..., description="Human-readable error message")
    data: Optional[Dict[str, Any]] = Field(None, description="Structured error details")
    error: str = Field(..., description="Machine-readable error code")

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "message": "Insufficient raw material stock",
                "data": {
                    "insufficient_materials": [
                        {
                            "raw_material_id": 3,
                            "raw_material_name": "Steel plate",
                            "required": 40.0,
                            "available": 25.0,
                            "shortage": 15.0
                        }
                    ]
                },
                "error": "INSUFFICIENT_RAW_MATERIAL"
            }
        }


# ============================================================================
# Pagination Models
# ============================================================================

class PaginationParams(BaseModel):
    """
    Standardized pagination parameters for list endpoints.

    Uses offset-based pagination which is simple and predictable.
    """
    offset: int = Field(
        default=0,
        ge=0,
        description="Number of records to skip (for pagination)"
    )
    limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum number of records to return (1-500)"
    )

    @field_validator('limit')
    @classmethod
    def validate_limit(cls, v: int) -> int:
        """Ensure limit is within acceptable range."""
        return min(max(v, 1), 500)

    @field_validator('offset')
    @classmethod
    def validate_offset(cls, v: int) -> int:
        """Ensure offset is non-negative."""
        return max(0, v)


class PaginationMeta(BaseModel):
    """Pagination metadata included in list responses."""
    total: int = Field(..., description="Total number of records matching the query")
    offset: int = Field(..., description="Current offset (number of records skipped)")
    limit: int = Field(..., description="Maximum records per page")
    returned: int = Field(..., description="Number of records in this response")


class ListResponse(BaseModel, Generic[T]):
    """
    List payload with pagination, carried inside the envelope's ``data``.

    Example:
        {
            "items": [...],
            "pagination": {"total": 150, "offset": 0, "limit": 50, "returned": 50}
        }
    """
    items: List[T] = Field(..., description="List of items")
    pagination: PaginationMeta = Field(..., description="Pagination metadata")


class StatusResponse(BaseModel):
    """Status payload for health checks."""
    status: str = Field(..., description="Service status")
    version: Optional[str] = Field(None, description="Application version")
