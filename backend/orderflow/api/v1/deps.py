"""
API Dependencies

Acting-user and common query parameter dependencies.
"""
from typing import Optional

from fastapi import Header, Query

from orderflow.schemas.common import PaginationMeta, PaginationParams


def get_acting_user(
    x_user_id: Optional[str] = Header(None, description="ID of the user performing the action"),
) -> Optional[str]:
    """
    Identify the acting user for created_by fields.

    Authentication happens in front of this service; it only forwards the
    caller's id in X-User-Id.
    """
    if x_user_id is None:
        return None
    x_user_id = x_user_id.strip()
    return x_user_id or None


def get_pagination_params(
    offset: int = Query(default=0, ge=0, description="Number of records to skip"),
    limit: int = Query(default=50, ge=1, le=500, description="Maximum records to return"),
) -> PaginationParams:
    """
    Dependency for standardized pagination parameters.

    Usage:
        @router.get("/orders")
        async def list_orders(pagination: PaginationParams = Depends(get_pagination_params)):
            ...
    """
    return PaginationParams(offset=offset, limit=limit)


def pagination_meta(pagination: PaginationParams, total: int, returned: int) -> PaginationMeta:
    return PaginationMeta(
        total=total,
        offset=pagination.offset,
        limit=pagination.limit,
        returned=returned,
    )
