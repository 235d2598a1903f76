"""
Raw Material Usage Endpoints

Manual entries on the raw material ledger. Every create/update/delete
moves stock by the same amount.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from orderflow.api.v1.deps import get_acting_user, get_pagination_params, pagination_meta
from orderflow.db.session import get_db, transaction
from orderflow.models.raw_material_usage import RawMaterialUsage
from orderflow.schemas.common import ApiResponse, ListResponse, PaginationParams
from orderflow.schemas.order import BulkDeleteResponse
from orderflow.schemas.raw_material_usage import (
    RawMaterialUsageCreate,
    RawMaterialUsageMassDelete,
    RawMaterialUsageResponse,
    RawMaterialUsageUpdate,
)
from orderflow.services import raw_material_usage_service
from orderflow.services.low_stock_notification import notify_low_stock

router = APIRouter(prefix="/raw-material-usages", tags=["Raw Material Usages"])


def build_usage_response(usage: RawMaterialUsage) -> RawMaterialUsageResponse:
    return RawMaterialUsageResponse(
        id=usage.id,
        raw_material_id=usage.raw_material_id,
        raw_material_name=usage.raw_material.name if usage.raw_material else None,
        quantity_used=float(usage.quantity_used),
        order_id=usage.order_id,
        order_item_id=usage.order_item_id,
        product_id=usage.product_id,
        notes=usage.notes,
        created_at=usage.created_at,
        created_by=usage.created_by,
    )


@router.get("", response_model=ApiResponse[ListResponse[RawMaterialUsageResponse]])
async def list_usages(
    order_id: Optional[int] = Query(None),
    raw_material_id: Optional[int] = Query(None),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    usages, total = raw_material_usage_service.list_usages(
        db,
        order_id=order_id,
        raw_material_id=raw_material_id,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [build_usage_response(u) for u in usages]
    return ApiResponse(
        message="Raw material usages retrieved successfully",
        data=ListResponse(items=items, pagination=pagination_meta(pagination, total, len(items))),
    )


@router.post("", response_model=ApiResponse[RawMaterialUsageResponse], status_code=status.HTTP_201_CREATED)
async def create_usage(
    data: RawMaterialUsageCreate,
    db: Session = Depends(get_db),
    acting_user: Optional[str] = Depends(get_acting_user),
):
    with transaction(db):
        usage = raw_material_usage_service.create_usage(
            db,
            data.raw_material_id,
            data.quantity_used,
            order_id=data.order_id,
            order_item_id=data.order_item_id,
            product_id=data.product_id,
            notes=data.notes,
            created_by=acting_user,
        )
    notify_low_stock(db, [usage.raw_material_id])
    return ApiResponse(message="Raw material usage created successfully", data=build_usage_response(usage))


# Registered before /{usage_id} routes
@router.post("/mass-delete", response_model=ApiResponse[BulkDeleteResponse])
async def mass_delete_usages(data: RawMaterialUsageMassDelete, db: Session = Depends(get_db)):
    with transaction(db):
        deleted_count, not_found = raw_material_usage_service.delete_usages(db, data.ids)
    return ApiResponse(
        message=f"{deleted_count} raw material usage(s) deleted",
        data=BulkDeleteResponse(deleted_count=deleted_count, not_found=not_found),
    )


@router.get("/{usage_id}", response_model=ApiResponse[RawMaterialUsageResponse])
async def get_usage(usage_id: int, db: Session = Depends(get_db)):
    usage = raw_material_usage_service.get_usage(db, usage_id)
    return ApiResponse(message="Raw material usage retrieved successfully", data=build_usage_response(usage))


@router.patch("/{usage_id}", response_model=ApiResponse[RawMaterialUsageResponse])
async def update_usage(usage_id: int, data: RawMaterialUsageUpdate, db: Session = Depends(get_db)):
    with transaction(db):
        usage = raw_material_usage_service.update_usage(
            db,
            usage_id,
            raw_material_id=data.raw_material_id,
            quantity_used=data.quantity_used,
            notes=data.notes,
        )
    notify_low_stock(db, [usage.raw_material_id])
    return ApiResponse(message="Raw material usage updated successfully", data=build_usage_response(usage))


@router.delete("/{usage_id}", response_model=ApiResponse[dict])
async def delete_usage(usage_id: int, db: Session = Depends(get_db)):
    with transaction(db):
        raw_material_usage_service.delete_usage(db, usage_id)
    return ApiResponse(message="Raw material usage deleted successfully", data={"id": usage_id})
