"""
Raw Material Endpoints (read-only)

Raw material master data is maintained elsewhere; this service only reads
stock and answers availability questions.
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orderflow.api.v1.deps import get_pagination_params, pagination_meta
from orderflow.db.session import get_db
from orderflow.models.raw_material import RawMaterial
from orderflow.schemas.common import ApiResponse, ListResponse, PaginationParams
from orderflow.schemas.raw_material import AvailabilityResponse, RawMaterialResponse
from orderflow.services import inventory_ledger

router = APIRouter(prefix="/raw-materials", tags=["Raw Materials"])


@router.get("", response_model=ApiResponse[ListResponse[RawMaterialResponse]])
async def list_raw_materials(
    search: Optional[str] = Query(None, max_length=100),
    low_stock_only: bool = Query(False),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    query = db.query(RawMaterial).filter(RawMaterial.active.is_(True))
    if search:
        pattern = f"%{search}%"
        query = query.filter((RawMaterial.name.ilike(pattern)) | (RawMaterial.code.ilike(pattern)))

    materials = query.order_by(RawMaterial.name).all()
    if low_stock_only:
        low_ids = {m.id for m in inventory_ledger.low_stock_materials(db, [m.id for m in materials])}
        materials = [m for m in materials if m.id in low_ids]

    total = len(materials)
    page = materials[pagination.offset:pagination.offset + pagination.limit]
    items = [
        RawMaterialResponse(
            id=m.id,
            code=m.code,
            name=m.name,
            unit=m.unit,
            stock=float(m.stock or 0),
            lower_limit=float(m.lower_limit) if m.lower_limit is not None else None,
            active=m.active,
        )
        for m in page
    ]
    return ApiResponse(
        message="Raw materials retrieved successfully",
        data=ListResponse(items=items, pagination=pagination_meta(pagination, total, len(items))),
    )


@router.get("/{raw_material_id}/availability", response_model=ApiResponse[AvailabilityResponse])
async def check_availability(
    raw_material_id: int,
    quantity: Decimal = Query(..., gt=0, description="Quantity needed"),
    db: Session = Depends(get_db),
):
    check = inventory_ledger.check_availability(db, raw_material_id, quantity)
    return ApiResponse(
        message="Stock is sufficient" if check.sufficient else "Insufficient stock",
        data=AvailabilityResponse(sufficient=check.sufficient, **check.to_dict()),
    )
