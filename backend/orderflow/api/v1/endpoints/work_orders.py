"""
Work Order Endpoints

Work orders (SPK), their delivery progress and their production output.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from orderflow.api.v1.deps import get_acting_user, get_pagination_params, pagination_meta
from orderflow.api.v1.endpoints.delivery_orders import build_delivery_order_response
from orderflow.core.status_config import WorkOrderStatus, get_allowed_work_order_transitions
from orderflow.db.session import get_db, transaction
from orderflow.models.work_order import WorkOrder
from orderflow.schemas.common import ApiResponse, ListResponse, PaginationParams
from orderflow.schemas.delivery_order import DeliveryOrderResponse
from orderflow.schemas.finished_good import FinishedGoodCreate, FinishedGoodResponse
from orderflow.schemas.work_order import (
    DeliverySummaryLine,
    DeliverySummaryResponse,
    ProductionSummaryLine,
    ProductionSummaryResponse,
    WorkOrderCreate,
    WorkOrderResponse,
    WorkOrderStatusUpdate,
    WorkOrderUpdate,
)
from orderflow.services import delivery_fulfillment, finished_goods_service, work_order_service
from orderflow.services.delivery_order_service import list_delivery_orders

router = APIRouter(prefix="/work-orders", tags=["Work Orders"])


def build_work_order_response(work_order: WorkOrder) -> WorkOrderResponse:
    order = work_order.order
    return WorkOrderResponse(
        id=work_order.id,
        order_id=work_order.order_id,
        order_number=order.order_number if order else None,
        customer_name=order.name if order else None,
        no_surat=work_order.no_surat,
        description=work_order.description,
        status=work_order.status,
        allowed_transitions=get_allowed_work_order_transitions(work_order.status),
        delivery_order_count=len(work_order.delivery_orders),
        completed_at=work_order.completed_at,
        created_at=work_order.created_at,
        updated_at=work_order.updated_at,
        created_by=work_order.created_by,
    )


@router.get("", response_model=ApiResponse[ListResponse[WorkOrderResponse]])
async def list_work_orders(
    status_filter: Optional[WorkOrderStatus] = Query(None, alias="status"),
    order_id: Optional[int] = Query(None),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    work_orders, total = work_order_service.list_work_orders(
        db,
        status=status_filter.value if status_filter else None,
        order_id=order_id,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [build_work_order_response(wo) for wo in work_orders]
    return ApiResponse(
        message="Work orders retrieved successfully",
        data=ListResponse(items=items, pagination=pagination_meta(pagination, total, len(items))),
    )


@router.post("", response_model=ApiResponse[WorkOrderResponse], status_code=status.HTTP_201_CREATED)
async def create_work_order(
    data: WorkOrderCreate,
    db: Session = Depends(get_db),
    acting_user: Optional[str] = Depends(get_acting_user),
):
    """Create the work order for a confirmed order (returns the existing one if present)."""
    with transaction(db):
        work_order = work_order_service.create_work_order(
            db, data.order_id, description=data.description, created_by=acting_user
        )
    return ApiResponse(message="Work order ready", data=build_work_order_response(work_order))


@router.get("/{work_order_id}", response_model=ApiResponse[WorkOrderResponse])
async def get_work_order(work_order_id: int, db: Session = Depends(get_db)):
    work_order = work_order_service.get_work_order(db, work_order_id)
    return ApiResponse(message="Work order retrieved successfully", data=build_work_order_response(work_order))


@router.patch("/{work_order_id}", response_model=ApiResponse[WorkOrderResponse])
async def update_work_order(work_order_id: int, data: WorkOrderUpdate, db: Session = Depends(get_db)):
    with transaction(db):
        work_order = work_order_service.update_work_order(db, work_order_id, description=data.description)
    return ApiResponse(message="Work order updated successfully", data=build_work_order_response(work_order))


@router.patch("/{work_order_id}/status", response_model=ApiResponse[WorkOrderResponse])
async def update_work_order_status(
    work_order_id: int,
    data: WorkOrderStatusUpdate,
    db: Session = Depends(get_db),
):
    with transaction(db):
        work_order = work_order_service.update_work_order_status(db, work_order_id, data.status.value)
    return ApiResponse(message="Work order status updated", data=build_work_order_response(work_order))


@router.delete("/{work_order_id}", response_model=ApiResponse[dict])
async def delete_work_order(work_order_id: int, db: Session = Depends(get_db)):
    with transaction(db):
        work_order = work_order_service.delete_work_order(db, work_order_id)
    return ApiResponse(
        message="Work order deleted successfully",
        data={"id": work_order.id, "no_surat": work_order.no_surat},
    )


@router.get("/{work_order_id}/delivery-summary", response_model=ApiResponse[DeliverySummaryResponse])
async def get_delivery_summary(
    work_order_id: int,
    include_cancelled: Optional[bool] = Query(
        None, description="Count cancelled delivery orders (default from settings)"
    ),
    db: Session = Depends(get_db),
):
    """Per-product ordered / delivered / remaining quantities."""
    work_order = work_order_service.get_work_order(db, work_order_id)
    lines = delivery_fulfillment.delivery_summary(db, work_order_id, include_cancelled)
    return ApiResponse(
        message="Delivery summary retrieved successfully",
        data=DeliverySummaryResponse(
            work_order_id=work_order.id,
            status=work_order.status,
            fully_delivered=bool(lines) and all(line.remaining == 0 for line in lines),
            lines=[DeliverySummaryLine(**line.to_dict()) for line in lines],
        ),
    )


@router.get("/{work_order_id}/delivery-orders", response_model=ApiResponse[List[DeliveryOrderResponse]])
async def get_work_order_delivery_orders(work_order_id: int, db: Session = Depends(get_db)):
    work_order_service.get_work_order(db, work_order_id)
    delivery_orders, _ = list_delivery_orders(db, work_order_id=work_order_id, limit=500)
    return ApiResponse(
        message="Delivery orders retrieved successfully",
        data=[build_delivery_order_response(do) for do in delivery_orders],
    )


@router.get("/{work_order_id}/finished-goods", response_model=ApiResponse[List[FinishedGoodResponse]])
async def list_finished_goods(work_order_id: int, db: Session = Depends(get_db)):
    finished_goods = finished_goods_service.list_finished_goods(db, work_order_id)
    return ApiResponse(
        message="Finished goods retrieved successfully",
        data=[FinishedGoodResponse.model_validate(fg) for fg in finished_goods],
    )


@router.post(
    "/{work_order_id}/finished-goods",
    response_model=ApiResponse[FinishedGoodResponse],
    status_code=status.HTTP_201_CREATED,
)
async def record_finished_good(
    work_order_id: int,
    data: FinishedGoodCreate,
    db: Session = Depends(get_db),
    acting_user: Optional[str] = Depends(get_acting_user),
):
    with transaction(db):
        finished_good = finished_goods_service.record_finished_good(
            db,
            work_order_id,
            data.product_id,
            data.quantity,
            produced_at=data.produced_at,
            notes=data.notes,
            created_by=acting_user,
        )
    return ApiResponse(
        message="Finished good recorded successfully",
        data=FinishedGoodResponse.model_validate(finished_good),
    )


@router.get("/{work_order_id}/production-summary", response_model=ApiResponse[ProductionSummaryResponse])
async def get_production_summary(work_order_id: int, db: Session = Depends(get_db)):
    lines = finished_goods_service.production_summary(db, work_order_id)
    return ApiResponse(
        message="Production summary retrieved successfully",
        data=ProductionSummaryResponse(
            work_order_id=work_order_id,
            fully_produced=bool(lines) and all(line["outstanding"] == 0 for line in lines),
            lines=[ProductionSummaryLine(**line) for line in lines],
        ),
    )
