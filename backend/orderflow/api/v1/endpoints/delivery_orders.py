"""
Delivery Order Endpoints

Creating a delivery order checks every line against what remains to be
delivered on the work order; the work order status follows the deliveries.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from orderflow.api.v1.deps import get_acting_user, get_pagination_params, pagination_meta
from orderflow.core.status_config import DeliveryOrderStatus
from orderflow.db.session import get_db, transaction
from orderflow.models.delivery_order import DeliveryOrder
from orderflow.schemas.common import ApiResponse, ListResponse, PaginationParams
from orderflow.schemas.delivery_order import (
    DeliveryOrderCreate,
    DeliveryOrderItemResponse,
    DeliveryOrderMarkDelivered,
    DeliveryOrderResponse,
    DeliveryOrderResult,
    DeliveryOrderStatusUpdate,
    DeliveryOrderUpdate,
)
from orderflow.services import delivery_order_service

router = APIRouter(prefix="/delivery-orders", tags=["Delivery Orders"])


def build_delivery_order_response(delivery_order: DeliveryOrder) -> DeliveryOrderResponse:
    return DeliveryOrderResponse(
        id=delivery_order.id,
        order_code=delivery_order.order_code,
        work_order_id=delivery_order.work_order_id,
        order_id=delivery_order.order_id,
        description=delivery_order.description,
        status=delivery_order.status,
        planned_delivery_date=delivery_order.planned_delivery_date,
        shipped_at=delivery_order.shipped_at,
        delivered_at=delivery_order.delivered_at,
        items=[DeliveryOrderItemResponse.model_validate(item) for item in delivery_order.items],
        created_at=delivery_order.created_at,
        updated_at=delivery_order.updated_at,
        created_by=delivery_order.created_by,
    )


def _result(outcome: delivery_order_service.DeliveryOrderOutcome) -> DeliveryOrderResult:
    return DeliveryOrderResult(
        delivery_order=build_delivery_order_response(outcome.delivery_order),
        work_order_status=outcome.work_order_status,
        work_order_status_changed=outcome.work_order_status_changed,
    )


@router.get("", response_model=ApiResponse[ListResponse[DeliveryOrderResponse]])
async def list_delivery_orders(
    work_order_id: Optional[int] = Query(None),
    order_id: Optional[int] = Query(None),
    status_filter: Optional[DeliveryOrderStatus] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    delivery_orders, total = delivery_order_service.list_delivery_orders(
        db,
        work_order_id=work_order_id,
        order_id=order_id,
        status=status_filter.value if status_filter else None,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [build_delivery_order_response(do) for do in delivery_orders]
    return ApiResponse(
        message="Delivery orders retrieved successfully",
        data=ListResponse(items=items, pagination=pagination_meta(pagination, total, len(items))),
    )


@router.post("", response_model=ApiResponse[DeliveryOrderResult], status_code=status.HTTP_201_CREATED)
async def create_delivery_order(
    data: DeliveryOrderCreate,
    db: Session = Depends(get_db),
    acting_user: Optional[str] = Depends(get_acting_user),
):
    """
    Create a delivery order. Responds 422 with a per-item error list when a
    product is not on the order or exceeds its remaining quantity.
    """
    with transaction(db):
        outcome = delivery_order_service.create_delivery_order(
            db,
            data.work_order_id,
            data.items,
            planned_delivery_date=data.planned_delivery_date,
            description=data.description,
            created_by=acting_user,
        )
    return ApiResponse(message="Delivery order created successfully", data=_result(outcome))


@router.get("/{delivery_order_id}", response_model=ApiResponse[DeliveryOrderResponse])
async def get_delivery_order(delivery_order_id: int, db: Session = Depends(get_db)):
    delivery_order = delivery_order_service.get_delivery_order(db, delivery_order_id)
    return ApiResponse(
        message="Delivery order retrieved successfully",
        data=build_delivery_order_response(delivery_order),
    )


@router.patch("/{delivery_order_id}", response_model=ApiResponse[DeliveryOrderResponse])
async def update_delivery_order(
    delivery_order_id: int,
    data: DeliveryOrderUpdate,
    db: Session = Depends(get_db),
):
    """Edit description or planned delivery date while the delivery order is pending."""
    with transaction(db):
        delivery_order = delivery_order_service.update_delivery_order(
            db,
            delivery_order_id,
            description=data.description,
            planned_delivery_date=data.planned_delivery_date,
        )
    return ApiResponse(
        message="Delivery order updated successfully",
        data=build_delivery_order_response(delivery_order),
    )


@router.patch("/{delivery_order_id}/status", response_model=ApiResponse[DeliveryOrderResult])
async def update_delivery_order_status(
    delivery_order_id: int,
    data: DeliveryOrderStatusUpdate,
    db: Session = Depends(get_db),
):
    with transaction(db):
        outcome = delivery_order_service.update_delivery_order_status(
            db,
            delivery_order_id,
            data.status.value,
            shipped_at=data.shipped_at,
            delivered_at=data.delivered_at,
        )
    return ApiResponse(message="Delivery order status updated", data=_result(outcome))


@router.post("/{delivery_order_id}/deliver", response_model=ApiResponse[DeliveryOrderResult])
async def mark_delivered(
    delivery_order_id: int,
    data: Optional[DeliveryOrderMarkDelivered] = None,
    db: Session = Depends(get_db),
):
    with transaction(db):
        outcome = delivery_order_service.mark_delivered(
            db, delivery_order_id, delivered_at=data.delivered_at if data else None
        )
    return ApiResponse(message="Delivery order marked as delivered", data=_result(outcome))


@router.delete("/{delivery_order_id}", response_model=ApiResponse[dict])
async def delete_delivery_order(delivery_order_id: int, db: Session = Depends(get_db)):
    """Delete a pending delivery order; the work order may drop back to pending."""
    with transaction(db):
        work_order_status, changed = delivery_order_service.delete_delivery_order(db, delivery_order_id)
    return ApiResponse(
        message="Delivery order deleted successfully",
        data={
            "id": delivery_order_id,
            "work_order_status": work_order_status,
            "work_order_status_changed": changed,
        },
    )
