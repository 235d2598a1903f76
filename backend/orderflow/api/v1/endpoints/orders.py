"""
Order Endpoints

Draft order management and the draft ↔ confirm workflow.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from orderflow.api.v1.deps import get_acting_user, get_pagination_params, pagination_meta
from orderflow.core.status_config import OrderStatus
from orderflow.db.session import get_db, transaction
from orderflow.logging_config import get_logger
from orderflow.models.order import Order
from orderflow.schemas.common import ApiResponse, ListResponse, PaginationParams
from orderflow.schemas.order import (
    OrderConfirmResponse,
    OrderCreate,
    OrderItemResponse,
    OrderResponse,
    OrderUpdate,
)
from orderflow.services import order_service
from orderflow.services.low_stock_notification import notify_low_stock
from orderflow.services.order_confirmation import confirm_order, revert_order_to_draft

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def build_order_response(order: Order) -> OrderResponse:
    work_order = order.work_order
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        name=order.name,
        email=order.email,
        phone=order.phone,
        address=order.address,
        delivery_address=order.delivery_address,
        po_number=order.po_number,
        notes=order.notes,
        items=[
            OrderItemResponse(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name if item.product else None,
                unit=item.product.unit if item.product else None,
                quantity=item.quantity,
                remark=item.remark,
            )
            for item in order.items
        ],
        work_order_id=work_order.id if work_order else None,
        work_order_no_surat=work_order.no_surat if work_order else None,
        confirmed_at=order.confirmed_at,
        created_at=order.created_at,
        updated_at=order.updated_at,
        created_by=order.created_by,
    )


@router.get("", response_model=ApiResponse[ListResponse[OrderResponse]])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    orders, total = order_service.list_orders(
        db,
        status=status_filter.value if status_filter else None,
        search=search,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [build_order_response(o) for o in orders]
    return ApiResponse(
        message="Orders retrieved successfully",
        data=ListResponse(items=items, pagination=pagination_meta(pagination, total, len(items))),
    )


@router.post("", response_model=ApiResponse[OrderResponse], status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    db: Session = Depends(get_db),
    acting_user: Optional[str] = Depends(get_acting_user),
):
    with transaction(db):
        order = order_service.create_order(db, data, created_by=acting_user)
    return ApiResponse(message="Order created successfully", data=build_order_response(order))


@router.get("/{order_id}", response_model=ApiResponse[OrderResponse])
async def get_order(order_id: int, db: Session = Depends(get_db)):
    order = order_service.get_order(db, order_id)
    return ApiResponse(message="Order retrieved successfully", data=build_order_response(order))


@router.patch("/{order_id}", response_model=ApiResponse[OrderResponse])
async def update_order(order_id: int, data: OrderUpdate, db: Session = Depends(get_db)):
    with transaction(db):
        order = order_service.update_order(db, order_id, data)
    return ApiResponse(message="Order updated successfully", data=build_order_response(order))


@router.post("/{order_id}/confirm", response_model=ApiResponse[OrderConfirmResponse])
async def confirm(
    order_id: int,
    db: Session = Depends(get_db),
    acting_user: Optional[str] = Depends(get_acting_user),
):
    """
    Confirm a draft order: deducts raw material stock, writes usage rows and
    creates the work order, all in one transaction. Responds 422 with every
    short material when stock cannot cover the order.
    """
    with transaction(db):
        result = confirm_order(db, order_id, created_by=acting_user)

    notification = None
    if result.used_raw_material_ids:
        notification = notify_low_stock(db, result.used_raw_material_ids)

    work_order = result.work_order
    return ApiResponse(
        message="Order already confirmed" if result.already_confirmed else "Order confirmed successfully",
        data=OrderConfirmResponse(
            order=build_order_response(result.order),
            work_order_id=work_order.id if work_order else None,
            work_order_no_surat=work_order.no_surat if work_order else None,
            already_confirmed=result.already_confirmed,
            used_raw_material_ids=result.used_raw_material_ids,
            low_stock_notification=notification,
        ),
    )


@router.post("/{order_id}/revert", response_model=ApiResponse[OrderResponse])
async def revert_to_draft(order_id: int, db: Session = Depends(get_db)):
    """Revert a confirmed order to draft, restoring raw material stock."""
    with transaction(db):
        order = revert_order_to_draft(db, order_id)
    return ApiResponse(message="Order reverted to draft", data=build_order_response(order))


@router.delete("/{order_id}", response_model=ApiResponse[dict])
async def delete_order(order_id: int, db: Session = Depends(get_db)):
    with transaction(db):
        order = order_service.delete_order(db, order_id)
    return ApiResponse(
        message="Order deleted successfully",
        data={"id": order.id, "order_number": order.order_number},
    )
