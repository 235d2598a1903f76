"""
Order Confirmation Workflow

draft → confirm: check every required raw material, deduct stock, write
one usage row per (order item × ingredient), then create or restore the
work order. confirm → draft undoes all of it.

Both directions are all-or-nothing when run inside
orderflow.db.session.transaction(); nothing here commits.
"""
from datetime import datetime
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import Session

from orderflow.core.config import settings
from orderflow.core.status_config import OrderStatus
from orderflow.exceptions import (
    InsufficientRawMaterialError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from orderflow.logging_config import get_logger
from orderflow.models.order import Order
from orderflow.models.raw_material_usage import RawMaterialUsage
from orderflow.models.work_order import WorkOrder
from orderflow.services import inventory_ledger
from orderflow.services.delivery_fulfillment import sync_work_order_status
from orderflow.services.recipe_resolver import required_materials, usage_lines
from orderflow.services.work_order_service import (
    create_work_order,
    has_open_delivery_orders,
    soft_delete_work_order,
)

logger = get_logger(__name__)


class ConfirmationResult(NamedTuple):
    order: Order
    work_order: Optional[WorkOrder]
    used_raw_material_ids: List[int]
    already_confirmed: bool


def _load_order(db: Session, order_id: int, lock: bool = False) -> Order:
    query = db.query(Order).filter(Order.id == order_id, Order.deleted_at.is_(None))
    if lock:
        query = query.with_for_update()
    order = query.first()
    if not order:
        raise NotFoundError("Order", order_id)
    return order


def find_insufficient_materials(db: Session, order: Order) -> List[dict]:
    """
    Check every raw material the order needs, locking each row.

    Rows are locked in id order so two confirmations touching the same
    materials cannot deadlock. A material that no longer exists counts as
    fully short.
    """
    insufficient = []
    for raw_material_id, quantity in sorted(required_materials(order.items).items()):
        try:
            check = inventory_ledger.check_availability(db, raw_material_id, quantity, lock=True)
        except NotFoundError:
            insufficient.append({
                "raw_material_id": raw_material_id,
                "raw_material_name": "Unknown",
                "required": float(quantity),
                "available": 0.0,
                "shortage": float(quantity),
            })
            continue
        if not check.sufficient:
            insufficient.append(check.to_dict())
    return insufficient


def confirm_order(db: Session, order_id: int, created_by: Optional[str] = None) -> ConfirmationResult:
    """
    Confirm a draft order.

    Steps:
    1. Load the order (404 if missing or deleted)
    2. Already confirmed -> return without touching stock
    3. Check availability of every required material; any shortage aborts
       with the full list and nothing mutated
    4. Deduct stock and write a usage row per (item × ingredient)
    5. status = confirm, confirmed_at = now
    6. Create or restore the work order

    Raises:
        NotFoundError: order missing
        InvalidStateError: order is neither draft nor confirmed
        ValidationError: order has no items
        InsufficientRawMaterialError: stock cannot cover the order
    """
    order = _load_order(db, order_id, lock=True)

    if order.status == OrderStatus.CONFIRM.value:
        logger.info(f"Order {order.id} already confirmed, nothing to do")
        return ConfirmationResult(order, order.work_order, [], True)

    if order.status != OrderStatus.DRAFT.value:
        raise InvalidStateError(
            f"Cannot confirm order in '{order.status}' status",
            current_state=order.status,
            allowed_states=[OrderStatus.DRAFT.value],
        )

    if not order.items:
        raise ValidationError("Cannot confirm order without order items")

    insufficient = find_insufficient_materials(db, order)
    if insufficient:
        logger.warning(
            "Order confirmation rejected: insufficient raw material",
            extra={
                "order_id": order.id,
                "short_material_ids": [m["raw_material_id"] for m in insufficient],
            },
        )
        raise InsufficientRawMaterialError(insufficient)

    used_ids = set()
    for line in usage_lines(order.items):
        inventory_ledger.deduct(db, line.raw_material_id, line.quantity)
        db.add(RawMaterialUsage(
            order_id=order.id,
            order_item_id=line.order_item_id,
            product_id=line.product_id,
            raw_material_id=line.raw_material_id,
            quantity_used=line.quantity,
            created_by=created_by,
        ))
        used_ids.add(line.raw_material_id)

    order.status = OrderStatus.CONFIRM.value
    order.confirmed_at = datetime.utcnow()
    db.flush()

    work_order = None
    if settings.AUTO_CREATE_WORK_ORDER_ON_CONFIRM:
        work_order = create_work_order(db, order.id, created_by=created_by)
        sync_work_order_status(db, work_order)

    logger.info(
        f"Order {order.id}: {OrderStatus.DRAFT.value} → {OrderStatus.CONFIRM.value}",
        extra={"order_id": order.id, "materials_used": len(used_ids)},
    )
    return ConfirmationResult(order, work_order, sorted(used_ids), False)


def release_confirmation(db: Session, order: Order) -> int:
    """
    Undo a confirmation's side effects: restore stock for every usage row
    of the order, delete those rows and soft-delete the work order.

    Returns the number of usage rows removed.

    Raises:
        InvalidStateError: the work order already has delivery orders
    """
    work_order = order.work_order
    if work_order is not None and has_open_delivery_orders(work_order):
        raise InvalidStateError(
            "Cannot release an order whose work order has delivery orders",
            current_state=order.status,
        )

    usages = (
        db.query(RawMaterialUsage)
        .filter(RawMaterialUsage.order_id == order.id)
        .order_by(RawMaterialUsage.raw_material_id, RawMaterialUsage.id)
        .all()
    )
    for usage in usages:
        inventory_ledger.restore(db, usage.raw_material_id, usage.quantity_used)
        db.delete(usage)

    if work_order is not None:
        soft_delete_work_order(db, work_order)
    db.flush()
    return len(usages)


def revert_order_to_draft(db: Session, order_id: int) -> Order:
    """
    confirm → draft: restore stock, drop usage rows, soft-delete the work
    order. A draft order is returned unchanged.

    Raises:
        NotFoundError: order missing
        InvalidStateError: order in another status, or deliveries exist
    """
    order = _load_order(db, order_id, lock=True)
    if order.status == OrderStatus.DRAFT.value:
        return order
    if order.status != OrderStatus.CONFIRM.value:
        raise InvalidStateError(
            f"Cannot revert order in '{order.status}' status to draft",
            current_state=order.status,
            allowed_states=[OrderStatus.CONFIRM.value],
        )

    restored = release_confirmation(db, order)
    order.status = OrderStatus.DRAFT.value
    order.confirmed_at = None
    db.flush()
    logger.info(
        f"Order {order.id}: {OrderStatus.CONFIRM.value} → {OrderStatus.DRAFT.value}",
        extra={"order_id": order.id, "usage_rows_restored": restored},
    )
    return order
