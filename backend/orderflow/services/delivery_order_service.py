"""
Delivery Order Service

Creating, deleting and transitioning delivery orders. Every change that
can move delivered quantities re-syncs the work order status.

The work order row is locked while its delivery orders are created or
deleted, so two concurrent requests cannot both pass the remaining-quantity
check. Caller commits.
"""
from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional, Tuple

from sqlalchemy.orm import Session

from orderflow.core.status_config import (
    DELETABLE_DELIVERY_STATUSES,
    DeliveryOrderStatus,
    WorkOrderStatus,
)
from orderflow.exceptions import InvalidStateError, NotFoundError, ValidationError
from orderflow.logging_config import get_logger
from orderflow.models.delivery_order import DeliveryOrder, DeliveryOrderItem
from orderflow.models.product import Product
from orderflow.services.delivery_fulfillment import sync_work_order_status, validate_delivery_items
from orderflow.services.work_order_service import get_work_order

logger = get_logger(__name__)


class DeliveryOrderOutcome(NamedTuple):
    delivery_order: DeliveryOrder
    work_order_status: str
    work_order_status_changed: bool


def generate_order_code(db: Session, now: Optional[datetime] = None) -> str:
    """
    Next delivery order code for the day: DO-YYYYMMDD-NNN.

    The day's rows are read FOR UPDATE; the unique constraint on
    order_code is the backstop.
    """
    prefix = f"DO-{(now or datetime.utcnow()).strftime('%Y%m%d')}-"
    rows = (
        db.query(DeliveryOrder.order_code)
        .filter(DeliveryOrder.order_code.like(f"{prefix}%"))
        .with_for_update()
        .all()
    )
    last_num = 0
    for (code,) in rows:
        tail = code[len(prefix):]
        if tail.isdigit():
            last_num = max(last_num, int(tail))
    return f"{prefix}{last_num + 1:03d}"


def get_delivery_order(db: Session, delivery_order_id: int, lock: bool = False) -> DeliveryOrder:
    query = db.query(DeliveryOrder).filter(DeliveryOrder.id == delivery_order_id)
    if lock:
        query = query.with_for_update()
    delivery_order = query.first()
    if not delivery_order:
        raise NotFoundError("Delivery order", delivery_order_id)
    return delivery_order


def list_delivery_orders(
    db: Session,
    work_order_id: Optional[int] = None,
    order_id: Optional[int] = None,
    status: Optional[str] = None,
    offset: int = 0,
    limit: int = 50,
) -> Tuple[List[DeliveryOrder], int]:
    """Delivery orders newest first. Returns (page, total)."""
    query = db.query(DeliveryOrder)
    if work_order_id:
        query = query.filter(DeliveryOrder.work_order_id == work_order_id)
    if order_id:
        query = query.filter(DeliveryOrder.order_id == order_id)
    if status:
        query = query.filter(DeliveryOrder.status == status)
    total = query.count()
    items = query.order_by(DeliveryOrder.id.desc()).offset(offset).limit(limit).all()
    return items, total


def create_delivery_order(
    db: Session,
    work_order_id: int,
    items: Iterable,
    planned_delivery_date=None,
    description: Optional[str] = None,
    created_by: Optional[str] = None,
) -> DeliveryOrderOutcome:
    """
    Create a pending delivery order for part (or all) of a work order.

    Raises:
        NotFoundError: work order missing
        InvalidStateError: work order cancelled
        ValidationError: no items
        DeliveryQuantityError: items exceed what remains / not on the order
    """
    items = list(items)
    if not items:
        raise ValidationError("Delivery order requires at least one item", field="items")

    work_order = get_work_order(db, work_order_id, lock=True)
    if work_order.status == WorkOrderStatus.CANCELLED.value:
        raise InvalidStateError(
            "Cannot create delivery orders for a cancelled work order",
            current_state=work_order.status,
        )

    validate_delivery_items(db, work_order, items)

    product_ids = {item.product_id for item in items}
    products = {p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()}

    delivery_order = DeliveryOrder(
        order_code=generate_order_code(db),
        work_order=work_order,
        order_id=work_order.order_id,
        description=description,
        status=DeliveryOrderStatus.PENDING.value,
        planned_delivery_date=planned_delivery_date,
        created_by=created_by,
    )
    for item in items:
        product = products[item.product_id]
        delivery_order.items.append(DeliveryOrderItem(
            product_id=product.id,
            product_name=product.name,
            unit=product.unit,
            quantity=int(item.quantity),
        ))
    db.add(delivery_order)
    db.flush()

    changed = sync_work_order_status(db, work_order)
    logger.info(
        f"Delivery order {delivery_order.order_code} created for work order {work_order.id}",
        extra={"delivery_order_id": delivery_order.id, "work_order_id": work_order.id},
    )
    return DeliveryOrderOutcome(delivery_order, work_order.status, changed)


def update_delivery_order(
    db: Session,
    delivery_order_id: int,
    description: Optional[str] = None,
    planned_delivery_date=None,
) -> DeliveryOrder:
    """
    Edit the description and planned delivery date of a pending delivery order.

    Items and status are not editable here; quantities only change by
    deleting and re-creating the delivery order.

    Raises:
        InvalidStateError: delivery order is not pending
    """
    delivery_order = get_delivery_order(db, delivery_order_id, lock=True)
    if delivery_order.status != DeliveryOrderStatus.PENDING.value:
        raise InvalidStateError(
            f"Only pending delivery orders can be edited (status is '{delivery_order.status}')",
            current_state=delivery_order.status,
            allowed_states=[DeliveryOrderStatus.PENDING.value],
        )

    if description is not None:
        delivery_order.description = description
    if planned_delivery_date is not None:
        delivery_order.planned_delivery_date = planned_delivery_date
    db.flush()
    logger.info(f"Delivery order {delivery_order.order_code} updated")
    return delivery_order


def delete_delivery_order(db: Session, delivery_order_id: int) -> Tuple[str, bool]:
    """
    Delete a pending delivery order and its items.

    Returns (work order status, whether it changed).

    Raises:
        InvalidStateError: delivery order is not pending
    """
    delivery_order = get_delivery_order(db, delivery_order_id, lock=True)
    if delivery_order.status not in DELETABLE_DELIVERY_STATUSES:
        raise InvalidStateError(
            f"Only pending delivery orders can be deleted (status is '{delivery_order.status}')",
            current_state=delivery_order.status,
            allowed_states=sorted(DELETABLE_DELIVERY_STATUSES),
        )

    work_order = get_work_order(db, delivery_order.work_order_id, lock=True, include_deleted=True)
    code = delivery_order.order_code
    db.delete(delivery_order)
    db.flush()
    db.expire(work_order, ["delivery_orders"])

    changed = sync_work_order_status(db, work_order)
    logger.info(f"Delivery order {code} deleted", extra={"work_order_id": work_order.id})
    return work_order.status, changed


def update_delivery_order_status(
    db: Session,
    delivery_order_id: int,
    new_status: str,
    shipped_at: Optional[datetime] = None,
    delivered_at: Optional[datetime] = None,
) -> DeliveryOrderOutcome:
    """
    Change delivery order status and its timestamps.

    - shipped: shipped_at = supplied, else existing, else now; delivered_at cleared
    - delivered: delivered_at = supplied or now; shipped_at backfilled with
      delivered_at when never set
    - pending: both timestamps cleared
    - cancelled: timestamps kept

    The work order is re-synced afterwards (cancelling matters when
    cancelled deliveries are not counted).
    """
    new_status = getattr(new_status, "value", new_status)
    valid = {s.value for s in DeliveryOrderStatus}
    if new_status not in valid:
        raise ValidationError(
            f"Invalid delivery order status '{new_status}'", field="status", value=new_status
        )

    delivery_order = get_delivery_order(db, delivery_order_id, lock=True)
    old_status = delivery_order.status
    now = datetime.utcnow()

    if new_status == DeliveryOrderStatus.SHIPPED.value:
        delivery_order.shipped_at = shipped_at or delivery_order.shipped_at or now
        delivery_order.delivered_at = None
    elif new_status == DeliveryOrderStatus.DELIVERED.value:
        delivery_order.delivered_at = delivered_at or now
        if delivery_order.shipped_at is None:
            delivery_order.shipped_at = shipped_at or delivery_order.delivered_at
    elif new_status == DeliveryOrderStatus.PENDING.value:
        delivery_order.shipped_at = None
        delivery_order.delivered_at = None

    delivery_order.status = new_status
    db.flush()

    work_order = get_work_order(db, delivery_order.work_order_id, include_deleted=True)
    changed = sync_work_order_status(db, work_order)
    logger.info(f"Delivery order {delivery_order.id}: {old_status} → {new_status}")
    return DeliveryOrderOutcome(delivery_order, work_order.status, changed)


def mark_delivered(
    db: Session,
    delivery_order_id: int,
    delivered_at: Optional[datetime] = None,
) -> DeliveryOrderOutcome:
    return update_delivery_order_status(
        db, delivery_order_id, DeliveryOrderStatus.DELIVERED.value, delivered_at=delivered_at
    )
