"""
Work Order Service

Creates, restores and transitions work orders (SPK). Automatic
completed <-> pending transitions driven by deliveries live in
delivery_fulfillment.sync_work_order_status().

Caller commits.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from orderflow.core.status_config import (
    DeliveryOrderStatus,
    OrderStatus,
    WorkOrderStatus,
    get_allowed_work_order_transitions,
    is_valid_work_order_transition,
)
from orderflow.exceptions import InvalidStateError, NotFoundError, ValidationError
from orderflow.logging_config import get_logger
from orderflow.models.order import Order
from orderflow.models.work_order import WorkOrder

logger = get_logger(__name__)

_ROMAN_MONTHS = ["I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X", "XI", "XII"]


def roman_month(month: int) -> str:
    """1 -> I ... 12 -> XII"""
    return _ROMAN_MONTHS[month - 1]


def generate_no_surat(db: Session, now: Optional[datetime] = None) -> str:
    """
    Next work order number for the month: NNN/SPK/<roman month>/<year>.

    The month's existing rows (soft-deleted included, the number stays
    taken) are read FOR UPDATE so concurrent requests don't generate the
    same number. The unique constraint on no_surat is the backstop.
    """
    now = now or datetime.utcnow()
    suffix = f"/SPK/{roman_month(now.month)}/{now.year}"
    rows = (
        db.query(WorkOrder.no_surat)
        .filter(WorkOrder.no_surat.like(f"%{suffix}"))
        .with_for_update()
        .all()
    )
    last_num = 0
    for (no_surat,) in rows:
        prefix = no_surat.split("/", 1)[0]
        if prefix.isdigit():
            last_num = max(last_num, int(prefix))
    return f"{last_num + 1:03d}{suffix}"


def get_work_order(
    db: Session,
    work_order_id: int,
    lock: bool = False,
    include_deleted: bool = False,
) -> WorkOrder:
    """Load a work order or raise NotFoundError."""
    query = db.query(WorkOrder).filter(WorkOrder.id == work_order_id)
    if not include_deleted:
        query = query.filter(WorkOrder.deleted_at.is_(None))
    if lock:
        query = query.with_for_update()
    work_order = query.first()
    if not work_order:
        raise NotFoundError("Work order", work_order_id)
    return work_order


def list_work_orders(
    db: Session,
    status: Optional[str] = None,
    order_id: Optional[int] = None,
    offset: int = 0,
    limit: int = 50,
) -> Tuple[List[WorkOrder], int]:
    """Active work orders, newest first. Returns (page, total)."""
    query = db.query(WorkOrder).filter(WorkOrder.deleted_at.is_(None))
    if status:
        query = query.filter(WorkOrder.status == status)
    if order_id:
        query = query.filter(WorkOrder.order_id == order_id)
    total = query.count()
    items = query.order_by(WorkOrder.id.desc()).offset(offset).limit(limit).all()
    return items, total


def create_work_order(
    db: Session,
    order_id: int,
    description: Optional[str] = None,
    created_by: Optional[str] = None,
) -> WorkOrder:
    """
    Create the work order for a confirmed order.

    An order has at most one active work order: an existing active one is
    returned as-is (description updated when given), a soft-deleted one is
    restored with its number and status, otherwise a new pending one is
    created.

    Raises:
        NotFoundError: order missing or deleted
        InvalidStateError: order is not confirmed
    """
    order = (
        db.query(Order)
        .filter(Order.id == order_id, Order.deleted_at.is_(None))
        .first()
    )
    if not order:
        raise NotFoundError("Order", order_id)
    if order.status != OrderStatus.CONFIRM.value:
        raise InvalidStateError(
            "Work orders can only be created for confirmed orders",
            current_state=order.status,
            allowed_states=[OrderStatus.CONFIRM.value],
        )

    existing = (
        db.query(WorkOrder)
        .filter(WorkOrder.order_id == order.id)
        .order_by(WorkOrder.deleted_at.isnot(None), WorkOrder.id.desc())
        .first()
    )
    if existing:
        if existing.deleted_at is not None:
            existing.deleted_at = None
            logger.info(f"Work order {existing.no_surat} restored for order {order.id}")
        if description is not None:
            existing.description = description
        if not existing.status:
            existing.status = WorkOrderStatus.PENDING.value
        db.flush()
        return existing

    work_order = WorkOrder(
        order=order,
        no_surat=generate_no_surat(db),
        description=description,
        status=WorkOrderStatus.PENDING.value,
        created_by=created_by,
    )
    db.add(work_order)
    db.flush()
    logger.info(
        f"Work order {work_order.no_surat} created for order {order.id}",
        extra={"work_order_id": work_order.id, "order_id": order.id},
    )
    return work_order


def update_work_order(db: Session, work_order_id: int, description: Optional[str] = None) -> WorkOrder:
    work_order = get_work_order(db, work_order_id)
    if description is not None:
        work_order.description = description
    db.flush()
    return work_order


def update_work_order_status(db: Session, work_order_id: int, new_status: str) -> WorkOrder:
    """
    Manual status change.

    Transitions: pending <-> in_progress, completed -> pending/in_progress,
    anything -> completed or cancelled. Cancelled is terminal.

    Raises:
        ValidationError: unknown status
        InvalidStateError: transition not allowed
    """
    new_status = getattr(new_status, "value", new_status)
    valid = {s.value for s in WorkOrderStatus}
    if new_status not in valid:
        raise ValidationError(
            f"Invalid work order status '{new_status}'", field="status", value=new_status
        )

    work_order = get_work_order(db, work_order_id, lock=True)
    old_status = work_order.status
    if not is_valid_work_order_transition(old_status, new_status):
        logger.warning(
            "Rejected work order transition",
            extra={"work_order_id": work_order.id, "from_status": old_status, "to_status": new_status},
        )
        raise InvalidStateError(
            f"Cannot change work order status from '{old_status}' to '{new_status}'",
            current_state=old_status,
            allowed_states=get_allowed_work_order_transitions(old_status),
        )
    if old_status == new_status:
        return work_order

    apply_work_order_status(work_order, new_status)
    db.flush()
    logger.info(f"Work order {work_order.id}: {old_status} → {new_status}")
    return work_order


def apply_work_order_status(work_order: WorkOrder, new_status: str) -> None:
    """Set status and keep completed_at in step with it."""
    work_order.status = new_status
    if new_status == WorkOrderStatus.COMPLETED.value:
        work_order.completed_at = datetime.utcnow()
    else:
        work_order.completed_at = None


def has_open_delivery_orders(work_order: WorkOrder) -> bool:
    return any(
        do.status != DeliveryOrderStatus.CANCELLED.value for do in work_order.delivery_orders
    )


def soft_delete_work_order(db: Session, work_order: WorkOrder) -> None:
    if work_order.deleted_at is None:
        work_order.deleted_at = datetime.utcnow()
        db.flush()
        logger.info(f"Work order {work_order.no_surat} soft-deleted")


def delete_work_order(db: Session, work_order_id: int) -> WorkOrder:
    """
    Soft delete a work order.

    Raises:
        InvalidStateError: the work order still has non-cancelled delivery orders
    """
    work_order = get_work_order(db, work_order_id, lock=True)
    if has_open_delivery_orders(work_order):
        raise InvalidStateError(
            "Cannot delete a work order that has delivery orders",
            current_state=work_order.status,
        )
    soft_delete_work_order(db, work_order)
    return work_order
