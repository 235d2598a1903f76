"""
Delivery Fulfillment Tracker

Answers "how much of each ordered product has been delivered?" for a work
order and keeps the work order status in step with the answer:

- every product delivered in full -> completed
- completed but something outstanding again (a delivery was deleted or
  cancelled) -> pending

Delivered quantities are always recomputed from the delivery order rows,
never kept as a running counter.
"""
from typing import Dict, Iterable, List, NamedTuple, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from orderflow.core.config import settings
from orderflow.core.status_config import DeliveryOrderStatus, WorkOrderStatus
from orderflow.exceptions import DeliveryQuantityError
from orderflow.logging_config import get_logger
from orderflow.models.delivery_order import DeliveryOrder, DeliveryOrderItem
from orderflow.models.work_order import WorkOrder
from orderflow.services.work_order_service import apply_work_order_status, get_work_order

logger = get_logger(__name__)


class DeliverySummaryLine(NamedTuple):
    product_id: int
    product_name: str
    unit: Optional[str]
    ordered: int
    delivered: int
    remaining: int

    def to_dict(self) -> dict:
        return self._asdict()


def _count_cancelled(include_cancelled: Optional[bool]) -> bool:
    if include_cancelled is None:
        return settings.COUNT_CANCELLED_DELIVERIES
    return include_cancelled


def delivered_quantities(
    db: Session,
    work_order_id: int,
    include_cancelled: Optional[bool] = None,
) -> Dict[int, int]:
    """
    Sum of delivery order item quantities per product for a work order.

    Cancelled delivery orders count unless include_cancelled is False
    (default: COUNT_CANCELLED_DELIVERIES).
    """
    query = (
        db.query(DeliveryOrderItem.product_id, func.sum(DeliveryOrderItem.quantity))
        .join(DeliveryOrder, DeliveryOrder.id == DeliveryOrderItem.delivery_order_id)
        .filter(DeliveryOrder.work_order_id == work_order_id)
    )
    if not _count_cancelled(include_cancelled):
        query = query.filter(DeliveryOrder.status != DeliveryOrderStatus.CANCELLED.value)
    rows = query.group_by(DeliveryOrderItem.product_id).all()
    return {product_id: int(total or 0) for product_id, total in rows}


def ordered_quantities(work_order: WorkOrder) -> Dict[int, int]:
    """Ordered quantity per product, from the work order's order items."""
    return {item.product_id: int(item.quantity) for item in work_order.order.items}


def remaining(
    db: Session,
    work_order_id: int,
    product_id: int,
    include_cancelled: Optional[bool] = None,
) -> int:
    """Ordered minus delivered for one product, never below zero."""
    work_order = get_work_order(db, work_order_id)
    ordered = ordered_quantities(work_order).get(product_id, 0)
    delivered = delivered_quantities(db, work_order_id, include_cancelled).get(product_id, 0)
    return max(0, ordered - delivered)


def delivery_summary(
    db: Session,
    work_order_id: int,
    include_cancelled: Optional[bool] = None,
) -> List[DeliverySummaryLine]:
    """Per-product ordered / delivered / remaining, in order item order."""
    work_order = get_work_order(db, work_order_id)
    delivered = delivered_quantities(db, work_order.id, include_cancelled)
    lines = []
    for item in work_order.order.items:
        product = item.product
        done = delivered.get(item.product_id, 0)
        lines.append(DeliverySummaryLine(
            product_id=item.product_id,
            product_name=product.name if product else "Unknown",
            unit=product.unit if product else None,
            ordered=int(item.quantity),
            delivered=done,
            remaining=max(0, int(item.quantity) - done),
        ))
    return lines


def is_fully_delivered(
    db: Session,
    work_order: WorkOrder,
    include_cancelled: Optional[bool] = None,
) -> bool:
    ordered = ordered_quantities(work_order)
    if not ordered:
        return False
    delivered = delivered_quantities(db, work_order.id, include_cancelled)
    return all(delivered.get(pid, 0) >= qty for pid, qty in ordered.items())


def validate_delivery_items(
    db: Session,
    work_order: WorkOrder,
    items: Iterable,
    include_cancelled: Optional[bool] = None,
) -> None:
    """
    Check requested delivery lines against what remains to deliver.

    items: objects (or dicts) with product_id and quantity. Lines for the
    same product are summed before comparing. Every problem is collected
    before raising, so the caller sees the complete list.

    Raises:
        DeliveryQuantityError: a product is not on the order, or more is
            requested than remains
    """
    requested: Dict[int, int] = {}
    for item in items:
        product_id = item["product_id"] if isinstance(item, dict) else item.product_id
        quantity = item["quantity"] if isinstance(item, dict) else item.quantity
        requested[product_id] = requested.get(product_id, 0) + int(quantity)

    order_items = {item.product_id: item for item in work_order.order.items}
    delivered = delivered_quantities(db, work_order.id, include_cancelled)

    errors = []
    for product_id, quantity in requested.items():
        order_item = order_items.get(product_id)
        if order_item is None:
            errors.append({
                "product_id": product_id,
                "product_name": None,
                "requested": quantity,
                "remaining": 0,
                "already_delivered": delivered.get(product_id, 0),
                "error": "Product not found in work order",
            })
            continue

        already = delivered.get(product_id, 0)
        left = max(0, int(order_item.quantity) - already)
        if quantity > left:
            errors.append({
                "product_id": product_id,
                "product_name": order_item.product.name if order_item.product else None,
                "requested": quantity,
                "remaining": left,
                "already_delivered": already,
                "error": f"Requested quantity ({quantity}) exceeds remaining quantity ({left})",
            })

    if errors:
        logger.warning(
            "Delivery request rejected",
            extra={"work_order_id": work_order.id, "error_count": len(errors)},
        )
        raise DeliveryQuantityError(errors)


def sync_work_order_status(
    db: Session,
    work_order: WorkOrder,
    include_cancelled: Optional[bool] = None,
) -> bool:
    """
    Recompute the work order status from delivered quantities.

    Cancelled work orders are left alone. Returns True if the status changed.
    """
    if work_order.status == WorkOrderStatus.CANCELLED.value:
        return False

    complete = is_fully_delivered(db, work_order, include_cancelled)
    old_status = work_order.status

    if complete and old_status != WorkOrderStatus.COMPLETED.value:
        apply_work_order_status(work_order, WorkOrderStatus.COMPLETED.value)
    elif not complete and old_status == WorkOrderStatus.COMPLETED.value:
        apply_work_order_status(work_order, WorkOrderStatus.PENDING.value)
    else:
        return False

    db.flush()
    logger.info(
        f"Work order {work_order.id}: {old_status} → {work_order.status} (deliveries)",
        extra={"work_order_id": work_order.id},
    )
    return True
