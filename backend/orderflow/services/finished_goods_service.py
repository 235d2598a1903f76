"""
Finished Goods Service

Production output recorded against a work order, and a per-product
ordered vs produced summary. Caller commits.
"""
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from orderflow.core.status_config import WorkOrderStatus
from orderflow.exceptions import InvalidStateError, NotFoundError, ValidationError
from orderflow.logging_config import get_logger
from orderflow.models.finished_good import FinishedGood
from orderflow.services.work_order_service import get_work_order

logger = get_logger(__name__)


def record_finished_good(
    db: Session,
    work_order_id: int,
    product_id: int,
    quantity: int,
    produced_at: Optional[datetime] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> FinishedGood:
    """
    Raises:
        NotFoundError: work order missing
        InvalidStateError: work order cancelled
        ValidationError: product not on the work order's order, or quantity < 1
    """
    if quantity is None or int(quantity) < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity", value=quantity)

    work_order = get_work_order(db, work_order_id)
    if work_order.status == WorkOrderStatus.CANCELLED.value:
        raise InvalidStateError(
            "Cannot record production for a cancelled work order",
            current_state=work_order.status,
        )
    if product_id not in {item.product_id for item in work_order.order.items}:
        raise ValidationError(
            "Product not found in work order", field="product_id", value=product_id
        )

    finished_good = FinishedGood(
        work_order=work_order,
        product_id=product_id,
        quantity=int(quantity),
        produced_at=produced_at or datetime.utcnow(),
        notes=notes,
        created_by=created_by,
    )
    db.add(finished_good)
    db.flush()
    logger.info(
        f"Finished good recorded: work order {work_order.id}, product {product_id} x{quantity}",
        extra={"finished_good_id": finished_good.id},
    )
    return finished_good


def list_finished_goods(db: Session, work_order_id: int) -> List[FinishedGood]:
    get_work_order(db, work_order_id)
    return (
        db.query(FinishedGood)
        .filter(FinishedGood.work_order_id == work_order_id)
        .order_by(FinishedGood.produced_at, FinishedGood.id)
        .all()
    )


def get_finished_good(db: Session, finished_good_id: int) -> FinishedGood:
    finished_good = db.query(FinishedGood).filter(FinishedGood.id == finished_good_id).first()
    if not finished_good:
        raise NotFoundError("Finished good", finished_good_id)
    return finished_good


def update_finished_good(
    db: Session,
    finished_good_id: int,
    quantity: Optional[int] = None,
    produced_at: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> FinishedGood:
    """
    Correct a production record. The work order and product stay fixed.

    Raises:
        NotFoundError: finished good missing
        InvalidStateError: its work order is cancelled
        ValidationError: quantity < 1
    """
    if quantity is not None and int(quantity) < 1:
        raise ValidationError("Quantity must be at least 1", field="quantity", value=quantity)

    finished_good = get_finished_good(db, finished_good_id)
    work_order = get_work_order(db, finished_good.work_order_id, include_deleted=True)
    if work_order.status == WorkOrderStatus.CANCELLED.value:
        raise InvalidStateError(
            "Cannot change production for a cancelled work order",
            current_state=work_order.status,
        )

    if quantity is not None:
        finished_good.quantity = int(quantity)
    if produced_at is not None:
        finished_good.produced_at = produced_at
    if notes is not None:
        finished_good.notes = notes
    db.flush()
    logger.info(
        f"Finished good {finished_good.id} updated: work order {work_order.id}, "
        f"product {finished_good.product_id} x{finished_good.quantity}"
    )
    return finished_good


def delete_finished_good(db: Session, finished_good_id: int) -> None:
    finished_good = get_finished_good(db, finished_good_id)
    db.delete(finished_good)
    db.flush()


def produced_quantities(db: Session, work_order_id: int) -> Dict[int, int]:
    rows = (
        db.query(FinishedGood.product_id, func.sum(FinishedGood.quantity))
        .filter(FinishedGood.work_order_id == work_order_id)
        .group_by(FinishedGood.product_id)
        .all()
    )
    return {product_id: int(total or 0) for product_id, total in rows}


def production_summary(db: Session, work_order_id: int) -> List[dict]:
    """Per ordered product: ordered, produced and outstanding (never negative)."""
    work_order = get_work_order(db, work_order_id)
    produced = produced_quantities(db, work_order.id)
    lines = []
    for item in work_order.order.items:
        done = produced.get(item.product_id, 0)
        lines.append({
            "product_id": item.product_id,
            "product_name": item.product.name if item.product else "Unknown",
            "ordered": int(item.quantity),
            "produced": done,
            "outstanding": max(0, int(item.quantity) - done),
        })
    return lines
