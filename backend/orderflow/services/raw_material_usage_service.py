"""
Raw Material Usage Service

Manual usage entries on the raw material ledger. Creating a row deducts
stock, deleting one restores it, editing one does both. Rows written by
order confirmation are managed the same way.

Caller commits.
"""
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from orderflow.exceptions import InsufficientRawMaterialError, NotFoundError
from orderflow.logging_config import get_logger
from orderflow.models.order import Order, OrderItem
from orderflow.models.product import Product
from orderflow.models.raw_material_usage import RawMaterialUsage
from orderflow.services import inventory_ledger

logger = get_logger(__name__)


def _check_reference(db: Session, model, resource: str, ref_id: Optional[int]) -> None:
    if ref_id is not None and db.get(model, ref_id) is None:
        raise NotFoundError(resource, ref_id)


def _deduct_checked(db: Session, raw_material_id: int, quantity: Decimal) -> None:
    check = inventory_ledger.check_availability(db, raw_material_id, quantity, lock=True)
    if not check.sufficient:
        raise InsufficientRawMaterialError([check.to_dict()])
    inventory_ledger.deduct(db, raw_material_id, quantity)


def get_usage(db: Session, usage_id: int) -> RawMaterialUsage:
    usage = db.query(RawMaterialUsage).filter(RawMaterialUsage.id == usage_id).first()
    if not usage:
        raise NotFoundError("Raw material usage", usage_id)
    return usage


def list_usages(
    db: Session,
    order_id: Optional[int] = None,
    raw_material_id: Optional[int] = None,
    offset: int = 0,
    limit: int = 50,
) -> Tuple[List[RawMaterialUsage], int]:
    """Usage rows newest first. Returns (page, total)."""
    query = db.query(RawMaterialUsage)
    if order_id:
        query = query.filter(RawMaterialUsage.order_id == order_id)
    if raw_material_id:
        query = query.filter(RawMaterialUsage.raw_material_id == raw_material_id)
    total = query.count()
    items = query.order_by(RawMaterialUsage.id.desc()).offset(offset).limit(limit).all()
    return items, total


def create_usage(
    db: Session,
    raw_material_id: int,
    quantity_used,
    order_id: Optional[int] = None,
    order_item_id: Optional[int] = None,
    product_id: Optional[int] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> RawMaterialUsage:
    """
    Record a manual usage and deduct it from stock.

    Raises:
        NotFoundError: raw material or a referenced order/item/product missing
        InsufficientRawMaterialError: stock cannot cover quantity_used
    """
    quantity = inventory_ledger.to_decimal(quantity_used)
    _check_reference(db, Order, "Order", order_id)
    _check_reference(db, OrderItem, "Order item", order_item_id)
    _check_reference(db, Product, "Product", product_id)

    _deduct_checked(db, raw_material_id, quantity)
    usage = RawMaterialUsage(
        raw_material_id=raw_material_id,
        quantity_used=quantity,
        order_id=order_id,
        order_item_id=order_item_id,
        product_id=product_id,
        notes=notes,
        created_by=created_by,
    )
    db.add(usage)
    db.flush()
    logger.info(
        f"Raw material usage recorded: material {raw_material_id} -{quantity}",
        extra={"usage_id": usage.id, "raw_material_id": raw_material_id},
    )
    return usage


def update_usage(
    db: Session,
    usage_id: int,
    raw_material_id: Optional[int] = None,
    quantity_used=None,
    notes: Optional[str] = None,
) -> RawMaterialUsage:
    """
    Edit a usage row: give the old quantity back, then check and deduct the
    new one (possibly from a different material). If the new quantity does
    not fit, InsufficientRawMaterialError is raised and the enclosing
    transaction rolls the restore back too.
    """
    usage = get_usage(db, usage_id)
    new_material_id = raw_material_id if raw_material_id is not None else usage.raw_material_id
    new_quantity = (
        inventory_ledger.to_decimal(quantity_used)
        if quantity_used is not None
        else inventory_ledger.to_decimal(usage.quantity_used)
    )

    # Make sure the target exists before touching stock
    inventory_ledger.get_raw_material(db, new_material_id)

    inventory_ledger.restore(db, usage.raw_material_id, usage.quantity_used)
    _deduct_checked(db, new_material_id, new_quantity)

    usage.raw_material_id = new_material_id
    usage.quantity_used = new_quantity
    if notes is not None:
        usage.notes = notes
    db.flush()
    return usage


def delete_usage(db: Session, usage_id: int) -> None:
    """Delete a usage row, restoring its quantity to stock."""
    usage = get_usage(db, usage_id)
    inventory_ledger.restore(db, usage.raw_material_id, usage.quantity_used)
    db.delete(usage)
    db.flush()
    logger.info(f"Raw material usage {usage_id} deleted, stock restored")


def delete_usages(db: Session, usage_ids: List[int]) -> Tuple[int, List[int]]:
    """
    Delete several usage rows, restoring stock for each.

    Returns (deleted_count, ids that were not found).
    """
    wanted = list(dict.fromkeys(usage_ids))
    usages = (
        db.query(RawMaterialUsage)
        .filter(RawMaterialUsage.id.in_(wanted))
        .order_by(RawMaterialUsage.raw_material_id, RawMaterialUsage.id)
        .all()
    )
    found = {u.id for u in usages}
    for usage in usages:
        inventory_ledger.restore(db, usage.raw_material_id, usage.quantity_used)
        db.delete(usage)
    db.flush()
    not_found = [uid for uid in wanted if uid not in found]
    return len(usages), not_found
