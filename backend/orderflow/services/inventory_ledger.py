"""
Inventory Ledger

Raw material stock checks and adjustments. Every stock mutation in the
codebase goes through deduct() / restore().

All functions flush but never commit - the caller commits.
"""
from decimal import Decimal
from typing import Iterable, List, NamedTuple, Union

from sqlalchemy.orm import Session

from orderflow.core.config import settings
from orderflow.exceptions import NotFoundError, ValidationError
from orderflow.logging_config import get_logger
from orderflow.models.raw_material import RawMaterial

logger = get_logger(__name__)

Quantity = Union[Decimal, int, float, str]

ZERO = Decimal("0")


class StockCheck(NamedTuple):
    """Result of an availability check for one raw material."""
    raw_material_id: int
    name: str
    sufficient: bool
    required: Decimal
    available: Decimal
    shortage: Decimal

    def to_dict(self) -> dict:
        return {
            "raw_material_id": self.raw_material_id,
            "raw_material_name": self.name,
            "required": float(self.required),
            "available": float(self.available),
            "shortage": float(self.shortage),
        }


def to_decimal(value: Quantity) -> Decimal:
    """Normalize a quantity to Decimal (floats go through str to avoid binary noise)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def get_raw_material(db: Session, raw_material_id: int, lock: bool = False) -> RawMaterial:
    """
    Load a raw material or raise NotFoundError.

    With lock=True the row is read with SELECT ... FOR UPDATE so concurrent
    deductions serialize on it until the caller's transaction ends.
    """
    query = db.query(RawMaterial).filter(RawMaterial.id == raw_material_id)
    if lock:
        query = query.with_for_update()
    material = query.first()
    if not material:
        raise NotFoundError("Raw material", raw_material_id)
    return material


def check_availability(
    db: Session,
    raw_material_id: int,
    quantity_needed: Quantity,
    lock: bool = False,
) -> StockCheck:
    """
    Check whether current stock covers quantity_needed.

    Raises:
        NotFoundError: raw material does not exist
    """
    required = to_decimal(quantity_needed)
    material = get_raw_material(db, raw_material_id, lock=lock)
    available = to_decimal(material.stock or 0)
    shortage = max(ZERO, required - available)
    return StockCheck(
        raw_material_id=material.id,
        name=material.name,
        sufficient=available >= required,
        required=required,
        available=available,
        shortage=shortage,
    )


def deduct(db: Session, raw_material_id: int, quantity: Quantity) -> RawMaterial:
    """
    Remove quantity from stock, clamping at zero.

    Does not check sufficiency; callers that must refuse on shortage run
    check_availability() first.
    """
    amount = to_decimal(quantity)
    if amount < 0:
        raise ValidationError("Deduction quantity cannot be negative", field="quantity", value=amount)

    material = get_raw_material(db, raw_material_id, lock=True)
    before = to_decimal(material.stock or 0)
    after = max(ZERO, before - amount)
    if before - amount < 0:
        logger.warning(
            "Stock deduction clamped at zero",
            extra={
                "raw_material_id": raw_material_id,
                "stock_before": str(before),
                "requested": str(amount),
            },
        )
    material.stock = after
    db.flush()
    logger.debug(f"Raw material {raw_material_id}: stock {before} -> {after}")
    return material


def restore(db: Session, raw_material_id: int, quantity: Quantity) -> RawMaterial:
    """Add quantity back to stock."""
    amount = to_decimal(quantity)
    if amount < 0:
        raise ValidationError("Restore quantity cannot be negative", field="quantity", value=amount)

    material = get_raw_material(db, raw_material_id, lock=True)
    before = to_decimal(material.stock or 0)
    material.stock = before + amount
    db.flush()
    logger.debug(f"Raw material {raw_material_id}: stock {before} -> {material.stock}")
    return material


def low_stock_threshold(material: RawMaterial) -> Decimal:
    """Per-material lower limit, or the global LOW_STOCK_THRESHOLD."""
    if material.lower_limit is not None:
        return to_decimal(material.lower_limit)
    return to_decimal(settings.LOW_STOCK_THRESHOLD)


def low_stock_materials(db: Session, raw_material_ids: Iterable[int]) -> List[RawMaterial]:
    """Materials among raw_material_ids whose stock is below their threshold."""
    ids = sorted(set(raw_material_ids))
    if not ids:
        return []
    materials = (
        db.query(RawMaterial)
        .filter(RawMaterial.id.in_(ids), RawMaterial.active.is_(True))
        .order_by(RawMaterial.id)
        .all()
    )
    return [m for m in materials if to_decimal(m.stock or 0) < low_stock_threshold(m)]
