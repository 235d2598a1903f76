"""
Order Service

Order aggregate: creation, editing of customer data and lines, lookup and
deletion. Confirmation lives in order_confirmation.py.

Caller commits.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from orderflow.core.status_config import EDITABLE_ORDER_STATUSES, OrderStatus
from orderflow.exceptions import InvalidStateError, NotFoundError, ValidationError
from orderflow.logging_config import get_logger
from orderflow.models.order import Order, OrderItem
from orderflow.models.product import Product
from orderflow.schemas.order import OrderCreate, OrderItemInput, OrderUpdate
from orderflow.services.order_confirmation import release_confirmation

logger = get_logger(__name__)

CUSTOMER_FIELDS = ("name", "email", "phone", "address", "delivery_address", "po_number", "notes")


def generate_order_number(db: Session, now: Optional[datetime] = None) -> str:
    """
    Next order number for the year: ORD-YYYY-NNNN.

    Locks the year's last order row so concurrent requests don't collide;
    the unique constraint on order_number is the backstop.
    """
    year = (now or datetime.utcnow()).year
    last_order = (
        db.query(Order)
        .filter(Order.order_number.like(f"ORD-{year}-%"))
        .order_by(Order.order_number.desc())
        .with_for_update()
        .first()
    )
    if last_order:
        next_num = int(last_order.order_number.split("-")[2]) + 1
    else:
        next_num = 1
    return f"ORD-{year}-{next_num:04d}"


def _load_products(db: Session, items: List[OrderItemInput]) -> Dict[int, Product]:
    product_ids = {item.product_id for item in items}
    if not product_ids:
        return {}
    products = db.query(Product).filter(Product.id.in_(product_ids)).all()
    found = {p.id: p for p in products}
    missing = sorted(product_ids - set(found))
    if missing:
        raise ValidationError(
            f"Unknown product(s): {', '.join(str(pid) for pid in missing)}",
            field="items",
            details={"missing_product_ids": missing},
        )
    return found


def _replace_items(db: Session, order: Order, items: List[OrderItemInput]) -> None:
    """Upsert lines by product and drop lines no longer present."""
    products = _load_products(db, items)
    existing = {item.product_id: item for item in order.items}
    wanted = set()

    for data in items:
        wanted.add(data.product_id)
        line = existing.get(data.product_id)
        if line is None:
            order.items.append(OrderItem(
                product=products[data.product_id],
                quantity=data.quantity,
                remark=data.remark,
            ))
        else:
            line.quantity = data.quantity
            line.remark = data.remark

    for product_id, line in existing.items():
        if product_id not in wanted:
            order.items.remove(line)


def create_order(db: Session, data: OrderCreate, created_by: Optional[str] = None) -> Order:
    """Create a draft order, optionally with its first lines."""
    order = Order(
        order_number=generate_order_number(db),
        status=OrderStatus.DRAFT.value,
        created_by=created_by,
        **{field: getattr(data, field) for field in CUSTOMER_FIELDS},
    )
    db.add(order)
    if data.items:
        _replace_items(db, order, data.items)
    db.flush()
    logger.info(
        f"Order {order.order_number} created",
        extra={"order_id": order.id, "item_count": len(order.items)},
    )
    return order


def get_order(db: Session, order_id: int) -> Order:
    """Load an order that is not soft-deleted, or raise NotFoundError."""
    order = (
        db.query(Order)
        .filter(Order.id == order_id, Order.deleted_at.is_(None))
        .first()
    )
    if not order:
        raise NotFoundError("Order", order_id)
    return order


def list_orders(
    db: Session,
    status: Optional[str] = None,
    search: Optional[str] = None,
    offset: int = 0,
    limit: int = 50,
) -> Tuple[List[Order], int]:
    """Orders newest first, optionally filtered. Returns (page, total)."""
    query = db.query(Order).filter(Order.deleted_at.is_(None))
    if status:
        query = query.filter(Order.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            (Order.order_number.ilike(pattern))
            | (Order.name.ilike(pattern))
            | (Order.po_number.ilike(pattern))
        )
    total = query.count()
    orders = query.order_by(Order.id.desc()).offset(offset).limit(limit).all()
    return orders, total


def update_order(db: Session, order_id: int, data: OrderUpdate) -> Order:
    """
    Update customer fields and, for draft orders, replace the lines.

    Raises:
        InvalidStateError: items supplied for an order that is not a draft
        ValidationError: unknown product in items
    """
    order = get_order(db, order_id)
    changes = data.model_dump(exclude_unset=True)

    if "items" in changes and data.items is not None:
        if order.status not in EDITABLE_ORDER_STATUSES:
            raise InvalidStateError(
                "Order items can only be changed while the order is a draft",
                current_state=order.status,
                allowed_states=sorted(EDITABLE_ORDER_STATUSES),
            )
        _replace_items(db, order, data.items)

    for field in CUSTOMER_FIELDS:
        if field in changes and changes[field] is not None:
            setattr(order, field, changes[field])

    db.flush()
    return order


def delete_order(db: Session, order_id: int) -> Order:
    """
    Soft delete an order. A confirmed order first gives its stock back and
    loses its work order (refused once deliveries exist).
    """
    order = get_order(db, order_id)
    if order.status == OrderStatus.CONFIRM.value:
        release_confirmation(db, order)
    order.deleted_at = datetime.utcnow()
    db.flush()
    logger.info(f"Order {order.order_number} deleted", extra={"order_id": order.id})
    return order
