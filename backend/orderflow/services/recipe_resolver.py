"""
Recipe Resolver

Expands order items through their product recipes into raw material
requirements. Pure: reads the loaded relationships, never touches stock.
"""
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List, NamedTuple

from orderflow.exceptions import NotFoundError
from orderflow.models.order import OrderItem


class UsageLine(NamedTuple):
    """One (order item × ingredient) consumption line."""
    order_item_id: int
    product_id: int
    raw_material_id: int
    quantity: Decimal


def _product_of(item: OrderItem):
    product = item.product
    if product is None:
        raise NotFoundError("Product", item.product_id)
    return product


def usage_lines(items: Iterable[OrderItem]) -> List[UsageLine]:
    """
    Expand items into usage lines, in item order then ingredient sequence.

    quantity = ingredient quantity per unit × item quantity
    """
    lines: List[UsageLine] = []
    for item in items:
        product = _product_of(item)
        for ingredient in product.ingredients:
            lines.append(UsageLine(
                order_item_id=item.id,
                product_id=product.id,
                raw_material_id=ingredient.raw_material_id,
                quantity=Decimal(ingredient.quantity) * int(item.quantity),
            ))
    return lines


def required_materials(items: Iterable[OrderItem]) -> Dict[int, Decimal]:
    """
    Total quantity needed per raw material across all items.

    Products without ingredients contribute nothing.
    """
    totals: Dict[int, Decimal] = OrderedDict()
    for line in usage_lines(items):
        totals[line.raw_material_id] = totals.get(line.raw_material_id, Decimal("0")) + line.quantity
    return dict(totals)
