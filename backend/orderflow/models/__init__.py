"""Database models"""
from orderflow.models.raw_material import RawMaterial
from orderflow.models.product import Product, ProductIngredient
from orderflow.models.order import Order, OrderItem
from orderflow.models.raw_material_usage import RawMaterialUsage
from orderflow.models.work_order import WorkOrder
from orderflow.models.delivery_order import DeliveryOrder, DeliveryOrderItem
from orderflow.models.finished_good import FinishedGood

__all__ = [
    # Inventory
    "RawMaterial",
    "RawMaterialUsage",
    # Catalogue
    "Product",
    "ProductIngredient",
    # Orders
    "Order",
    "OrderItem",
    # Fulfillment
    "WorkOrder",
    "DeliveryOrder",
    "DeliveryOrderItem",
    "FinishedGood",
]
