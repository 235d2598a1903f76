"""
API v1 Router - Orderflow
"""
from fastapi import APIRouter
from orderflow.api.v1.endpoints import (
    orders,
    work_orders,
    delivery_orders,
    raw_material_usages,
    raw_materials,
    finished_goods,
)

router = APIRouter()

# Orders and confirmation
router.include_router(orders.router)

# Work Orders (SPK)
router.include_router(work_orders.router)

# Delivery Orders
router.include_router(delivery_orders.router)

# Raw material ledger
router.include_router(raw_material_usages.router)
router.include_router(raw_materials.router)

# Production output
router.include_router(finished_goods.router)
