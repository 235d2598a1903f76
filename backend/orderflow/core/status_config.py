"""Status Configuration and Transition Rules

This module defines valid status values and allowed manual transitions for
Orders, Work Orders and Delivery Orders.

Automatic work order transitions (completed <-> pending, driven by delivered
quantities) bypass the manual table; see services/delivery_fulfillment.py.
"""
from enum import Enum
from typing import Dict, List, Set


# =============================================================================
# Order Status
# =============================================================================

class OrderStatus(str, Enum):
    """Valid status values for Orders.

    Only draft and confirm are driven by the confirmation workflow; the
    remaining values are kept for data written by other systems.
    """
    DRAFT = "draft"
    CONFIRM = "confirm"
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Statuses in which order items may still be edited
EDITABLE_ORDER_STATUSES: Set[str] = {OrderStatus.DRAFT.value}


# =============================================================================
# Work Order Status
# =============================================================================

class WorkOrderStatus(str, Enum):
    """Valid status values for Work Orders"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


WORK_ORDER_TRANSITIONS: Dict[str, Set[str]] = {
    WorkOrderStatus.PENDING: {
        WorkOrderStatus.IN_PROGRESS,
        WorkOrderStatus.COMPLETED,
        WorkOrderStatus.CANCELLED,
    },
    WorkOrderStatus.IN_PROGRESS: {
        WorkOrderStatus.PENDING,
        WorkOrderStatus.COMPLETED,
        WorkOrderStatus.CANCELLED,
    },
    WorkOrderStatus.COMPLETED: {
        WorkOrderStatus.PENDING,
        WorkOrderStatus.IN_PROGRESS,
        WorkOrderStatus.CANCELLED,
    },
    WorkOrderStatus.CANCELLED: set(),  # Terminal state
}


def get_allowed_work_order_transitions(current_status: str) -> List[str]:
    """Get list of allowed next statuses for a work order"""
    return sorted(s.value for s in WORK_ORDER_TRANSITIONS.get(current_status, set()))


def is_valid_work_order_transition(current_status: str, new_status: str) -> bool:
    """Check if a manual work order status transition is valid"""
    if current_status == new_status:
        return True  # No change is always valid
    allowed = WORK_ORDER_TRANSITIONS.get(current_status, set())
    return new_status in allowed


# =============================================================================
# Delivery Order Status
# =============================================================================

class DeliveryOrderStatus(str, Enum):
    """Valid status values for Delivery Orders"""
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Only pending delivery orders may be deleted
DELETABLE_DELIVERY_STATUSES: Set[str] = {DeliveryOrderStatus.PENDING.value}
