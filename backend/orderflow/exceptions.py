"""
Orderflow - Custom Exception Hierarchy

Provides structured, typed exceptions with error codes for consistent
error handling across the application. Services raise these; the handlers
in main.py turn them into the response envelope.

Usage:
    from orderflow.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Work order", work_order_id)
    raise ValidationError("Quantity must be positive", field="quantity")
"""
from typing import Any, Dict, List, Optional


class OrderflowException(Exception):
    """
    Base exception for all Orderflow errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., "NOT_FOUND", "VALIDATION_ERROR")
        status_code: HTTP status code to return
        details: Additional context for the caller
    """

    error_code: str = "ORDERFLOW_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the API response envelope."""
        return {
            "success": False,
            "message": self.message,
            "data": self.details or None,
            "error": self.error_code,
        }


# ===================
# 422 Validation Errors
# ===================


class ValidationError(OrderflowException):
    """Raised when input is malformed or semantically invalid."""

    error_code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details=details)


class InsufficientRawMaterialError(ValidationError):
    """Raised when one or more raw materials cannot cover a requirement."""

    error_code = "INSUFFICIENT_RAW_MATERIAL"

    def __init__(
        self,
        insufficient: List[Dict[str, Any]],
        *,
        message: str = "Insufficient raw material stock",
    ):
        self.insufficient = insufficient
        super().__init__(message, details={"insufficient_materials": insufficient})


class DeliveryQuantityError(ValidationError):
    """Raised when requested delivery lines exceed what remains to deliver."""

    error_code = "DELIVERY_QUANTITY_EXCEEDED"

    def __init__(
        self,
        errors: List[Dict[str, Any]],
        *,
        message: str = "Delivery items exceed remaining quantities",
    ):
        self.errors = errors
        super().__init__(message, details={"errors": errors})


# ===================
# 404 Not Found Errors
# ===================


class NotFoundError(OrderflowException):
    """Raised when a resource is not found."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Any = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["resource"] = resource
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details=details)


# ===================
# 409 Conflict Errors
# ===================


class ConflictError(OrderflowException):
    """Raised when there's a resource conflict."""

    error_code = "CONFLICT"
    status_code = 409

    def __init__(
        self,
        message: str = "Resource conflict",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)


class InvalidStateError(ConflictError):
    """Raised when an operation is invalid for the current state."""

    error_code = "INVALID_STATE"

    def __init__(
        self,
        message: str = "Operation not allowed in current state",
        *,
        current_state: Optional[str] = None,
        allowed_states: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if current_state:
            details["current_state"] = current_state
        if allowed_states is not None:
            details["allowed_states"] = allowed_states
        super().__init__(message, details=details)

