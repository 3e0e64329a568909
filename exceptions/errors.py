"""
Custom exception classes for the application.

Every error carries a machine-readable code, a human message, the HTTP
status the API answers with, and optional details.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "ORDER_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class StorageError(AppError):
    """Snapshot storage read/write failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="STORAGE_ERROR",
            message=f"Storage {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# ORDER ERRORS
# ===================

class OrderNotFoundError(NotFoundError):
    """Order not found."""

    def __init__(self, order_id: str):
        super().__init__(
            resource="Order",
            identifier=order_id,
            code="ORDER_NOT_FOUND"
        )


class OrderCompletedError(ConflictError):
    """Completed orders are read-only."""

    def __init__(self, order_id: str, action: str):
        super().__init__(
            code="ORDER_COMPLETED",
            message=f"Cannot {action} a completed order",
            details={"order_id": order_id, "action": action}
        )


class InvalidStatusTransitionError(ValidationError):
    """Invalid status transition."""

    def __init__(self, current_status: str, new_status: str, allowed_from: Optional[list[str]] = None):
        super().__init__(
            code="INVALID_STATUS_TRANSITION",
            message=f"Cannot transition from {current_status} to {new_status}",
            details={
                "current_status": current_status,
                "new_status": new_status,
                "allowed_from": allowed_from or [],
            }
        )


# ===================
# VARIETY ERRORS
# ===================

class VarietyNotFoundError(NotFoundError):
    """Variety not found."""

    def __init__(self, name: str):
        super().__init__(
            resource="Variety",
            identifier=name,
            code="VARIETY_NOT_FOUND"
        )


class UnknownVarietyError(ValidationError):
    """Variety name is not in the registry."""

    def __init__(self, name: str, row: Optional[int] = None):
        details = {"variety": name}
        if row is not None:
            details["row"] = row
        super().__init__(
            code="UNKNOWN_VARIETY",
            message=f'"{name}" is not a valid microgreen variety',
            details=details
        )


class VarietyExistsError(DuplicateError):
    """Variety name already registered (case-insensitive)."""

    def __init__(self, name: str):
        super().__init__(
            resource="Variety",
            field="name",
            value=name
        )


class VarietyInUseError(ConflictError):
    """Variety still referenced by orders."""

    def __init__(self, name: str, order_count: int):
        super().__init__(
            code="VARIETY_IN_USE",
            message=f'Cannot delete "{name}". It is currently used in one or more orders.',
            details={"variety": name, "order_count": order_count}
        )


# ===================
# PURCHASE ORDER ERRORS
# ===================

class PurchaseOrderNotFoundError(NotFoundError):
    """Purchase order not found."""

    def __init__(self, po_id: str):
        super().__init__(
            resource="Purchase order",
            identifier=po_id,
            code="PURCHASE_ORDER_NOT_FOUND"
        )


# ===================
# LOG ERRORS
# ===================

class WasteEntryNotFoundError(NotFoundError):
    """Waste log entry not found."""

    def __init__(self, entry_id: str):
        super().__init__(
            resource="Waste entry",
            identifier=entry_id,
            code="WASTE_ENTRY_NOT_FOUND"
        )


class DeliveryExpenseNotFoundError(NotFoundError):
    """Delivery expense not found."""

    def __init__(self, expense_id: str):
        super().__init__(
            resource="Delivery expense",
            identifier=expense_id,
            code="DELIVERY_EXPENSE_NOT_FOUND"
        )


# ===================
# IMPORT ERRORS
# ===================

class CSVImportError(ValidationError):
    """CSV import rejected; nothing was imported."""

    def __init__(
        self,
        message: str,
        row: Optional[int] = None,
        details: Optional[dict] = None
    ):
        full_message = f"Row {row}: {message}" if row is not None else message
        super().__init__(
            code="CSV_IMPORT_ERROR",
            message=full_message,
            details={"row": row, **(details or {})}
        )
        self.row = row


class SnapshotImportError(ValidationError):
    """Backup document could not be restored."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="SNAPSHOT_IMPORT_ERROR",
            message=f"Import failed: {message}",
            details=details
        )


# ===================
# FORECAST ERRORS
# ===================

class ForecastServiceError(ExternalServiceError):
    """Demand forecast could not be produced."""

    def __init__(self, message: str = "Failed to communicate with the forecasting service.", details: Optional[dict] = None):
        super().__init__(
            service="forecast",
            message=message,
            details=details
        )
