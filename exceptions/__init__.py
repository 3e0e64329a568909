"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    StorageError,

    # Orders
    OrderNotFoundError,
    OrderCompletedError,
    InvalidStatusTransitionError,

    # Varieties
    VarietyNotFoundError,
    UnknownVarietyError,
    VarietyExistsError,
    VarietyInUseError,

    # Purchase orders
    PurchaseOrderNotFoundError,

    # Logs
    WasteEntryNotFoundError,
    DeliveryExpenseNotFoundError,

    # Imports
    CSVImportError,
    SnapshotImportError,

    # Forecast
    ForecastServiceError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "StorageError",

    # Orders
    "OrderNotFoundError",
    "OrderCompletedError",
    "InvalidStatusTransitionError",

    # Varieties
    "VarietyNotFoundError",
    "UnknownVarietyError",
    "VarietyExistsError",
    "VarietyInUseError",

    # Purchase orders
    "PurchaseOrderNotFoundError",

    # Logs
    "WasteEntryNotFoundError",
    "DeliveryExpenseNotFoundError",

    # Imports
    "CSVImportError",
    "SnapshotImportError",

    # Forecast
    "ForecastServiceError",
]
