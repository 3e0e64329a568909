"""
Pydantic models for validation and serialization.

JSON uses camelCase keys (clientName, createdAt, ...); Python code uses
snake_case attribute names.
"""

from models.base import BaseSchema
from models.variety import (
    MicrogreenVariety,
    SeedInventoryItem,
    SeedInventoryUpdate,
    DeliveryModeCreate,
)
from models.order import (
    OrderStatus,
    DISPATCHABLE_STATUSES,
    HARVEST_RECORDED_STATUSES,
    SOLD_STATUSES,
    OrderItem,
    Order,
    OrderCreate,
    OrderUpdate,
    DispatchRequest,
    CompletionRequest,
    HarvestRequest,
    ShortfallItem,
    HarvestResult,
)
from models.sowing import (
    HarvestLogEntry,
    SowingLogSave,
    SowingPlanItem,
    SeedStatus,
    IntelligentSowingPlanItem,
    SeedPurchaseItem,
    IntelligentSowingPlan,
    UpcomingHarvestItem,
    UpcomingHarvestDay,
)
from models.forecast import (
    WeeklyForecastPrediction,
    WeeklyForecast,
    ForecastHistoryPoint,
    ForecastResponse,
)
from models.purchase_order import (
    PurchaseOrderStatus,
    is_valid_po_transition,
    PurchaseOrderItem,
    PurchaseOrder,
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
)
from models.logs import (
    WasteLogEntryCreate,
    WasteLogEntry,
    DeliveryExpenseCreate,
    DeliveryExpense,
)
from models.reports import (
    YieldRatioData,
    SeedToSaleRow,
    ReportPeriod,
    ClientBoxes,
    PeriodReport,
    VarietyBoxes,
    LocationSalesRow,
    ClientEngagementRow,
    ClientEngagementReport,
    ManifestOrder,
    ManifestGroup,
)
from models.app_state import AppData, initial_app_data

__all__ = [
    # Base
    "BaseSchema",

    # Varieties
    "MicrogreenVariety",
    "SeedInventoryItem",
    "SeedInventoryUpdate",
    "DeliveryModeCreate",

    # Orders
    "OrderStatus",
    "DISPATCHABLE_STATUSES",
    "HARVEST_RECORDED_STATUSES",
    "SOLD_STATUSES",
    "OrderItem",
    "Order",
    "OrderCreate",
    "OrderUpdate",
    "DispatchRequest",
    "CompletionRequest",
    "HarvestRequest",
    "ShortfallItem",
    "HarvestResult",

    # Sowing
    "HarvestLogEntry",
    "SowingLogSave",
    "SowingPlanItem",
    "SeedStatus",
    "IntelligentSowingPlanItem",
    "SeedPurchaseItem",
    "IntelligentSowingPlan",
    "UpcomingHarvestItem",
    "UpcomingHarvestDay",

    # Forecast
    "WeeklyForecastPrediction",
    "WeeklyForecast",
    "ForecastHistoryPoint",
    "ForecastResponse",

    # Purchase orders
    "PurchaseOrderStatus",
    "is_valid_po_transition",
    "PurchaseOrderItem",
    "PurchaseOrder",
    "PurchaseOrderCreate",
    "PurchaseOrderUpdate",

    # Logs
    "WasteLogEntryCreate",
    "WasteLogEntry",
    "DeliveryExpenseCreate",
    "DeliveryExpense",

    # Reports
    "YieldRatioData",
    "SeedToSaleRow",
    "ReportPeriod",
    "ClientBoxes",
    "PeriodReport",
    "VarietyBoxes",
    "LocationSalesRow",
    "ClientEngagementRow",
    "ClientEngagementReport",
    "ManifestOrder",
    "ManifestGroup",

    # State
    "AppData",
    "initial_app_data",
]
