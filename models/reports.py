"""
Report schemas.

All reports are derived on demand from application state and never stored.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import date

from models.base import BaseSchema


class YieldRatioData(BaseSchema):
    """Boxes harvested per tray sown for one variety over a window."""

    variety: str
    trays_sown: int = 0
    boxes_harvested: int = 0
    yield_ratio: Optional[float] = Field(None, description="None when no trays were sown")


class SeedToSaleRow(BaseSchema):
    """Seed-to-sale funnel for one variety."""

    variety: str
    seed_purchased: float = 0
    potential_trays: float = 0
    potential_boxes: float = 0
    boxes_sold: int = 0
    conversion_rate: float = Field(0, description="Percent of potential boxes sold")


class ReportPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ClientBoxes(BaseSchema):
    name: str
    boxes: int


class PeriodReport(BaseSchema):
    """Sales summary for a day, ISO week, month or year."""

    period: ReportPeriod
    period_start: date
    period_end: date
    total_orders: int = 0
    total_boxes: int = 0
    completed_orders: int = 0
    shortfall_orders: int = 0
    total_shortfall_boxes: int = 0
    total_cash_received: float = 0
    order_status_count: dict[str, int] = Field(default_factory=dict)
    variety_count: dict[str, int] = Field(default_factory=dict)
    delivery_mode_count: dict[str, int] = Field(default_factory=dict)
    top_clients: list[ClientBoxes] = Field(default_factory=list)


class VarietyBoxes(BaseSchema):
    variety: str
    boxes: int


class LocationSalesRow(BaseSchema):
    """Completed-order sales for one delivery location."""

    location: str
    total_orders: int = 0
    total_boxes: int = 0
    total_cash: float = 0
    top_varieties: list[VarietyBoxes] = Field(default_factory=list)


class ClientEngagementRow(BaseSchema):
    client_name: str
    last_month_boxes: int
    this_month_boxes: int
    percent_change: float


class ClientEngagementReport(BaseSchema):
    """Clients who stopped or reduced ordering compared to last month."""

    no_orders_this_month: list[ClientEngagementRow] = Field(default_factory=list)
    reduced_orders: list[ClientEngagementRow] = Field(default_factory=list)


class ManifestOrder(BaseSchema):
    order_id: str
    client_name: str
    location: Optional[str] = None
    total_boxes: int = 0


class ManifestGroup(BaseSchema):
    """Dispatched orders travelling with one delivery mode."""

    delivery_mode: str
    orders: list[ManifestOrder] = Field(default_factory=list)
    total_boxes: int = 0
