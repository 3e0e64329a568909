"""
Customer order schemas for validation and serialization.
"""

from collections import defaultdict
from pydantic import Field, field_validator, model_validator
from typing import Optional
from enum import Enum
from datetime import date, datetime

from models.base import BaseSchema
from utils.dates import naive_local


class OrderStatus(str, Enum):
    """
    Order status values.

    Pending -> Harvested | Shortfall -> Dispatched -> Completed.
    Harvested and Shortfall are siblings; both can be dispatched.
    """
    PENDING = "Pending"
    HARVESTED = "Harvested"
    SHORTFALL = "Shortfall"
    DISPATCHED = "Dispatched"
    COMPLETED = "Completed"


# Statuses an order can be dispatched from
DISPATCHABLE_STATUSES = {OrderStatus.HARVESTED, OrderStatus.SHORTFALL}

# Statuses that count an order's actual harvest toward yield
HARVEST_RECORDED_STATUSES = {
    OrderStatus.HARVESTED,
    OrderStatus.DISPATCHED,
    OrderStatus.COMPLETED,
    OrderStatus.SHORTFALL,
}

# Statuses that count as sold in the seed-to-sale funnel
SOLD_STATUSES = {
    OrderStatus.COMPLETED,
    OrderStatus.DISPATCHED,
    OrderStatus.SHORTFALL,
}


# ===================
# ORDER ITEM SCHEMAS
# ===================

class OrderItem(BaseSchema):
    """One order line: boxes of a variety."""

    variety: str = Field(..., min_length=1, description="Variety name")
    quantity: int = Field(..., ge=0, description="Number of boxes")


def _totals_by_variety(items: list[OrderItem]) -> dict[str, int]:
    totals: dict[str, int] = defaultdict(int)
    for item in items:
        totals[item.variety] += item.quantity
    return totals


# ===================
# ORDER SCHEMAS
# ===================

class Order(BaseSchema):
    """A customer order as stored in application state."""

    id: str = Field(..., description="Order id")
    client_name: str = Field(..., min_length=1)
    items: list[OrderItem] = Field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = Field(..., description="Creation time, never changes")
    delivery_date: Optional[date] = None
    delivery_mode: Optional[str] = None
    actual_harvest: Optional[list[OrderItem]] = None
    cash_received: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None
    location: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def created_at_naive_local(cls, v: datetime) -> datetime:
        return naive_local(v)

    @model_validator(mode="after")
    def check_actual_harvest(self) -> "Order":
        """Harvested quantity per variety never exceeds what was requested."""
        if self.actual_harvest:
            requested = _totals_by_variety(self.items)
            for variety, harvested in _totals_by_variety(self.actual_harvest).items():
                if harvested > requested.get(variety, 0):
                    raise ValueError(
                        f"actual harvest for {variety} ({harvested}) exceeds "
                        f"requested ({requested.get(variety, 0)})"
                    )
        return self

    @property
    def is_completed(self) -> bool:
        return self.status == OrderStatus.COMPLETED

    def fulfilled_items(self) -> list[OrderItem]:
        """Actual harvest when recorded, otherwise the requested items."""
        return self.actual_harvest if self.actual_harvest is not None else self.items


class OrderCreate(BaseSchema):
    """
    Create (or fully replace) an order.

    Required: client_name, items
    Optional: delivery_date, location
    """

    client_name: str = Field(..., min_length=1, max_length=200)
    items: list[OrderItem] = Field(..., min_length=1)
    delivery_date: Optional[date] = None
    location: Optional[str] = Field(None, max_length=200)

    @field_validator("items")
    @classmethod
    def positive_quantities(cls, v: list[OrderItem]) -> list[OrderItem]:
        """Requested quantities must be positive."""
        for item in v:
            if item.quantity <= 0:
                raise ValueError(f"quantity for {item.variety} must be a positive number")
        return v


class OrderUpdate(OrderCreate):
    """Replace the editable fields of an order. Same shape as OrderCreate."""
    pass


class DispatchRequest(BaseSchema):
    """Dispatch a harvested order."""

    delivery_mode: str = Field(..., min_length=1)


class CompletionRequest(BaseSchema):
    """Mark a dispatched order as delivered."""

    cash_received: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = Field(None, max_length=1000)


# ===================
# HARVEST SCHEMAS
# ===================

class HarvestRequest(BaseSchema):
    """
    Boxes harvested today per variety.

    Missing or blank (null) entries count as zero.
    """

    harvested_quantities: dict[str, Optional[int]] = Field(default_factory=dict)

    @field_validator("harvested_quantities")
    @classmethod
    def no_negative_quantities(cls, v: dict[str, Optional[int]]) -> dict[str, Optional[int]]:
        for variety, quantity in v.items():
            if quantity is not None and quantity < 0:
                raise ValueError(f"harvested quantity for {variety} cannot be negative")
        return v


class ShortfallItem(BaseSchema):
    """One order line that could not be fully allocated."""

    order_id: str
    client_name: str
    variety: str
    requested: int
    allocated: int
    shortfall: int


class HarvestResult(BaseSchema):
    """Outcome of a harvest run."""

    processed_orders: int = 0
    harvested_orders: int = 0
    shortfall_orders: int = 0
    shortfall_report: list[ShortfallItem] = Field(default_factory=list)
