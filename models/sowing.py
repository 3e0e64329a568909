"""
Sowing log and sowing plan schemas.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum
from datetime import date

from models.base import BaseSchema


class HarvestLogEntry(BaseSchema):
    """Trays sown on one calendar day, per variety."""

    sow_date: date = Field(..., alias="date", description="Sow date")
    trays: dict[str, int] = Field(default_factory=dict)


class SowingLogSave(BaseSchema):
    """
    Save the trays sown on a date.

    Counts are merged into the existing entry for that date; blank counts
    are stored as zero.
    """

    sow_date: date = Field(..., alias="date")
    trays: dict[str, Optional[int]] = Field(default_factory=dict)

    @field_validator("trays")
    @classmethod
    def no_negative_trays(cls, v: dict[str, Optional[int]]) -> dict[str, Optional[int]]:
        for variety, count in v.items():
            if count is not None and count < 0:
                raise ValueError(f"tray count for {variety} cannot be negative")
        return v


# ===================
# ORDER-DRIVEN PLAN
# ===================

class SowingPlanItem(BaseSchema):
    """Trays to sow on the target date for one variety."""

    variety: str
    trays: int
    reason: str


# ===================
# INTELLIGENT PLAN
# ===================

class SeedStatus(str, Enum):
    """Seed sufficiency for a planned sowing."""
    OK = "OK"
    LOW_STOCK = "Low Stock"
    INSUFFICIENT = "Insufficient"


class IntelligentSowingPlanItem(BaseSchema):
    """Today's sowing task for one variety."""

    variety: str
    trays_to_sow: int
    reason: str
    seed_status: SeedStatus
    grams_needed: float


class SeedPurchaseItem(BaseSchema):
    """Recommended seed purchase."""

    variety: str
    grams_to_buy: float
    reason: str


class IntelligentSowingPlan(BaseSchema):
    """Today's sowing tasks and the seed purchase list."""

    plan: list[IntelligentSowingPlanItem] = Field(default_factory=list)
    purchase_list: list[SeedPurchaseItem] = Field(default_factory=list)
    forecast_used: bool = False


# ===================
# UPCOMING HARVESTS
# ===================

class UpcomingHarvestItem(BaseSchema):
    variety: str
    trays: int


class UpcomingHarvestDay(BaseSchema):
    """Expected harvests on one day."""

    harvest_date: date
    harvests: list[UpcomingHarvestItem] = Field(default_factory=list)
