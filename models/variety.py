"""
Microgreen variety and seed inventory schemas.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema


class MicrogreenVariety(BaseSchema):
    """A named variety with a fixed growth cycle (sow date + days = harvest date)."""

    name: str = Field(..., min_length=1, max_length=100, description="Unique variety name")
    growth_cycle_days: int = Field(..., gt=0, le=365, description="Days from sowing to harvest")


class SeedInventoryItem(BaseSchema):
    """
    Seed stock for one variety, in grams.

    stock_on_hand has no floor: sowing more than is in stock drives it
    negative and the planners flag it.
    """

    stock_on_hand: float = Field(default=0, description="Grams on hand")
    reorder_level: float = Field(default=0, ge=0, description="Reorder threshold in grams")
    grams_per_tray: float = Field(default=0, ge=0, description="Seed grams sown per tray")
    safety_stock_boxes: Optional[int] = Field(
        default=None,
        ge=0,
        description="Desired minimum finished-goods boxes on hand"
    )


class SeedInventoryUpdate(BaseSchema):
    """Partial update of a seed inventory row. Only provided fields change."""

    stock_on_hand: Optional[float] = None
    reorder_level: Optional[float] = Field(None, ge=0)
    grams_per_tray: Optional[float] = Field(None, ge=0)
    safety_stock_boxes: Optional[int] = Field(None, ge=0)


class DeliveryModeCreate(BaseSchema):
    """Register a delivery mode (courier, app, person)."""

    name: str = Field(..., min_length=1, max_length=100)
