"""
Waste log and delivery expense schemas.
"""

from pydantic import Field
from typing import Optional
from datetime import date

from models.base import BaseSchema


class WasteLogEntryCreate(BaseSchema):
    entry_date: date = Field(..., alias="date")
    variety: str = Field(..., min_length=1)
    trays_wasted: int = Field(..., gt=0)
    reason: str = Field(..., min_length=1, max_length=500)


class WasteLogEntry(WasteLogEntryCreate):
    """Trays discarded on a day, with the reason."""

    id: str


class DeliveryExpenseCreate(BaseSchema):
    expense_date: date = Field(..., alias="date")
    delivery_person: str = Field(..., min_length=1, description="Delivery mode paid")
    amount: float = Field(..., ge=0)
    remarks: Optional[str] = Field(None, max_length=500)


class DeliveryExpense(DeliveryExpenseCreate):
    """Money paid to a delivery mode on a day."""

    id: str
