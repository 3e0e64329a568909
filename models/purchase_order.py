"""
Seed purchase order schemas.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema
from utils.dates import naive_local


class PurchaseOrderStatus(str, Enum):
    """Purchase order status values."""
    DRAFT = "Draft"
    ORDERED = "Ordered"
    RECEIVED = "Received"
    CANCELLED = "Cancelled"


# Allowed transitions: target -> statuses it may be reached from
PO_TRANSITIONS = {
    PurchaseOrderStatus.ORDERED: {PurchaseOrderStatus.DRAFT},
    PurchaseOrderStatus.RECEIVED: {PurchaseOrderStatus.ORDERED},
    PurchaseOrderStatus.CANCELLED: {PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.ORDERED},
}

# Statuses whose contents can still be edited
EDITABLE_PO_STATUSES = {PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.ORDERED}


def is_valid_po_transition(current: PurchaseOrderStatus, new: PurchaseOrderStatus) -> bool:
    """
    Check if a purchase order status transition is valid.

    Rules:
    - Draft -> Ordered -> Received
    - Draft or Ordered -> Cancelled
    - Received and Cancelled are terminal
    """
    return current in PO_TRANSITIONS.get(new, set())


class PurchaseOrderItem(BaseSchema):
    """Seed line of a purchase order."""

    variety: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0, description="Grams")
    price_per_gram: Optional[float] = Field(None, ge=0)


class PurchaseOrder(BaseSchema):
    """A seed purchase order as stored in application state."""

    id: str
    supplier_name: str = Field(..., min_length=1)
    items: list[PurchaseOrderItem] = Field(default_factory=list)
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    created_at: datetime
    ordered_at: Optional[datetime] = None
    received_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    total_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

    @field_validator("created_at", "ordered_at", "received_at", "cancelled_at")
    @classmethod
    def timestamps_naive_local(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_local(v)


class PurchaseOrderCreate(BaseSchema):
    """
    Create (or replace the contents of) a purchase order.

    Required: supplier_name, items
    """

    supplier_name: str = Field(..., min_length=1, max_length=200)
    items: list[PurchaseOrderItem] = Field(..., min_length=1)
    total_cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=1000)


class PurchaseOrderUpdate(PurchaseOrderCreate):
    pass
