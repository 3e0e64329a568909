"""
Seed purchase order API routes.

Draft -> Ordered -> Received, with Cancelled reachable from Draft or Ordered.
Receiving adds the ordered grams to seed stock.
"""

from fastapi import APIRouter, Query
from fastapi.responses import Response
from typing import Optional
import structlog

from models.purchase_order import (
    PurchaseOrder,
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
    PurchaseOrderStatus,
)
from exceptions import PurchaseOrderNotFoundError
from services import get_farm_store
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[PurchaseOrder])
async def list_purchase_orders(
    status: Optional[PurchaseOrderStatus] = Query(None, description="Filter by status"),
):
    """List purchase orders, newest first."""
    try:
        purchase_orders = get_farm_store().state.purchase_orders
        if status is not None:
            purchase_orders = [po for po in purchase_orders if po.status == status]
        return sorted(purchase_orders, key=lambda po: po.created_at, reverse=True)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=PurchaseOrder, status_code=201)
async def create_purchase_order(data: PurchaseOrderCreate):
    """Create a Draft purchase order."""
    try:
        return get_farm_store().add_purchase_order(data)
    except Exception as e:
        return handle_error(e)


@router.get("/{po_id}", response_model=PurchaseOrder)
async def get_purchase_order(po_id: str):
    """Get a purchase order by ID."""
    try:
        po = get_farm_store().state.find_purchase_order(po_id)
        if po is None:
            raise PurchaseOrderNotFoundError(po_id)
        return po
    except Exception as e:
        return handle_error(e)


@router.put("/{po_id}", response_model=PurchaseOrder)
async def update_purchase_order(po_id: str, data: PurchaseOrderUpdate):
    """Replace supplier, items, cost and notes (Draft or Ordered only)."""
    try:
        return get_farm_store().update_purchase_order(po_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{po_id}", status_code=204, response_class=Response)
async def delete_purchase_order(po_id: str):
    """Delete a purchase order that has not been received."""
    try:
        get_farm_store().delete_purchase_order(po_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


@router.post("/{po_id}/ordered", response_model=PurchaseOrder)
async def mark_ordered(po_id: str):
    """Draft -> Ordered."""
    try:
        return get_farm_store().mark_purchase_order_ordered(po_id)
    except Exception as e:
        return handle_error(e)


@router.post("/{po_id}/received", response_model=PurchaseOrder)
async def mark_received(po_id: str):
    """Ordered -> Received. Item grams are added to seed stock."""
    try:
        return get_farm_store().mark_purchase_order_received(po_id)
    except Exception as e:
        return handle_error(e)


@router.post("/{po_id}/cancel", response_model=PurchaseOrder)
async def cancel_purchase_order(po_id: str):
    """Draft or Ordered -> Cancelled."""
    try:
        return get_farm_store().cancel_purchase_order(po_id)
    except Exception as e:
        return handle_error(e)
