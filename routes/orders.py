"""
Order API routes.

CRUD, CSV import/export and the dispatch/complete status changes.
"""

from fastapi import APIRouter, Query, UploadFile, File
from fastapi.responses import Response
from typing import Optional
import structlog

from models.order import (
    Order,
    OrderCreate,
    OrderUpdate,
    OrderStatus,
    DispatchRequest,
    CompletionRequest,
)
from exceptions import OrderNotFoundError
from parsers import parse_orders_csv
from services import get_farm_store
from services.export_service import records_to_csv, orders_to_records
from routes.errors import handle_error, csv_response, read_upload_text
from utils.dates import today

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[Order])
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    client: Optional[str] = Query(None, description="Client name contains (case-insensitive)"),
):
    """
    List orders, newest first.

    Query params:
        status: Only orders in this status
        client: Only clients whose name contains this text
    """
    try:
        orders = get_farm_store().state.orders
        if status is not None:
            orders = [o for o in orders if o.status == status]
        if client:
            needle = client.strip().casefold()
            orders = [o for o in orders if needle in o.client_name.casefold()]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=Order, status_code=201)
async def create_order(data: OrderCreate):
    """Create a Pending order."""
    try:
        return get_farm_store().add_order(data)
    except Exception as e:
        return handle_error(e)


@router.get("/export")
async def export_orders():
    """Download all orders as CSV."""
    try:
        orders = get_farm_store().state.orders
        text = records_to_csv(orders_to_records(orders))
        return csv_response(text, f"orders-{today().isoformat()}.csv")
    except Exception as e:
        return handle_error(e)


@router.post("/import", status_code=201)
async def import_orders(file: UploadFile = File(...)):
    """
    Import orders from a CSV file.

    Columns: clientName, deliveryDate, variety, quantity, location (optional).
    Rows with the same client and delivery date become one order. The whole
    file is rejected on the first invalid row.

    Returns:
        {"imported": n, "rows": n, "orders": [...]}
    """
    try:
        logger.info("order_import_started", filename=file.filename)
        text = await read_upload_text(file)

        store = get_farm_store()
        parsed = parse_orders_csv(text, store.state.variety_names())
        imported = store.import_orders(parsed.orders)

        return {
            "imported": len(imported),
            "rows": parsed.rows,
            "orders": [o.model_dump(mode="json", by_alias=True) for o in imported],
        }
    except Exception as e:
        return handle_error(e)


@router.delete("", status_code=204, response_class=Response)
async def delete_all_orders():
    """Delete every order."""
    try:
        get_farm_store().delete_all_orders()
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


@router.get("/{order_id}", response_model=Order)
async def get_order(order_id: str):
    """Get a single order by ID."""
    try:
        order = get_farm_store().state.find_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order
    except Exception as e:
        return handle_error(e)


@router.put("/{order_id}", response_model=Order)
async def update_order(order_id: str, data: OrderUpdate):
    """
    Replace an order's client, items, date and location.

    The order goes back to Pending. Completed orders cannot be edited.
    """
    try:
        return get_farm_store().update_order(order_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{order_id}", status_code=204, response_class=Response)
async def delete_order(order_id: str):
    """Delete an order (not allowed once Completed)."""
    try:
        get_farm_store().delete_order(order_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


@router.post("/{order_id}/dispatch", response_model=Order)
async def dispatch_order(order_id: str, data: DispatchRequest):
    """Harvested or Shortfall -> Dispatched with a delivery mode."""
    try:
        return get_farm_store().dispatch_order(order_id, data.delivery_mode)
    except Exception as e:
        return handle_error(e)


@router.post("/{order_id}/complete", response_model=Order)
async def complete_order(order_id: str, data: CompletionRequest):
    """Dispatched -> Completed with cash received and remarks."""
    try:
        return get_farm_store().complete_delivery(order_id, data)
    except Exception as e:
        return handle_error(e)
