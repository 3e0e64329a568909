"""
Waste log and delivery expense API routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import Response
from typing import Optional
from datetime import date
import structlog

from models.logs import (
    WasteLogEntry,
    WasteLogEntryCreate,
    DeliveryExpense,
    DeliveryExpenseCreate,
)
from services import get_farm_store
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


def _in_range(d: date, start_date: Optional[date], end_date: Optional[date]) -> bool:
    if start_date and d < start_date:
        return False
    if end_date and d > end_date:
        return False
    return True


# ===================
# WASTE
# ===================

@router.get("/waste", response_model=list[WasteLogEntry])
async def list_waste_entries(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    variety: Optional[str] = Query(None),
):
    """Waste entries, most recent first."""
    try:
        entries = [
            e for e in get_farm_store().state.waste_log
            if _in_range(e.entry_date, start_date, end_date)
            and (variety is None or e.variety == variety)
        ]
        return sorted(entries, key=lambda e: e.entry_date, reverse=True)
    except Exception as e:
        return handle_error(e)


@router.post("/waste", response_model=WasteLogEntry, status_code=201)
async def create_waste_entry(data: WasteLogEntryCreate):
    """Record discarded trays of a registered variety."""
    try:
        return get_farm_store().add_waste_entry(data)
    except Exception as e:
        return handle_error(e)


@router.delete("/waste/{entry_id}", status_code=204, response_class=Response)
async def delete_waste_entry(entry_id: str):
    try:
        get_farm_store().delete_waste_entry(entry_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


# ===================
# DELIVERY EXPENSES
# ===================

@router.get("/expenses", response_model=list[DeliveryExpense])
async def list_delivery_expenses(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    delivery_person: Optional[str] = Query(None),
):
    """Delivery expenses, most recent first."""
    try:
        expenses = [
            x for x in get_farm_store().state.delivery_expenses
            if _in_range(x.expense_date, start_date, end_date)
            and (delivery_person is None or x.delivery_person == delivery_person)
        ]
        return sorted(expenses, key=lambda x: x.expense_date, reverse=True)
    except Exception as e:
        return handle_error(e)


@router.post("/expenses", response_model=DeliveryExpense, status_code=201)
async def create_delivery_expense(data: DeliveryExpenseCreate):
    """Record money paid for deliveries."""
    try:
        return get_farm_store().add_delivery_expense(data)
    except Exception as e:
        return handle_error(e)


@router.delete("/expenses/{expense_id}", status_code=204, response_class=Response)
async def delete_delivery_expense(expense_id: str):
    try:
        get_farm_store().delete_delivery_expense(expense_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)
