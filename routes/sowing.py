"""
Sowing API routes.

Sowing log, both sowing planners and the upcoming harvest calendar.
"""

from fastapi import APIRouter, Query
from typing import Optional
from datetime import date
import structlog

from models.sowing import (
    HarvestLogEntry,
    SowingLogSave,
    SowingPlanItem,
    IntelligentSowingPlan,
    UpcomingHarvestDay,
)
from services import (
    get_farm_store,
    get_forecast_provider,
    generate_sowing_plan,
    generate_intelligent_sowing_plan,
)
from services.report_service import upcoming_harvests
from routes.errors import handle_error
from utils.dates import today, date_key

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/log", response_model=list[HarvestLogEntry])
async def list_sowing_log(
    start_date: Optional[date] = Query(None, description="Earliest sow date"),
    end_date: Optional[date] = Query(None, description="Latest sow date"),
):
    """Sowing log entries, most recent sow date first."""
    try:
        entries = get_farm_store().state.harvesting_log.values()
        if start_date:
            entries = [e for e in entries if e.sow_date >= start_date]
        if end_date:
            entries = [e for e in entries if e.sow_date <= end_date]
        return sorted(entries, key=lambda e: e.sow_date, reverse=True)
    except Exception as e:
        return handle_error(e)


@router.post("/log", response_model=HarvestLogEntry)
async def save_sowing_log(data: SowingLogSave):
    """
    Save trays sown on a date.

    Counts merge into that day's entry and seed stock is reduced by the
    change in trays times grams per tray.
    """
    try:
        state = get_farm_store().save_sowing_log(data.sow_date, data.trays)
        return state.harvesting_log[date_key(data.sow_date)]
    except Exception as e:
        return handle_error(e)


@router.get("/plan", response_model=list[SowingPlanItem])
async def get_sowing_plan(
    target_date: Optional[date] = Query(None, alias="date", description="Sowing date (default today)"),
):
    """Trays to sow on a date to cover pending dated orders."""
    try:
        state = get_farm_store().state
        return generate_sowing_plan(
            state.orders,
            state.microgreen_varieties,
            state.harvesting_log,
            target_date or today(),
        )
    except Exception as e:
        return handle_error(e)


@router.get("/intelligent-plan", response_model=IntelligentSowingPlan)
async def get_intelligent_sowing_plan():
    """
    Today's sowing tasks and seed purchase list.

    Combines the demand forecast, pending orders and safety stock. When the
    forecast is unavailable the plan is built from orders and safety stock.
    """
    try:
        state = get_farm_store().state
        return generate_intelligent_sowing_plan(
            state.orders,
            state.microgreen_varieties,
            state.harvesting_log,
            state.seed_inventory,
            forecast_provider=get_forecast_provider(),
            today=today(),
        )
    except Exception as e:
        return handle_error(e)


@router.get("/upcoming", response_model=list[UpcomingHarvestDay])
async def get_upcoming_harvests(
    days: Optional[int] = Query(None, ge=1, le=90, description="Days to show (default from settings)"),
):
    """Trays expected to be ready on each of the next days."""
    try:
        state = get_farm_store().state
        return upcoming_harvests(
            state.harvesting_log,
            state.microgreen_varieties,
            today=today(),
            days=days,
        )
    except Exception as e:
        return handle_error(e)
