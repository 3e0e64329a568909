"""
Demand forecast API route.
"""

from fastapi import APIRouter
import structlog

from models.forecast import ForecastResponse
from services import get_farm_store, get_forecast_provider, build_forecast_history
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=ForecastResponse)
async def get_forecast():
    """
    Four-week demand forecast from completed order history.

    available is false when the forecaster is not configured or there is
    not enough history yet. A failing forecaster returns 503.
    """
    try:
        history = build_forecast_history(get_farm_store().state.orders)
        weeks = get_forecast_provider().forecast(history)

        return ForecastResponse(
            available=bool(weeks),
            weeks=weeks or [],
            history_points=len(history),
        )
    except Exception as e:
        return handle_error(e)
