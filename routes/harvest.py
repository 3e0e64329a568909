"""
Harvest API routes.

Pick list for today and the harvest run that allocates boxes to orders.
"""

from fastapi import APIRouter
import structlog

from models.order import HarvestRequest, HarvestResult
from models.reports import VarietyBoxes
from services import get_farm_store, aggregated_harvest_list
from routes.errors import handle_error
from utils.dates import today

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/pick-list", response_model=list[VarietyBoxes])
async def get_pick_list():
    """
    Boxes to harvest today per variety.

    Covers Pending orders due today or earlier, plus undated ones. Every
    registered variety is listed.
    """
    try:
        state = get_farm_store().state
        return aggregated_harvest_list(state.orders, state.variety_names(), today())
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=HarvestResult)
async def run_harvest(data: HarvestRequest):
    """
    Allocate today's harvested boxes to due orders, oldest order first.

    Returns:
        Counts of processed, fully harvested and short orders, and one
        shortfall line per order item that could not be filled
    """
    try:
        result = get_farm_store().apply_harvest(data.harvested_quantities, today())
        logger.info(
            "harvest_run_completed",
            processed=result.processed_orders,
            shortfalls=result.shortfall_orders
        )
        return result
    except Exception as e:
        return handle_error(e)
