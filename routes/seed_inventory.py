"""
Seed inventory API routes.
"""

from fastapi import APIRouter
import structlog

from models.variety import SeedInventoryItem, SeedInventoryUpdate
from exceptions import VarietyNotFoundError
from services import get_farm_store
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=dict[str, SeedInventoryItem])
async def list_seed_inventory():
    """Seed stock per variety, in grams."""
    try:
        return get_farm_store().state.seed_inventory
    except Exception as e:
        return handle_error(e)


@router.get("/{variety}", response_model=SeedInventoryItem)
async def get_seed_inventory_item(variety: str):
    """Seed stock for one variety."""
    try:
        item = get_farm_store().state.seed_inventory.get(variety)
        if item is None:
            raise VarietyNotFoundError(variety)
        return item
    except Exception as e:
        return handle_error(e)


@router.patch("/{variety}", response_model=SeedInventoryItem)
async def update_seed_inventory_item(variety: str, data: SeedInventoryUpdate):
    """Update stock, reorder level, grams per tray or safety stock."""
    try:
        state = get_farm_store().update_seed_inventory_item(variety, data)
        return state.seed_inventory[variety]
    except Exception as e:
        return handle_error(e)
