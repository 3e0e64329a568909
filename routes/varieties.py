"""
Variety and delivery mode API routes.
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import Response
import structlog

from models.variety import MicrogreenVariety, DeliveryModeCreate
from parsers import parse_varieties_csv
from services import get_farm_store
from routes.errors import handle_error, read_upload_text

logger = structlog.get_logger(__name__)

router = APIRouter()
delivery_modes_router = APIRouter()


@router.get("", response_model=list[MicrogreenVariety])
async def list_varieties():
    """List registered varieties."""
    try:
        return get_farm_store().state.microgreen_varieties
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=MicrogreenVariety, status_code=201)
async def create_variety(data: MicrogreenVariety):
    """
    Register a variety.

    Names are unique ignoring case. A zeroed seed inventory row is created.
    """
    try:
        return get_farm_store().add_variety(data.name, data.growth_cycle_days)
    except Exception as e:
        return handle_error(e)


@router.post("/import", status_code=201)
async def import_varieties(file: UploadFile = File(...)):
    """
    Import varieties from a CSV file (name, growthCycleDays).

    Returns:
        {"imported": n, "varieties": [...]}
    """
    try:
        logger.info("variety_import_started", filename=file.filename)
        text = await read_upload_text(file)

        store = get_farm_store()
        parsed = parse_varieties_csv(text, store.state.variety_names())
        added = store.import_varieties(parsed.varieties)

        return {
            "imported": len(added),
            "varieties": [v.model_dump(mode="json", by_alias=True) for v in added],
        }
    except Exception as e:
        return handle_error(e)


@router.delete("/{name}", status_code=204, response_class=Response)
async def delete_variety(name: str):
    """Delete a variety that no order references."""
    try:
        get_farm_store().delete_variety(name)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


# ===================
# DELIVERY MODES
# ===================

@delivery_modes_router.get("", response_model=list[str])
async def list_delivery_modes():
    """List delivery modes."""
    try:
        return get_farm_store().state.delivery_modes
    except Exception as e:
        return handle_error(e)


@delivery_modes_router.post("", response_model=list[str], status_code=201)
async def create_delivery_mode(data: DeliveryModeCreate):
    """Add a delivery mode. Adding an existing mode is a no-op."""
    try:
        return get_farm_store().add_delivery_mode(data.name)
    except Exception as e:
        return handle_error(e)
