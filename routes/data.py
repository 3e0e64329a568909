"""
Data management API routes.

Whole-state backup and restore, reset to starter data, storage status.
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import Response
import structlog

from services import get_farm_store
from services.backup_service import backup_filename, export_snapshot, import_snapshot
from routes.errors import handle_error, read_upload_text
from utils.dates import today

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/status")
async def get_data_status():
    """Data file location, last save and the last storage error (if any)."""
    try:
        return get_farm_store().status()
    except Exception as e:
        return handle_error(e)


@router.get("/export")
async def export_data():
    """Download the entire application state as JSON."""
    try:
        payload = export_snapshot(get_farm_store().state)
        return Response(
            content=payload,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{backup_filename(today())}"'}
        )
    except Exception as e:
        return handle_error(e)


@router.post("/import")
async def import_data(file: UploadFile = File(...)):
    """
    Replace all data with a backup file.

    The file must contain at least orders and microgreenVarieties collections.
    Nothing changes if it is rejected.
    """
    try:
        logger.info("data_import_started", filename=file.filename)
        text = await read_upload_text(file)
        state = get_farm_store().replace_state(import_snapshot(text))

        return {
            "success": True,
            "orders": len(state.orders),
            "varieties": len(state.microgreen_varieties),
        }
    except Exception as e:
        return handle_error(e)


@router.post("/reset")
async def reset_data():
    """Discard everything and start again from the starter data."""
    try:
        state = get_farm_store().reset()
        return {
            "success": True,
            "orders": len(state.orders),
            "varieties": len(state.microgreen_varieties),
        }
    except Exception as e:
        return handle_error(e)
