"""
Backup service: whole-state JSON export and import.

The backup document is the camelCase JSON form of AppData. Importing
requires at least the orders and microgreenVarieties collections; every
other collection defaults to empty.
"""

import json
from datetime import date
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from exceptions import SnapshotImportError
from models.app_state import AppData

logger = structlog.get_logger(__name__)

REQUIRED_KEYS = ("orders", "microgreenVarieties")


def backup_filename(today: Optional[date] = None) -> str:
    return f"microgreen-hub-backup-{(today or date.today()).isoformat()}.json"


def export_snapshot(state: AppData) -> str:
    """Indented JSON of the entire application state."""
    payload = state.model_dump_json(by_alias=True, indent=2)
    logger.info(
        "snapshot_exported",
        orders=len(state.orders),
        varieties=len(state.microgreen_varieties),
        bytes=len(payload)
    )
    return payload


def import_snapshot(text: str) -> AppData:
    """
    Parse a backup document.

    Raises:
        SnapshotImportError: If the text is not JSON, is missing required
            collections or holds invalid records
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("snapshot_not_json", error=str(e))
        raise SnapshotImportError("File is not valid JSON.") from e

    if not isinstance(data, dict) or any(key not in data for key in REQUIRED_KEYS):
        logger.warning("snapshot_missing_keys", keys=sorted(data) if isinstance(data, dict) else None)
        raise SnapshotImportError(
            "Invalid data file format.",
            details={"required_keys": list(REQUIRED_KEYS)}
        )

    try:
        state = AppData.model_validate(data)
    except PydanticValidationError as e:
        logger.warning("snapshot_invalid", errors=e.error_count())
        raise SnapshotImportError(
            "Invalid data file format.",
            details={"errors": [
                {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
                for err in e.errors()[:10]
            ]}
        ) from e

    logger.info(
        "snapshot_imported",
        orders=len(state.orders),
        varieties=len(state.microgreen_varieties)
    )
    return state
