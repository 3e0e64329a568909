"""
Snapshot storage.

The whole application state lives in one JSON document on disk. There is a
single writer (the API process), so every save rewrites the file.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.settings import settings
from exceptions import StorageError
from models.app_state import AppData, initial_app_data

logger = structlog.get_logger(__name__)


class JsonFileStorage:
    """
    Reads and writes AppData as camelCase JSON.

    Usage:
        storage = JsonFileStorage(Path("data/microgreens.json"))
        state = storage.load()
        storage.save(state)
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or settings.data_file)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> AppData:
        """
        Load the saved state.

        Returns:
            Saved AppData, or initial data when nothing has been saved yet

        Raises:
            StorageError: If the file cannot be read or does not hold valid state
        """
        if not self.path.exists():
            logger.info("storage_empty", path=str(self.path))
            return initial_app_data()

        try:
            raw = self.path.read_text(encoding="utf-8")
            state = AppData.model_validate_json(raw)
        except OSError as e:
            logger.error("storage_read_failed", path=str(self.path), error=str(e))
            raise StorageError("load", str(e), {"path": str(self.path)}) from e
        except PydanticValidationError as e:
            logger.error(
                "storage_corrupted",
                path=str(self.path),
                errors=e.error_count()
            )
            raise StorageError(
                "load",
                "saved data is corrupted",
                {"path": str(self.path), "errors": e.error_count()}
            ) from e

        logger.info(
            "storage_loaded",
            path=str(self.path),
            orders=len(state.orders),
            varieties=len(state.microgreen_varieties)
        )
        return state

    def save(self, state: AppData) -> None:
        """
        Write the state atomically (temp file in the same directory, then replace).

        Raises:
            StorageError: If the file cannot be written
        """
        payload = state.model_dump_json(by_alias=True, indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self.path)
            except OSError:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error("storage_write_failed", path=str(self.path), error=str(e))
            raise StorageError("save", str(e), {"path": str(self.path)}) from e

        logger.debug("storage_saved", path=str(self.path), bytes=len(payload))

    def clear(self) -> None:
        """Remove the saved state. Missing file is not an error."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("storage_clear_failed", path=str(self.path), error=str(e))
            raise StorageError("clear", str(e), {"path": str(self.path)}) from e

        logger.info("storage_cleared", path=str(self.path))
