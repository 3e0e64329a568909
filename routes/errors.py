"""
Shared route helpers: error conversion and CSV downloads.
"""

from fastapi import UploadFile
from fastapi.responses import JSONResponse, Response
import structlog

from exceptions import AppError, ValidationError

logger = structlog.get_logger(__name__)


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def csv_response(text: str, filename: str) -> Response:
    """CSV download with an attachment filename."""
    return Response(
        content=text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


async def read_upload_text(file: UploadFile) -> str:
    """Read an uploaded file as UTF-8 text (a leading BOM is dropped)."""
    content = await file.read()
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError(
            "File must be UTF-8 encoded text.",
            code="INVALID_FILE_ENCODING",
            details={"filename": file.filename}
        ) from e
