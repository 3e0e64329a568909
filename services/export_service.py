"""
Export service: flat records to CSV.

Any report or list that can be expressed as a list of flat dicts can be
downloaded as CSV. Quoting is minimal: only fields containing a comma, a
double quote or a newline are quoted, with embedded quotes doubled.
"""

import csv
from io import StringIO
from typing import Any, Iterable

import pandas as pd
import structlog
from pydantic import BaseModel

from exceptions import ValidationError
from models.order import Order, OrderItem

logger = structlog.get_logger(__name__)


def records_to_csv(records: list[dict[str, Any]]) -> str:
    """
    Render records as CSV text.

    The header comes from the first record's keys; keys missing from later
    records are written as empty fields, extra keys are ignored. None is
    written as an empty field. Rows are separated by "\\n" with no trailing
    newline.

    Raises:
        ValidationError: If there are no records
    """
    if not records:
        raise ValidationError("No data to export", code="NO_DATA_TO_EXPORT")

    headers = list(records[0].keys())
    # object dtype keeps ints as ints when a column also holds None
    df = pd.DataFrame(records, columns=headers, dtype=object)

    buffer = StringIO()
    df.to_csv(
        buffer,
        index=False,
        na_rep="",
        lineterminator="\n",
        quoting=csv.QUOTE_MINIMAL,
    )
    text = buffer.getvalue()
    if text.endswith("\n"):
        text = text[:-1]

    logger.debug("csv_rendered", rows=len(records), columns=len(headers))
    return text


def models_to_records(rows: Iterable[BaseModel]) -> list[dict[str, Any]]:
    """Flat camelCase records from flat pydantic models (dates as ISO strings)."""
    return [row.model_dump(mode="json", by_alias=True) for row in rows]


def _items_text(items: list[OrderItem]) -> str:
    return "; ".join(f"{item.variety} x{item.quantity}" for item in items)


def orders_to_records(orders: list[Order]) -> list[dict[str, Any]]:
    """One flat record per order, items written as "Sunflower x4; Radish x2"."""
    return [
        {
            "id": order.id,
            "clientName": order.client_name,
            "status": order.status.value,
            "createdAt": order.created_at.isoformat(),
            "deliveryDate": order.delivery_date.isoformat() if order.delivery_date else None,
            "location": order.location,
            "items": _items_text(order.items),
            "actualHarvest": _items_text(order.actual_harvest) if order.actual_harvest is not None else None,
            "deliveryMode": order.delivery_mode,
            "cashReceived": order.cash_received,
            "remarks": order.remarks,
        }
        for order in orders
    ]
