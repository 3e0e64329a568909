"""
CSV parsers for order and variety imports.

Imports are all or nothing: the first invalid row aborts the whole file with
a CSVImportError naming that row. Rows are numbered as in a spreadsheet: the
header is row 1, the first data row is row 2.

Orders CSV columns:
    clientName, deliveryDate (YYYY-MM-DD), variety, quantity, location (optional)

Varieties CSV columns (case and spaces ignored):
    name | variety | variety name
    growthCycleDays | days | growth cycle | cycle
"""

from dataclasses import dataclass, field
from io import StringIO
from typing import Optional

import pandas as pd
import structlog

from exceptions import CSVImportError
from models.order import OrderCreate, OrderItem
from models.variety import MicrogreenVariety
from utils.dates import parse_iso_date
from utils.text_utils import normalize_header, name_key

logger = structlog.get_logger(__name__)


ORDER_REQUIRED_COLUMNS = ["clientName", "deliveryDate", "variety", "quantity"]
ORDER_LOCATION_COLUMN = "location"

VARIETY_NAME_ALIASES = ["name", "variety", "varietyname"]
VARIETY_DAYS_ALIASES = ["growthcycledays", "days", "growthcycle", "cycle"]


@dataclass
class OrderImportResult:
    """Orders parsed from a CSV file, grouped by client and delivery date."""
    orders: list[OrderCreate] = field(default_factory=list)
    rows: int = 0


@dataclass
class VarietyImportResult:
    """Varieties parsed from a CSV file."""
    varieties: list[MicrogreenVariety] = field(default_factory=list)
    rows: int = 0


def _read_csv(text: str) -> pd.DataFrame:
    """Read CSV text with every cell as a stripped string (blank lines kept for row numbering)."""
    if not text or not text.strip():
        raise CSVImportError("CSV must have a header row and at least one data row.")

    try:
        df = pd.read_csv(
            StringIO(text.strip()),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.warning("csv_read_failed", error=str(e))
        raise CSVImportError(f"Could not read CSV file: {e}") from e

    df.columns = [str(c).replace("\ufeff", "").strip() for c in df.columns]
    # short and blank lines leave NaN even with keep_default_na=False
    df = df.fillna("").apply(lambda col: col.str.strip())

    if df.empty:
        raise CSVImportError("CSV must have a header row and at least one data row.")
    return df


def _row_number(index: int) -> int:
    return index + 2


def _is_blank(row: pd.Series) -> bool:
    return all(value == "" for value in row.values)


def _positive_int(value: str) -> Optional[int]:
    """Parse "4" or "4.0" as 4; anything else (or <= 0) is None."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number <= 0 or not number.is_integer():
        return None
    return int(number)


# ===================
# ORDERS
# ===================

def parse_orders_csv(text: str, variety_names: list[str]) -> OrderImportResult:
    """
    Parse an orders CSV into orders grouped by (clientName, deliveryDate).

    Items keep file order; the first row's location wins for each group.
    Variety names must match a registered variety exactly.

    Args:
        text: CSV file content
        variety_names: Registered variety names

    Returns:
        OrderImportResult with one OrderCreate per group

    Raises:
        CSVImportError: Missing header or invalid row (nothing is imported)
    """
    df = _read_csv(text)

    for column in ORDER_REQUIRED_COLUMNS:
        if column not in df.columns:
            raise CSVImportError(
                f'Missing required header column: "{column}". Please check the file format.',
                details={"column": column}
            )

    registered = set(variety_names)
    has_location = ORDER_LOCATION_COLUMN in df.columns

    groups: dict[tuple[str, str], dict] = {}
    rows = 0

    for index, row in df.iterrows():
        if _is_blank(row):
            continue
        row_number = _row_number(index)
        rows += 1

        client_name = row["clientName"]
        if not client_name:
            raise CSVImportError("clientName is missing.", row=row_number)

        delivery_date = parse_iso_date(row["deliveryDate"])
        if delivery_date is None:
            raise CSVImportError(
                "deliveryDate is missing or not in YYYY-MM-DD format.", row=row_number
            )

        variety = row["variety"]
        if not variety:
            raise CSVImportError("variety is missing.", row=row_number)
        if variety not in registered:
            raise CSVImportError(
                f'variety "{variety}" is not a valid microgreen variety.',
                row=row_number,
                details={"variety": variety}
            )

        quantity = _positive_int(row["quantity"])
        if quantity is None:
            raise CSVImportError("quantity must be a positive whole number.", row=row_number)

        location = row[ORDER_LOCATION_COLUMN] if has_location else ""

        key = (client_name, delivery_date.isoformat())
        group = groups.setdefault(key, {
            "client_name": client_name,
            "delivery_date": delivery_date,
            "location": location or None,
            "items": [],
        })
        group["items"].append(OrderItem(variety=variety, quantity=quantity))

    if rows == 0:
        raise CSVImportError("CSV must have a header row and at least one data row.")

    orders = [OrderCreate(**group) for group in groups.values()]

    logger.info("orders_csv_parsed", rows=rows, orders=len(orders))
    return OrderImportResult(orders=orders, rows=rows)


# ===================
# VARIETIES
# ===================

def _find_column(columns: list[str], aliases: list[str]) -> Optional[str]:
    for column in columns:
        if normalize_header(column) in aliases:
            return column
    return None


def parse_varieties_csv(text: str, existing_names: list[str]) -> VarietyImportResult:
    """
    Parse a varieties CSV.

    Blank lines are skipped. A name that already exists, or appears twice in
    the file, rejects the whole file (case-insensitive).

    Args:
        text: CSV file content
        existing_names: Registered variety names

    Returns:
        VarietyImportResult in file order

    Raises:
        CSVImportError: Missing header or invalid row (nothing is imported)
    """
    df = _read_csv(text)
    columns = list(df.columns)

    name_column = _find_column(columns, VARIETY_NAME_ALIASES)
    if name_column is None:
        raise CSVImportError('Missing required header column: "name".', details={"column": "name"})

    days_column = _find_column(columns, VARIETY_DAYS_ALIASES)
    if days_column is None:
        raise CSVImportError(
            'Missing required header column: "growthCycleDays".',
            details={"column": "growthCycleDays"}
        )

    existing = {name_key(n) for n in existing_names}
    seen: set[str] = set()
    varieties: list[MicrogreenVariety] = []

    for index, row in df.iterrows():
        if _is_blank(row):
            continue
        row_number = _row_number(index)

        name = row[name_column]
        if not name:
            raise CSVImportError("'name' is missing.", row=row_number)

        days = _positive_int(row[days_column])
        if days is None:
            raise CSVImportError(
                f"'growthCycleDays' for \"{name}\" must be a positive whole number.",
                row=row_number,
                details={"variety": name}
            )

        key = name_key(name)
        if key in existing:
            raise CSVImportError(
                f'Variety "{name}" already exists.', row=row_number, details={"variety": name}
            )
        if key in seen:
            raise CSVImportError(
                f'Duplicate variety "{name}" found in the file.', row=row_number, details={"variety": name}
            )
        seen.add(key)

        try:
            varieties.append(MicrogreenVariety(name=name, growth_cycle_days=days))
        except ValueError as e:
            raise CSVImportError(f'Variety "{name}" is invalid: {e}', row=row_number) from e

    if not varieties:
        raise CSVImportError("CSV must have a header row and at least one data row.")

    logger.info("varieties_csv_parsed", varieties=len(varieties))
    return VarietyImportResult(varieties=varieties, rows=len(varieties))
