"""
CSV parsers module.

Order and variety imports; all or nothing, first bad row reported.
"""

from parsers.csv_import import (
    parse_orders_csv,
    parse_varieties_csv,
    OrderImportResult,
    VarietyImportResult,
)

__all__ = [
    "parse_orders_csv",
    "parse_varieties_csv",
    "OrderImportResult",
    "VarietyImportResult",
]
