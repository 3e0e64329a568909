"""
Text utilities for names and CSV headers.

Used for variety name comparison, CSV header matching and free-text cleanup.
"""

import re
import unicodedata
from typing import Optional


def normalize_header(header: Optional[str]) -> str:
    """
    Normalize a CSV column header for alias matching.

    - "Growth Cycle Days" → "growthcycledays"
    - " Variety Name " → "varietyname"
    - "\ufeffname" → "name" (BOM from spreadsheet exports)

    Args:
        header: Raw header cell

    Returns:
        Lowercase header with all whitespace removed ("" for None)
    """
    if not header:
        return ""

    header = header.replace("\ufeff", "")
    return re.sub(r"\s+", "", header).lower()


def name_key(name: Optional[str]) -> Optional[str]:
    """
    Key for case-insensitive name comparison.

    - "Sunflower" → "sunflower"
    - "  PEAS " → "peas"
    - "Pak Choï" → "pak choï" (accents are kept; casefold only)

    Returns:
        Stripped, casefolded name, or None if input is empty
    """
    if not name:
        return None

    name = unicodedata.normalize("NFC", name).strip()

    if not name:
        return None

    return name.casefold()


def clean_text(value: Optional[str], max_length: int = 255) -> Optional[str]:
    """
    Clean free text for storage.

    - Strips whitespace
    - Truncates to max length
    - Returns None for empty/whitespace-only strings

    Args:
        value: Raw text from a form or CSV cell
        max_length: Maximum characters to store

    Returns:
        Cleaned text or None
    """
    if value is None:
        return None

    value = str(value).strip()

    if not value:
        return None

    if len(value) > max_length:
        value = value[:max_length]

    return value
