"""
Type Conversion Utilities

Safe conversions used by the model factories (DataFrame rows from the
repositories) and by the CSV importer (Danish-formatted number cells).

Usage:
    ```python
    from domain.converters import safe_int, safe_float, parse_number

    quantity = safe_int(row.get('quantity'))   # 0 if null
    price = parse_number("1.234,50")           # 1234.5
    ```
"""

import json
import re
from typing import Any, Optional

import pandas as pd

_THOUSANDS_DOTS = re.compile(r"^-?\d{1,3}(\.\d{3})+$")
_CURRENCY_NOISE = re.compile(r"(kr\.?|dkk|,-)", re.IGNORECASE)


def _is_null(value) -> bool:
    # pd.isna() on lists/dicts returns arrays, only scalars are checked
    if isinstance(value, (list, tuple, dict)):
        return False
    return value is None or bool(pd.isna(value))


def safe_int(value, default: int = 0) -> int:
    """
    Convert value to int, returning default if null.

    Examples:
        >>> safe_int(42.0)
        42
        >>> safe_int(None)
        0
        >>> safe_int(pd.NA, default=5)
        5
    """
    if _is_null(value):
        return default
    return int(value)


def safe_float(value, default: float = 0.0) -> float:
    """Convert value to float, returning default if null."""
    if _is_null(value):
        return default
    return float(value)


def safe_str(value, default: str = "") -> str:
    """Convert value to str, returning default if null."""
    if _is_null(value):
        return default
    return str(value)


def safe_bool(value, default: bool = False) -> bool:
    """
    Convert a stored flag to bool.

    SQLite returns 0/1 and CSV files carry "true"/"false" strings.
    """
    if _is_null(value):
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "ja")
    return bool(value)


def safe_json(value, default: Any = None) -> Any:
    """
    Decode a JSON column.

    Values that are already decoded (dict/list) are returned unchanged;
    undecodable text returns default.
    """
    if isinstance(value, (dict, list)):
        return value
    if _is_null(value) or value == "":
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return default


def parse_number(text: Any) -> Optional[float]:
    """
    Parse a price or quantity cell written in Danish or English notation.

    The last of "." and "," is the decimal separator when both appear.
    A lone "," is a decimal comma. A lone "." followed by exactly three
    digits per group is a thousands separator.

    Returns:
        The parsed number, or None for empty/unparseable cells

    Examples:
        >>> parse_number("1.234,50")
        1234.5
        >>> parse_number("45,5")
        45.5
        >>> parse_number("1.000")
        1000.0
        >>> parse_number("12.5")
        12.5
        >>> parse_number("199 kr.")
        199.0
    """
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return None if pd.isna(text) else float(text)

    cleaned = _CURRENCY_NOISE.sub("", str(text))
    cleaned = cleaned.replace("\u00a0", "").replace(" ", "").strip()
    if not cleaned:
        return None

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        cleaned = cleaned.replace(",", ".")
    elif _THOUSANDS_DOTS.match(cleaned):
        cleaned = cleaned.replace(".", "")

    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_quantity_header(header: Any) -> Optional[int]:
    """
    Return the quantity encoded in a CSV header, or None.

    Thousand-separator dots and spaces are stripped first, so
    "1.000" and "1 000" both give 1000.

    Examples:
        >>> parse_quantity_header("2.500")
        2500
        >>> parse_quantity_header("Antal")
    """
    digits = str(header).strip().replace(".", "").replace(" ", "").replace("\u00a0", "")
    if digits.isdigit():
        return int(digits)
    return None


def format_dkk(amount: float, decimals: int = 2, suffix: str = " kr.") -> str:
    """
    Danish money notation.

    Examples:
        >>> format_dkk(1234.5)
        '1.234,50 kr.'
        >>> format_dkk(-45, decimals=0, suffix="")
        '-45'
    """
    text = f"{float(amount):,.{decimals}f}"
    return text.replace(",", "\x00").replace(".", ",").replace("\x00", ".") + suffix


def format_date_dk(value) -> str:
    """dd.mm.yyyy; empty string for None."""
    if value is None:
        return ""
    return value.strftime("%d.%m.%Y")
