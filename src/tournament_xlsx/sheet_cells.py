"""
Cell and value normalization for spreadsheet grids.

Every other module reads raw workbook cells through these helpers, so the
loosely-typed values the workbook reader hands back (strings, ints, floats,
datetimes, NaN, None) never travel past this boundary.
"""

import logging
import math
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

logger = logging.getLogger(__name__)

RawCell = Union[str, int, float, datetime, date, None]

# Serial day 1 is 1900-01-01; serials above 59 skip the phantom 1900-02-29
EXCEL_EPOCH = date(1899, 12, 31)
EXCEL_LEAP_BUG_SERIAL = 59
MAX_EXCEL_SERIAL = 100000

_INT_RE = re.compile(r"^[+-]?\d+(?:\.0+)?$")
_SERIAL_RE = re.compile(r"^\d+(?:\.\d+)?$")
_BARE_YEAR_RE = re.compile(r"^(19|20)\d{2}$")
_YMD_RE = re.compile(r"(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})")
_DMY_RE = re.compile(r"(\d{1,2})[/.](\d{1,2})[/.](\d{4})")
_RANGE_RE = re.compile(
    r"(\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2})\s*(?:to|-|–|bis)\s*\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}",
    re.IGNORECASE,
)


def _is_nan(value) -> bool:
    return isinstance(value, float) and math.isnan(value)


def clean_cell(raw: RawCell) -> str:
    """Return the trimmed text of a cell; empty string for None/NaN."""
    if raw is None or _is_nan(raw):
        return ""
    if isinstance(raw, bool):
        return str(raw)
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    if isinstance(raw, datetime):
        if (raw.hour, raw.minute, raw.second) == (0, 0, 0):
            return raw.date().isoformat()
        return raw.isoformat(sep=" ")
    if isinstance(raw, date):
        return raw.isoformat()
    return str(raw).strip()


def parse_int_or_null(raw: RawCell) -> Optional[int]:
    """Parse a base-10 integer; None for empty, '-' or non-numeric cells."""
    text = clean_cell(raw)
    if not text or text == "-":
        return None
    if not _INT_RE.match(text):
        return None
    return int(float(text)) if "." in text else int(text)


def parse_decimal_or_null(raw: RawCell) -> Optional[float]:
    """
    Parse a decimal value such as points or a tie-break score.
    Accepts '4.5', '4,5', '4½' and '½'. Returns None for anything else.
    """
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return None if _is_nan(raw) else float(raw)
    text = clean_cell(raw)
    if not text or text == "-":
        return None

    half = 0.0
    if text.endswith("½"):
        half = 0.5
        text = text[:-1].strip()
        if not text:
            return half
    text = text.replace(",", ".")
    try:
        value = float(text)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value + half


def excel_serial_to_iso(serial: float) -> Optional[str]:
    """Convert a spreadsheet serial day number to an ISO date string."""
    if serial is None or _is_nan(serial) or serial <= 0 or serial >= MAX_EXCEL_SERIAL:
        return None
    days = int(serial)
    converted = EXCEL_EPOCH + timedelta(days=days)
    if days > EXCEL_LEAP_BUG_SERIAL:
        converted -= timedelta(days=1)
    return converted.isoformat()


def _valid_ymd(y: int, m: int, d: int) -> Optional[str]:
    try:
        return date(y, m, d).isoformat()
    except ValueError:
        return None


def parse_date_flexible(raw: RawCell) -> Optional[str]:
    """
    Parse a date cell or metadata value to ISO (YYYY-MM-DD).

    Handles spreadsheet serial numbers, YYYY/MM/DD and YYYY-MM-DD strings,
    DD.MM.YYYY strings and date ranges (the start date is returned). A bare
    year such as 2024 is not a serial and stays as text. When
    no date can be recognised the trimmed original text is returned, so the
    result is None only for empty input.
    """
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        if _is_nan(raw):
            return None
        if _BARE_YEAR_RE.match(clean_cell(raw)):
            return clean_cell(raw)
        return excel_serial_to_iso(raw) or clean_cell(raw)

    text = clean_cell(raw)
    if not text:
        return None

    range_match = _RANGE_RE.search(text)
    if range_match:
        logger.debug(f"Date range detected in {text!r}, using start date")
        return parse_date_flexible(range_match.group(1))

    if _BARE_YEAR_RE.match(text):
        logger.debug(f"Bare year {text!r} kept as text")
        return text

    if _SERIAL_RE.match(text):
        iso = excel_serial_to_iso(float(text))
        if iso:
            return iso

    m = _YMD_RE.search(text)
    if m:
        iso = _valid_ymd(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        if iso:
            return iso

    m = _DMY_RE.search(text)
    if m:
        iso = _valid_ymd(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        if iso:
            return iso

    logger.debug(f"Could not parse date {text!r}, keeping raw text")
    return text


def row_text(row) -> str:
    """Join the cleaned cells of a row with single spaces."""
    return " ".join(t for t in (clean_cell(c) for c in row or []) if t)


def cell_at(row, index: Optional[int]) -> RawCell:
    """Return row[index] or None when the index is unset or out of range."""
    if row is None or index is None or index < 0 or index >= len(row):
        return None
    return row[index]
