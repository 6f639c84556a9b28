"""
Workbook reading and structural location inside a sheet grid.

The grid is a list of rows of raw cells, exactly as the first worksheet
holds them (no header inference). The locator functions find the ranking
section marker, the header row below it and the footer that ends the data.
"""

import logging
import re
from io import BytesIO
from typing import List, Optional, Pattern, Sequence

import pandas as pd

from sheet_cells import RawCell, clean_cell

logger = logging.getLogger(__name__)

Row = List[RawCell]
Grid = List[Row]

RANKING_MARKERS = (
    "final ranking",
    "ranking crosstable",
    "crosstable",
    "final standing",
)
FOOTER_SIGNATURES = ("program", "swiss-manager", "chess-results", "http", "www.")


class WorkbookReadError(Exception):
    """The byte buffer is not a workbook that can be opened."""


def _trim_row(row: Sequence[RawCell]) -> Row:
    cells = [None if _is_missing(v) else v for v in row]
    while cells and clean_cell(cells[-1]) == "":
        cells.pop()
    return cells


def _is_missing(value) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def read_sheet_rows(buffer: bytes) -> Grid:
    """
    Read the first worksheet of an .xlsx/.xls buffer into a row-major grid.
    Empty cells become None and trailing empty cells are dropped.
    Raises WorkbookReadError when the buffer cannot be opened.
    """
    if not buffer:
        raise WorkbookReadError("empty workbook buffer")
    try:
        df = pd.read_excel(BytesIO(buffer), sheet_name=0, header=None, dtype=object)
    except Exception as e:
        raise WorkbookReadError(f"could not read workbook: {e}") from e

    return [_trim_row(row) for row in df.itertuples(index=False, name=None)]


def find_section_marker(rows: Grid, phrases: Sequence[str] = RANKING_MARKERS) -> int:
    """
    Return the index of the first row whose column-A text contains one of
    the marker phrases (case-insensitive), or -1.
    """
    lowered = [p.lower() for p in phrases]
    for i, row in enumerate(rows):
        if not row:
            continue
        cell = clean_cell(row[0]).lower()
        if cell and any(p in cell for p in lowered):
            return i
    return -1


def row_matches_all(
    row: Optional[Row], required: Sequence[Pattern], min_cells: int = 0
) -> bool:
    """True when every required pattern matches at least one cell of the row."""
    if not row or len(row) < min_cells:
        return False
    cells = [clean_cell(c).lower() for c in row]
    return all(any(p.match(c) for c in cells if c) for p in required)


def find_header_row(
    rows: Grid,
    after_index: int,
    required: Sequence[Pattern],
    window_size: int,
    min_cells: int = 0,
) -> int:
    """
    Scan up to `window_size` rows after `after_index` for a row containing
    cells that match all of the required column-name patterns. Returns the
    row index or -1 when the window is exhausted.
    """
    start = max(after_index + 1, 0)
    stop = min(start + window_size, len(rows))
    for i in range(start, stop):
        if row_matches_all(rows[i], required, min_cells):
            return i
    return -1


def is_footer_row(row: Optional[Row], signatures: Sequence[str] = FOOTER_SIGNATURES) -> bool:
    """Footer rows carry the exporting program's name or a URL."""
    if not row:
        return False
    text = " ".join(clean_cell(c) for c in row).lower()
    return any(sig in text for sig in signatures)


def compile_patterns(patterns: Sequence[str]) -> tuple:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)
