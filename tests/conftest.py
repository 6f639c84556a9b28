"""Pytest configuration, path setup and workbook fixtures for parser tests."""

import sys
from io import BytesIO
from pathlib import Path

import pytest
from openpyxl import Workbook

# Add src/tournament_xlsx to path so tests can import parser modules
_parser_path = Path(__file__).parent.parent / "src" / "tournament_xlsx"
if str(_parser_path) not in sys.path:
    sys.path.insert(0, str(_parser_path))


@pytest.fixture
def make_workbook():
    """Return a function writing row lists into an in-memory .xlsx buffer."""

    def _make(rows):
        wb = Workbook()
        ws = wb.active
        for row in rows:
            ws.append(list(row))
        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def swiss_grid():
    """Minimal chess-results final ranking."""
    return [
        ["Test Open"],
        ["Rk", "Name", "FED", "Rtg", "Pts", "1.Rd"],
        ["1", "Jane Doe", "RSA", "1800", "1", "2w1"],
    ]
