"""Unit tests for cell normalization in sheet_cells."""

from datetime import date, datetime

from sheet_cells import (
    cell_at,
    clean_cell,
    excel_serial_to_iso,
    parse_date_flexible,
    parse_decimal_or_null,
    parse_int_or_null,
    row_text,
)


class TestCleanCell:
    """Tests for clean_cell()."""

    def test_empty_values(self):
        assert clean_cell(None) == ""
        assert clean_cell(float("nan")) == ""
        assert clean_cell("   ") == ""

    def test_strips_text(self):
        assert clean_cell("  Jane Doe ") == "Jane Doe"

    def test_integral_float_has_no_decimal_suffix(self):
        assert clean_cell(18.0) == "18"
        assert clean_cell(4.5) == "4.5"
        assert clean_cell(7) == "7"

    def test_dates_render_as_iso(self):
        assert clean_cell(datetime(2024, 5, 1)) == "2024-05-01"
        assert clean_cell(date(2024, 5, 1)) == "2024-05-01"


class TestParseIntOrNull:
    """Tests for parse_int_or_null()."""

    def test_valid_integers(self):
        assert parse_int_or_null("1800") == 1800
        assert parse_int_or_null(1800) == 1800
        assert parse_int_or_null(1800.0) == 1800
        assert parse_int_or_null(" 12 ") == 12

    def test_missing_markers(self):
        assert parse_int_or_null("") is None
        assert parse_int_or_null("-") is None
        assert parse_int_or_null(None) is None

    def test_rejects_non_numeric(self):
        assert parse_int_or_null("abc") is None
        assert parse_int_or_null("12w1") is None
        assert parse_int_or_null("4.5") is None


class TestParseDecimalOrNull:
    """Tests for parse_decimal_or_null()."""

    def test_plain_numbers(self):
        assert parse_decimal_or_null("4.5") == 4.5
        assert parse_decimal_or_null(3) == 3.0
        assert parse_decimal_or_null(2.5) == 2.5

    def test_half_glyph(self):
        assert parse_decimal_or_null("4½") == 4.5
        assert parse_decimal_or_null("½") == 0.5

    def test_decimal_comma(self):
        assert parse_decimal_or_null("4,5") == 4.5

    def test_invalid(self):
        assert parse_decimal_or_null("") is None
        assert parse_decimal_or_null("-") is None
        assert parse_decimal_or_null("n/a") is None
        assert parse_decimal_or_null(float("nan")) is None


class TestParseDateFlexible:
    """Tests for parse_date_flexible() and excel_serial_to_iso()."""

    def test_serial_number(self):
        assert excel_serial_to_iso(45000) == "2023-03-15"
        assert parse_date_flexible(45000) == "2023-03-15"
        assert parse_date_flexible("45000") == "2023-03-15"

    def test_serial_before_leap_bug(self):
        assert excel_serial_to_iso(1) == "1900-01-01"
        assert excel_serial_to_iso(59) == "1900-02-28"
        assert excel_serial_to_iso(61) == "1900-03-01"

    def test_serial_output_is_idempotent(self):
        iso = parse_date_flexible(45000)
        assert parse_date_flexible(iso) == iso

    def test_text_formats(self):
        assert parse_date_flexible("2024/05/01") == "2024-05-01"
        assert parse_date_flexible("2024-5-1") == "2024-05-01"
        assert parse_date_flexible("01.05.2024") == "2024-05-01"
        assert parse_date_flexible("1/5/2024") == "2024-05-01"

    def test_date_range_uses_start(self):
        assert parse_date_flexible("2024/05/01 to 2024/05/05") == "2024-05-01"

    def test_datetime_cell(self):
        assert parse_date_flexible(datetime(2025, 10, 30, 14, 0)) == "2025-10-30"

    def test_bare_year_is_not_a_serial(self):
        assert parse_date_flexible("2024") == "2024"
        assert parse_date_flexible(2024) == "2024"
        assert parse_date_flexible(2024.0) == "2024"
        # other numbers are still serials
        assert parse_date_flexible("45000") == "2023-03-15"

    def test_unrecognised_text_is_kept(self):
        assert parse_date_flexible("sometime in May") == "sometime in May"

    def test_empty(self):
        assert parse_date_flexible("") is None
        assert parse_date_flexible(None) is None


class TestRowHelpers:
    """Tests for row_text() and cell_at()."""

    def test_row_text_skips_empty_cells(self):
        assert row_text(["Round 3", None, "", 18.0]) == "Round 3 18"
        assert row_text(None) == ""

    def test_cell_at_out_of_range(self):
        row = ["a", "b"]
        assert cell_at(row, 1) == "b"
        assert cell_at(row, 5) is None
        assert cell_at(row, None) is None
        assert cell_at(None, 0) is None
