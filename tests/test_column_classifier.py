"""Unit tests for header classification in column_classifier."""

from column_classifier import classify_headers, round_number_of, tie_break_slot
from format_profiles import ROUND_ROBIN, SWISS_LEGACY, SWISS_MANAGER


class TestRoundNumberOf:
    """Tests for round_number_of()."""

    def test_round_headers(self):
        assert round_number_of("1.Rd") == 1
        assert round_number_of("12.rd.") == 12
        assert round_number_of("R3") == 3
        assert round_number_of("Round 4") == 4

    def test_not_round_headers(self):
        assert round_number_of("Rtg") is None
        assert round_number_of("3") is None


class TestClassifyHeadersSwiss:
    """Tests for classify_headers() with the Swiss profiles."""

    def test_fixed_roles(self):
        columns = classify_headers(["Rk", "Name", "FED", "Rtg", "Pts", "1.Rd"], SWISS_LEGACY)
        assert (columns.rank, columns.name, columns.federation) == (0, 1, 2)
        assert (columns.rating, columns.points) == (3, 4)
        assert [(c.index, c.round_number, c.width) for c in columns.round_columns] == [(5, 1, 3)]

    def test_three_cell_round_groups(self):
        headers = ["Rk.", "Name", "FED", "1.Rd", None, None, "2.Rd", "", "", "Pts."]
        columns = classify_headers(headers, SWISS_LEGACY)
        assert [(c.index, c.width) for c in columns.round_columns] == [(3, 3), (6, 3)]
        assert columns.points == 9

    def test_trailing_group_in_trimmed_header(self):
        """Workbook reading drops the blank cells closing the last group."""
        headers = ["Rk.", "Name", "FED", "1.Rd", None, None, "2.Rd"]
        columns = classify_headers(headers, SWISS_LEGACY)
        assert [(c.index, c.width) for c in columns.round_columns] == [(3, 3), (6, 3)]

    def test_numeric_headers_are_not_rounds(self):
        columns = classify_headers(["Rk", "Name", "FED", "1", "2"], SWISS_LEGACY)
        assert columns.round_columns == []
        assert columns.opponent_rank_columns == []
        assert columns.tie_break_columns == []

    def test_first_occurrence_wins(self):
        columns = classify_headers(["Rk", "Name", "Name", "FED"], SWISS_LEGACY)
        assert columns.name == 1

    def test_generic_tie_breaks(self):
        columns = classify_headers(["Rk", "Name", "FED", "Pts", "TB1", "TB2", "TB 3"], SWISS_LEGACY)
        assert [(c.slot, c.index) for c in columns.tie_break_columns] == [
            ("TB1", 4),
            ("TB2", 5),
            ("TB3", 6),
        ]

    def test_swiss_manager_named_tie_breaks(self):
        headers = ["Rk.", "SNo", "Name", "Rtg", "FED", "Pts.", "Res.", "BH:GP", "Win", "TPR", "Rp"]
        columns = classify_headers(headers, SWISS_MANAGER)
        assert columns.player_number == 1
        assert [c.slot for c in columns.tie_break_columns] == [
            "direct_encounter",
            "buchholz",
            "wins",
            "tournament_performance",
        ]


class TestClassifyHeadersRoundRobin:
    """Tests for classify_headers() with the cross-table profile."""

    def test_numeric_headers_are_opponent_ranks(self):
        headers = ["Rk.", "Name", "Rtg", "1", "2", "3", "Pts.", "SB", "BH", "DE"]
        columns = classify_headers(headers, ROUND_ROBIN)
        assert [(c.index, c.opponent_rank) for c in columns.opponent_rank_columns] == [
            (3, 1),
            (4, 2),
            (5, 3),
        ]
        assert columns.round_columns == []
        assert [c.slot for c in columns.tie_break_columns] == ["TB1", "TB2", "TB3"]

    def test_numeric_cells_from_workbook(self):
        columns = classify_headers(["Rank", "Name", 1.0, 2.0], ROUND_ROBIN)
        assert [c.opponent_rank for c in columns.opponent_rank_columns] == [1, 2]

    def test_alias_lookup(self):
        assert tie_break_slot("ratp", ROUND_ROBIN) == "TB5"
        assert tie_break_slot("ratp", SWISS_MANAGER) == "performance_rating"
        assert tie_break_slot("ratp", SWISS_LEGACY) is None
