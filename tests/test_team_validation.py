"""Unit tests for team score cross-checks in team_validation."""

import copy

import pytest

from result_tokens import decode_board_result
from team_validation import (
    BOARD_COUNT,
    SCORE_MISMATCH,
    validate_team_pairing,
    validate_team_pairings,
)
from tournament_records import BoardPairing, TeamPairing


def _board(number, result_text):
    result = decode_board_result(result_text)
    return BoardPairing(
        board_number=number,
        white_player=f"White {number}",
        black_player=f"Black {number}",
        white_rating=None,
        black_rating=None,
        result=result.result,
        white_score=result.white_score,
        black_score=result.black_score,
        white_result=result.white_result,
        black_result=result.black_result,
    )


@pytest.fixture
def pairing():
    """Boards summing to 4.5 - 1.5."""
    results = ["1:0", "1:0", "½:½", "1:0", "0:1", "1:0"]
    return TeamPairing(
        pairing_number="18.1",
        team_white="Knights",
        team_black="Rooks",
        team_white_score=4.5,
        team_black_score=1.5,
        board_pairings=[_board(i, r) for i, r in enumerate(results, start=1)],
    )


class TestValidateTeamPairing:
    """Tests for validate_team_pairing()."""

    def test_consistent_pairing(self, pairing):
        assert validate_team_pairing(pairing) == []

    def test_flipped_board_is_reported(self, pairing):
        pairing.board_pairings[0] = _board(1, "0:1")
        before = copy.deepcopy(pairing)
        warnings = validate_team_pairing(pairing)
        assert [w.kind for w in warnings] == [SCORE_MISMATCH]
        assert "3.5-2.5" in warnings[0].message
        assert pairing == before

    def test_half_point_difference_is_reported(self, pairing):
        pairing.board_pairings[0] = _board(1, "½:½")
        assert [w.kind for w in validate_team_pairing(pairing)] == [SCORE_MISMATCH]

    def test_board_count_range(self, pairing):
        pairing.board_pairings = pairing.board_pairings[:2]
        pairing.team_white_score, pairing.team_black_score = 2.0, 0.0
        assert [w.kind for w in validate_team_pairing(pairing)] == [BOARD_COUNT]

        pairing.board_pairings = [_board(i, "1:0") for i in range(1, 10)]
        pairing.team_white_score = 9.0
        assert [w.kind for w in validate_team_pairing(pairing)] == [BOARD_COUNT]


class TestValidateTeamPairings:
    """Tests for validate_team_pairings()."""

    def test_warnings_are_logged(self, pairing, caplog):
        broken = copy.deepcopy(pairing)
        broken.pairing_number = "18.2"
        broken.team_white_score = 5.0
        warnings = validate_team_pairings([pairing, broken])
        assert [w.pairing_number for w in warnings] == ["18.2"]
        assert "Pairing 18.2" in caplog.text
