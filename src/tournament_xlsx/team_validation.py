"""
Cross-checks for parsed team pairings.

Checks never modify a pairing; they return warnings for the caller to log
and attach to the round result.
"""

import logging
from typing import List, Sequence

from tournament_records import PairingWarning, TeamPairing

logger = logging.getLogger(__name__)

MIN_BOARDS = 3
MAX_BOARDS = 8
SCORE_TOLERANCE = 1e-9

BOARD_COUNT = "board_count"
SCORE_MISMATCH = "score_mismatch"


def validate_team_pairing(pairing: TeamPairing) -> List[PairingWarning]:
    """
    Check the board count and that the board scores add up to the declared
    team score.
    """
    warnings = []

    board_count = len(pairing.board_pairings)
    if board_count < MIN_BOARDS or board_count > MAX_BOARDS:
        warnings.append(
            PairingWarning(
                pairing.pairing_number,
                BOARD_COUNT,
                f"Unusual board count for pairing {pairing.pairing_number}: {board_count} boards",
            )
        )

    white_sum = sum(b.white_score for b in pairing.board_pairings)
    black_sum = sum(b.black_score for b in pairing.board_pairings)
    if (
        abs(white_sum - pairing.team_white_score) > SCORE_TOLERANCE
        or abs(black_sum - pairing.team_black_score) > SCORE_TOLERANCE
    ):
        warnings.append(
            PairingWarning(
                pairing.pairing_number,
                SCORE_MISMATCH,
                f"Team score {pairing.team_white_score:g}-{pairing.team_black_score:g} "
                f"does not match board total {white_sum:g}-{black_sum:g}",
            )
        )

    return warnings


def validate_team_pairings(pairings: Sequence[TeamPairing], log=logger) -> List[PairingWarning]:
    warnings = []
    for pairing in pairings:
        for warning in validate_team_pairing(pairing):
            log.warning(f"Pairing {warning.pairing_number}: {warning.message}")
            warnings.append(warning)
    return warnings
