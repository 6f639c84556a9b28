"""
Team round parser.

A team round export lists every match of one round: a pairing row ("18.2"
in column A) with both team names and the match score, followed by one row
per board ("1".."8" in column A). Two layouts exist for the pairing row:

    A=pairing | B=rank | C=white team | D=(empty) | E=score | F=rank | G=black team
    A=pairing | B=rank | C=white team | D=score   | E=rank | F=black team

Board rows always use
    A=board | B=title | C=white | D=rating | E=result | F=title | G=black | H=rating
"""

import logging
import re
from typing import List, Optional, Sequence

from format_profiles import TEAM_ROUND
from parse_trace import ParseStage, stage_logger
from result_tokens import (
    decode_board_result,
    decode_team_match_score,
    is_board_number,
    is_chess_title,
    is_team_pairing_number,
    split_player_title,
)
from sheet_cells import cell_at, clean_cell, parse_int_or_null
from sheet_metadata import extract_team_metadata
from sheet_structure import Grid, Row, is_footer_row, read_sheet_rows
from team_validation import validate_team_pairings
from tournament_records import BoardPairing, TeamPairing, TeamRoundData

logger = logging.getLogger(__name__)

_SCORE_HINT_RE = re.compile(r"[-–:½]")
ROW_DUMP_LIMIT = 20


def _player_name(raw) -> Optional[str]:
    name = clean_cell(raw)
    return None if not name or name == "-" else name


def _has_score_hint(text: str) -> bool:
    return bool(text) and bool(_SCORE_HINT_RE.search(text))


def parse_team_pairing_row(row: Row, log=logger) -> Optional[TeamPairing]:
    """Build a pairing (without boards) from a pairing row; None when the score is missing."""
    cells = [clean_cell(cell_at(row, i)) for i in range(7)]
    pairing_number = cells[0]

    if _has_score_hint(cells[4]) and cells[6]:
        score_text, white_rank, white_name, black_rank, black_name = (
            cells[4], cells[1], cells[2], cells[5], cells[6]
        )
    elif _has_score_hint(cells[3]) and cells[5]:
        score_text, white_rank, white_name, black_rank, black_name = (
            cells[3], cells[1], cells[2], cells[4], cells[5]
        )
    else:
        log.warning(f"Pairing {pairing_number}: could not find the score column in {cells!r}")
        return None

    score = decode_team_match_score(score_text)
    if score is None:
        log.warning(f"Pairing {pairing_number}: could not parse team score {score_text!r}")
        return None

    return TeamPairing(
        pairing_number=pairing_number,
        team_white=white_name or "Unknown",
        team_black=black_name or "Unknown",
        team_white_score=score.white,
        team_black_score=score.black,
        is_forfeit=score.is_forfeit,
        team_white_rank=parse_int_or_null(white_rank),
        team_black_rank=parse_int_or_null(black_rank),
    )


def parse_board_row(row: Row, log=logger) -> Optional[BoardPairing]:
    """Build one board pairing; None when the result cell cannot be decoded."""
    board_number = parse_int_or_null(cell_at(row, 0))
    result_text = clean_cell(cell_at(row, 4))
    result = decode_board_result(result_text)
    if board_number is None or result is None:
        log.warning(f"Board {clean_cell(cell_at(row, 0))}: could not parse result {result_text!r}")
        return None

    white_player = _player_name(cell_at(row, 2))
    black_player = _player_name(cell_at(row, 6))
    white_title = clean_cell(cell_at(row, 1)).upper() if is_chess_title(cell_at(row, 1)) else None
    black_title = clean_cell(cell_at(row, 5)).upper() if is_chess_title(cell_at(row, 5)) else None

    # Some exports prefix the title to the name instead of using its own column
    if white_player and white_title is None:
        white_player, white_title = split_player_title(white_player)
    if black_player and black_title is None:
        black_player, black_title = split_player_title(black_player)

    return BoardPairing(
        board_number=board_number,
        white_player=white_player,
        black_player=black_player,
        white_rating=parse_int_or_null(cell_at(row, 3)),
        black_rating=parse_int_or_null(cell_at(row, 7)),
        result=result.result,
        white_score=result.white_score,
        black_score=result.black_score,
        white_result=result.white_result,
        black_result=result.black_result,
        white_title=white_title,
        black_title=black_title,
    )


def infer_forfeit(pairing: TeamPairing) -> bool:
    """A zero on one side plus a board without a player marks a forfeited match."""
    if pairing.is_forfeit:
        return True
    zero_side = pairing.team_white_score == 0 or pairing.team_black_score == 0
    return zero_side and any(b.has_missing_player for b in pairing.board_pairings)


def extract_team_pairings(
    rows: Grid,
    log=logger,
    footer_signatures: Sequence[str] = TEAM_ROUND.footer_signatures,
) -> List[TeamPairing]:
    """
    Walk the grid once, attaching each board row to the most recent pairing
    row. Board rows seen while no valid pairing is open are skipped, and the
    walk ends at the first footer row after the first pairing row.
    """
    pairings: List[TeamPairing] = []
    current: Optional[TeamPairing] = None
    in_pairings = False

    for i, row in enumerate(rows):
        if not row:
            continue
        first = cell_at(row, 0)

        if in_pairings and is_footer_row(row, footer_signatures):
            log.debug(f"Footer at row {i}, stopping")
            break

        if is_team_pairing_number(first):
            in_pairings = True
            current = parse_team_pairing_row(row, log)
            if current is not None:
                pairings.append(current)
                log.debug(
                    f"Row {i}: pairing {current.pairing_number} "
                    f"{current.team_white} ({current.team_white_score:g}) - "
                    f"{current.team_black} ({current.team_black_score:g})"
                )
        elif current is not None and is_board_number(first):
            board = parse_board_row(row, log)
            if board is not None:
                current.board_pairings.append(board)
                log.debug(
                    f"Row {i}: board {board.board_number} {board.white_player} - "
                    f"{board.black_player} ({board.result})"
                )

    for pairing in pairings:
        if infer_forfeit(pairing) and not pairing.is_forfeit:
            log.info(f"Pairing {pairing.pairing_number} marked as forfeit (missing players)")
            pairing.is_forfeit = True
    return pairings


def parse_team_rows(rows: Grid, filename: str, logger: Optional[logging.Logger] = None) -> TeamRoundData:
    log = stage_logger(filename, ParseStage.SCANNING_METADATA, logger)
    log.info(f"Parsing {len(rows)} rows as team round")
    for i, row in enumerate(rows[:ROW_DUMP_LIMIT]):
        log.debug(f"Row {i}: {row!r}")

    metadata = extract_team_metadata(rows, filename, TEAM_ROUND, log)

    log = log.at(ParseStage.EXTRACTING_ROWS)
    pairings = extract_team_pairings(rows, log)

    warnings = validate_team_pairings(pairings, log.at(ParseStage.VALIDATING))

    log.at(ParseStage.DONE).info(
        f"Round {metadata.round_number}: {len(pairings)} team pairings, {len(warnings)} warnings"
    )
    return TeamRoundData(tournament_metadata=metadata, team_pairings=pairings, warnings=warnings)


def parse_team_round_results(buffer: bytes, filename: str = "uploaded.xlsx", logger=None) -> TeamRoundData:
    """Team round pairings with nested board results."""
    rows = read_sheet_rows(buffer)
    return parse_team_rows(rows, filename, logger)
