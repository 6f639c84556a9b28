"""
Decoders for the textual encodings of a single game or match outcome.

Swiss round tokens ("12w1", "12 b ½", "12-w-+"), cross-table cells ("1",
"=", "d", "*"), team match scores ("4½ - 1½", "6F - 0F") and board results
("1 : 0", "½:½", "+ : -") all map onto the vocabulary in tournament_records.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sheet_cells import RawCell, clean_cell
from tournament_records import (
    BLACK,
    BYE,
    DRAW,
    FORFEIT,
    LOSS,
    WHITE,
    WIN,
    PlayerRanking,
    RoundResult,
)

logger = logging.getLogger(__name__)

CHESS_TITLES = ("GM", "IM", "FM", "CM", "WGM", "WIM", "WFM", "WCM", "NM")

_SWISS_TOKEN_RE = re.compile(
    r"^(\d+)[\s\-]*([wb])[\s\-]*(1/2|0\.5|[01½+=\-])$", re.IGNORECASE
)
_BYE_TOKENS = {"bye", "- - -", "---", "+ bye", "bye +", "spielfrei", "free", "0 bye"}

_RESULT_GLYPHS = {
    "1": WIN,
    "+": WIN,
    "0": LOSS,
    "-": LOSS,
    "½": DRAW,
    "=": DRAW,
    "0.5": DRAW,
    "1/2": DRAW,
}

_CROSSTABLE_TOKENS = {
    "1": WIN,
    "+": WIN,
    "w": WIN,
    "win": WIN,
    "0": LOSS,
    "l": LOSS,
    "loss": LOSS,
    "½": DRAW,
    "0.5": DRAW,
    "=": DRAW,
    "d": DRAW,
    "draw": DRAW,
}
_NO_GAME_TOKENS = {"", "*", "-"}

_TEAM_SCORE_RE = re.compile(
    r"^(\d*½|\d+(?:[.,]\d+)?)\s*(F?)\s*[-–—:]\s*(\d*½|\d+(?:[.,]\d+)?)\s*(F?)$",
    re.IGNORECASE,
)
_BOARD_RESULT_RE = re.compile(r"^(\d*½|\d+(?:\.\d+)?)\s*:\s*(\d*½|\d+(?:\.\d+)?)$")
_BOARD_FORFEITS = {
    ("+", "-"): (1.0, 0.0),
    ("-", "+"): (0.0, 1.0),
    ("-", "-"): (0.0, 0.0),
}

_TEAM_PAIRING_RE = re.compile(r"^\d+\.\d+$")
_BOARD_NUMBER_RE = re.compile(r"^[1-8]$")


@dataclass
class MatchScore:
    white: float
    black: float
    is_forfeit: bool = False


@dataclass
class BoardResult:
    result: str
    white_score: float
    black_score: float
    white_result: str
    black_result: str


def parse_score_value(text: str) -> Optional[float]:
    """Parse a score such as '4', '4.5', '4,5', '4½' or '½'."""
    text = (text or "").strip()
    if not text:
        return None
    half = 0.0
    if text.endswith("½"):
        half = 0.5
        text = text[:-1]
        if not text:
            return half
    try:
        value = float(text.replace(",", "."))
    except ValueError:
        return None
    if value < 0:
        return None
    return value + half


def decode_swiss_round_token(value: RawCell) -> Optional[RoundResult]:
    """
    Decode a Swiss round cell into a RoundResult.

    Accepts <opponent><w|b><result> with or without spaces or dashes between
    the parts, and the result glyphs 1/0/½ as well as +/-/=. Bye markers
    decode to a bye. Returns None when no dialect matches.
    """
    text = clean_cell(value)
    if not text:
        return None
    if text.lower() in _BYE_TOKENS:
        return RoundResult.bye()

    match = _SWISS_TOKEN_RE.match(text)
    if not match:
        return None

    opponent, color_char, result_char = match.groups()
    return RoundResult(
        opponent=str(int(opponent)),
        color=WHITE if color_char.lower() == "w" else BLACK,
        result=_RESULT_GLYPHS.get(result_char),
        raw=text,
    )


def find_player_by_rank(rank: int, players: Sequence[PlayerRanking]) -> List[PlayerRanking]:
    return [p for p in players if p.rank == rank]


def decode_crosstable_cell(
    value: RawCell,
    opponent_rank: int,
    players: Sequence[PlayerRanking],
) -> Optional[RoundResult]:
    """
    Decode a round-robin cross-table cell against the opponent in column
    `opponent_rank`.

    '*' (the player's own column) and empty or '-' cells mean no game and
    decode to None. The opponent is the already-parsed player holding that
    rank; when none or several hold it, a "Rank N" placeholder is used.
    """
    text = clean_cell(value)
    if text in _NO_GAME_TOKENS:
        return None

    matches = find_player_by_rank(opponent_rank, players)
    if len(matches) == 1 and matches[0].name:
        opponent = matches[0].name
    else:
        if len(matches) > 1:
            logger.warning(
                f"Rank {opponent_rank} is shared by {len(matches)} players, "
                f"opponent left unresolved"
            )
        opponent = f"Rank {opponent_rank}"

    result = _CROSSTABLE_TOKENS.get(text.lower())
    if result is None:
        logger.debug(f"Unrecognised cross-table cell {text!r} vs rank {opponent_rank}")

    return RoundResult(opponent=opponent, color=None, result=result, raw=text)


def decode_team_match_score(value: RawCell) -> Optional[MatchScore]:
    """
    Decode a team match score such as '4½ - 1½', '4.5-1.5', '3:3' or
    '6F - 0F'. The F suffix marks a forfeited match.
    """
    text = clean_cell(value)
    if not text:
        return None
    match = _TEAM_SCORE_RE.match(text)
    if not match:
        logger.debug(f"Could not parse team score {text!r}")
        return None

    white = parse_score_value(match.group(1))
    black = parse_score_value(match.group(3))
    if white is None or black is None:
        return None
    is_forfeit = bool(match.group(2) or match.group(4))
    return MatchScore(white=white, black=black, is_forfeit=is_forfeit)


def _format_score(score: float) -> str:
    return f"{score:g}"


def _side_results(white: float, black: float):
    if white == 1 and black == 0:
        return WIN, LOSS
    if white == 0 and black == 1:
        return LOSS, WIN
    if white == 0.5 and black == 0.5:
        return DRAW, DRAW
    if white == 0 and black == 0:
        return FORFEIT, FORFEIT
    return None


def decode_board_result(value: RawCell) -> Optional[BoardResult]:
    """
    Decode a board result: '1:0', '0 : 1', '½:½', '0.5:0.5', the forfeit
    glyphs '+ : -' / '- : +' / '- : -', and an empty cell or bare ':' for an
    unplayed board (both scores 0, both sides tagged forfeit).
    """
    text = clean_cell(value)
    compact = re.sub(r"\s+", "", text)
    if compact in ("", ":"):
        return BoardResult("0:0", 0.0, 0.0, FORFEIT, FORFEIT)

    if ":" in compact:
        left, _, right = compact.partition(":")
        if (left, right) in _BOARD_FORFEITS:
            white, black = _BOARD_FORFEITS[(left, right)]
            return BoardResult(
                f"{_format_score(white)}:{_format_score(black)}",
                white,
                black,
                FORFEIT,
                FORFEIT,
            )

    match = _BOARD_RESULT_RE.match(compact)
    if not match:
        logger.debug(f"Could not parse board result {text!r}")
        return None

    white = parse_score_value(match.group(1))
    black = parse_score_value(match.group(2))
    if white is None or black is None:
        return None

    sides = _side_results(white, black)
    if sides is None:
        logger.warning(f"Unexpected board score combination {white}:{black}")
        return None

    if white == 0.5 and black == 0.5:
        canonical = "½:½"
    else:
        canonical = f"{_format_score(white)}:{_format_score(black)}"
    return BoardResult(canonical, white, black, sides[0], sides[1])


def detect_round_number(filename: str) -> Optional[int]:
    """
    Detect a round number from a file name.
    Examples: "Round_18.xlsx" -> 18, "R6_pairings.xlsx" -> 6, "round7" -> 7
    """
    if not filename:
        return None
    match = re.search(r"round[_\s\-]*(\d+)", filename, re.IGNORECASE)
    if match:
        return int(match.group(1))
    match = re.search(r"(?:^|[^a-z])r(\d+)", filename, re.IGNORECASE)
    if match:
        return int(match.group(1))
    for match in re.finditer(r"(?<!\d)(\d+)(?!\d)", filename):
        number = int(match.group(1))
        if 1 <= number <= 30:
            return number
    return None


def is_team_pairing_number(value: RawCell) -> bool:
    """True for pairing numbers such as '18.1' or '6.2'."""
    return bool(_TEAM_PAIRING_RE.match(clean_cell(value)))


def is_board_number(value: RawCell) -> bool:
    """True for board numbers 1-8."""
    return bool(_BOARD_NUMBER_RE.match(clean_cell(value)))


def is_chess_title(value: RawCell) -> bool:
    return clean_cell(value).upper() in CHESS_TITLES


def split_player_title(name: str):
    """Split 'GM Fedoseev Vladimir' into ('Fedoseev Vladimir', 'GM')."""
    cleaned = (name or "").strip()
    parts = cleaned.split(None, 1)
    if len(parts) == 2 and parts[0].upper() in CHESS_TITLES:
        return parts[1].strip(), parts[0].upper()
    return cleaned, None
