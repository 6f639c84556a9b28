"""
Header-row classification into semantic column roles.

The same header text means different things in different exports: in a
Swiss final ranking "1.Rd" starts a round group, while in a round-robin
cross-table a bare "3" is the column of the opponent ranked third.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from format_profiles import (
    FED_PATTERN,
    NAME_PATTERN,
    RANK_PATTERN,
    RATING_PATTERN,
    FormatProfile,
    RoundColumnMode,
)
from sheet_cells import RawCell, clean_cell

logger = logging.getLogger(__name__)

# Ordered role rules; the first cell matching a role claims it
ROLE_PATTERNS = (
    ("rank", re.compile(RANK_PATTERN)),
    ("player_number", re.compile(r"^(sno\.?|no\.?|snr\.?)$")),
    ("name", re.compile(NAME_PATTERN)),
    ("title", re.compile(r"^(title|tit\.?)$")),
    ("federation", re.compile(FED_PATTERN)),
    ("rating", re.compile(RATING_PATTERN)),
    ("points", re.compile(r"^(pts\.?|points)$")),
)

ROUND_HEADER_RE = re.compile(r"^(?:(\d+)\.?\s*rd\.?|r\s*(\d+)|round\s*(\d+))$")
OPPONENT_RANK_RE = re.compile(r"^\d+$")
GENERIC_TIE_BREAK_RE = re.compile(r"^tb\s*(\d+)$")


@dataclass
class RoundColumn:
    index: int
    round_number: int
    width: int = 1


@dataclass
class OpponentRankColumn:
    index: int
    opponent_rank: int


@dataclass
class TieBreakColumn:
    index: int
    slot: str


@dataclass
class ColumnMap:
    rank: Optional[int] = None
    player_number: Optional[int] = None
    name: Optional[int] = None
    title: Optional[int] = None
    federation: Optional[int] = None
    rating: Optional[int] = None
    points: Optional[int] = None
    round_columns: List[RoundColumn] = field(default_factory=list)
    opponent_rank_columns: List[OpponentRankColumn] = field(default_factory=list)
    tie_break_columns: List[TieBreakColumn] = field(default_factory=list)

    def summary(self) -> Dict[str, object]:
        return {
            "rank": self.rank,
            "name": self.name,
            "federation": self.federation,
            "rating": self.rating,
            "points": self.points,
            "rounds": [c.index for c in self.round_columns],
            "opponent_ranks": {c.opponent_rank: c.index for c in self.opponent_rank_columns},
            "tie_breaks": {c.slot: c.index for c in self.tie_break_columns},
        }


def round_number_of(header: str) -> Optional[int]:
    """Round number of a '3.Rd' / 'R3' / 'Round 3' header, else None."""
    match = ROUND_HEADER_RE.match(header.strip().lower())
    if not match:
        return None
    return int(next(g for g in match.groups() if g))


def tie_break_slot(header: str, profile: FormatProfile) -> Optional[str]:
    match = GENERIC_TIE_BREAK_RE.match(header)
    if match:
        return f"TB{match.group(1)}"
    for pattern, slot in profile.tie_break_aliases:
        if pattern.match(header):
            return slot
    return None


def _round_group_width(headers: Sequence[str], index: int) -> int:
    # cells past the end of a trimmed header row count as blank
    following = list(headers[index + 1 : index + 3])
    following += [""] * (2 - len(following))
    if not any(following):
        return 3
    return 1


def classify_headers(header_row: Sequence[RawCell], profile: FormatProfile) -> ColumnMap:
    """
    Map header cells to column roles in a single pass.

    Fixed roles (rank, name, federation, rating, points) keep their first
    occurrence. Round columns depend on the profile's round mode, and the
    remaining labelled cells are matched against the tie-break slots.
    """
    headers = [clean_cell(h).lower() for h in header_row]
    columns = ColumnMap()
    seen_slots = set()

    for index, header in enumerate(headers):
        if not header:
            continue

        role = next((r for r, p in ROLE_PATTERNS if p.match(header)), None)
        if role:
            if getattr(columns, role) is None:
                setattr(columns, role, index)
            continue

        if profile.round_mode == RoundColumnMode.ROUND_GROUPS:
            round_no = round_number_of(header)
            if round_no is not None:
                columns.round_columns.append(
                    RoundColumn(index, round_no, _round_group_width(headers, index))
                )
                continue
        elif profile.round_mode == RoundColumnMode.OPPONENT_RANK:
            # Cross-table: a bare number is the opponent's rank, not a round
            if OPPONENT_RANK_RE.match(header):
                columns.opponent_rank_columns.append(
                    OpponentRankColumn(index, int(header))
                )
                continue

        slot = tie_break_slot(header, profile)
        if slot and slot not in seen_slots:
            seen_slots.add(slot)
            columns.tie_break_columns.append(TieBreakColumn(index, slot))
        elif not slot:
            logger.debug(f"Header {header!r} at column {index} left unclassified")

    return columns
