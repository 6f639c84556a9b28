"""
Heuristic labelling of unnamed tie-break values.

Legacy exports only say TB1..TB5, so the kind of each value is guessed from
its magnitude, whether it is whole, and how it ranks against the other
values of the same player. The guess is ambiguous by nature: more than two
rating-like values, or a whole-number Buchholz, fall back to the
candidate/unclassified labels.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Tuple

RATING_MIN = 100
RATING_MAX = 3500
MAX_WINS = 15


class TieBreakKind(str, Enum):
    DIRECT_ENCOUNTER = "Direct Encounter"
    NUMBER_OF_WINS = "Number of Wins"
    PERFORMANCE_RATING = "Performance Rating"
    AVERAGE_RATING_OF_OPPONENTS = "Average Rating of Opponents"
    PERFORMANCE_ARO_CANDIDATE = "Performance/ARO Candidate"
    BUCHHOLZ_SONNEBORN = "Buchholz / Sonneborn-Berger"
    BUCHHOLZ_GAMEPOINTS = "Buchholz (Gamepoints)"
    UNKNOWN = "Unknown"
    UNCLASSIFIED = "Unclassified"


def _as_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _is_whole(value: float) -> bool:
    return float(value).is_integer()


def _is_rating_like(value: float) -> bool:
    return _is_whole(value) and RATING_MIN <= value <= RATING_MAX


@dataclass(frozen=True)
class RowContext:
    """The numeric tie-break values of one player, keyed by slot."""

    values: Tuple[Tuple[str, float], ...]

    @classmethod
    def from_mapping(cls, tie_breaks: Mapping[str, object]) -> "RowContext":
        numeric = []
        for key, raw in tie_breaks.items():
            number = _as_number(raw)
            if number is not None:
                numeric.append((key, number))
        return cls(tuple(numeric))

    def rating_order(self) -> List[str]:
        """Slots holding rating-like values, highest value first."""
        rated = [(k, v) for k, v in self.values if _is_rating_like(v)]
        # stable sort keeps row order for equal values
        return [k for k, _ in sorted(rated, key=lambda kv: -kv[1])]

    def fractional_slots(self) -> List[str]:
        return [k for k, v in self.values if not _is_whole(v)]


RuleFn = Callable[[str, float, RowContext], Optional[TieBreakKind]]


@dataclass(frozen=True)
class TieBreakRule:
    name: str
    apply: RuleFn


def _direct_encounter(slot, value, ctx):
    if value in (0, 0.5, 1):
        return TieBreakKind.DIRECT_ENCOUNTER
    return None


def _number_of_wins(slot, value, ctx):
    if _is_whole(value) and value <= MAX_WINS:
        return TieBreakKind.NUMBER_OF_WINS
    return None


def _rating_like(slot, value, ctx):
    if not _is_rating_like(value):
        return None
    order = ctx.rating_order()
    if order and order[0] == slot:
        return TieBreakKind.PERFORMANCE_RATING
    if len(order) > 1 and order[1] == slot:
        return TieBreakKind.AVERAGE_RATING_OF_OPPONENTS
    return TieBreakKind.PERFORMANCE_ARO_CANDIDATE


def _fractional(slot, value, ctx):
    if _is_whole(value):
        return None
    siblings = [k for k in ctx.fractional_slots() if k != slot]
    if siblings:
        return TieBreakKind.BUCHHOLZ_SONNEBORN
    return TieBreakKind.BUCHHOLZ_GAMEPOINTS


# Evaluated in this order; the first rule returning a kind wins
RULES = (
    TieBreakRule("direct_encounter", _direct_encounter),
    TieBreakRule("number_of_wins", _number_of_wins),
    TieBreakRule("rating_like", _rating_like),
    TieBreakRule("fractional", _fractional),
)


def classify(slot: str, value, row_context: RowContext) -> TieBreakKind:
    """Classify one tie-break value using the whole row as context."""
    number = _as_number(value)
    if number is None:
        return TieBreakKind.UNKNOWN
    for rule in RULES:
        kind = rule.apply(slot, number, row_context)
        if kind is not None:
            return kind
    return TieBreakKind.UNCLASSIFIED


def classify_tie_breaks(tie_breaks: Optional[Mapping[str, object]]) -> Optional[Dict[str, TieBreakKind]]:
    """
    Label every entry of a player's tie-break mapping.

    >>> classify_tie_breaks({"TB1": 1, "TB2": 2150, "TB3": 1980})["TB2"].value
    'Performance Rating'
    """
    if tie_breaks is None:
        return None
    ctx = RowContext.from_mapping(tie_breaks)
    return {slot: classify(slot, value, ctx) for slot, value in tie_breaks.items()}
