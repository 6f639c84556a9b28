"""
Output records produced by the tournament spreadsheet parsers.

All records are plain dataclasses owned by a single parse result. to_dict()
gives the JSON-ready shape; flatten_rankings() and flatten_team_round() give
one flat row per player-round / board for tabular export.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

WIN = "win"
LOSS = "loss"
DRAW = "draw"
BYE = "bye"
FORFEIT = "forfeit"

WHITE = "white"
BLACK = "black"


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


@dataclass
class TournamentMetadata:
    tournament_name: Optional[str] = None
    section: Optional[str] = None
    organizer: Optional[str] = None
    federation: Optional[str] = None
    chief_arbiter: Optional[str] = None
    deputy_chief_arbiter: Optional[str] = None
    tournament_director: Optional[str] = None
    arbiter: Optional[str] = None
    time_control: Optional[str] = None
    rate_of_play: Optional[str] = None
    location: Optional[str] = None
    rounds: Optional[int] = None
    tournament_type: Optional[str] = None
    rating_calculation: Optional[str] = None
    date: Optional[str] = None
    average_elo: Optional[int] = None
    average_age: Optional[float] = None
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Only the fields that were found; source is always present."""
        return _drop_none(asdict(self))


@dataclass
class TeamTournamentMetadata(TournamentMetadata):
    round_number: Optional[int] = None
    round_date: Optional[str] = None


@dataclass
class RoundResult:
    """
    One entry of a player's rounds.

    A bye has no opponent and no colour. A game keeps the original cell text
    in raw; result is None when the cell could not be decoded.
    """

    opponent: Optional[str] = None
    color: Optional[str] = None
    result: Optional[str] = None
    raw: Optional[str] = None

    @classmethod
    def bye(cls) -> "RoundResult":
        return cls(opponent=None, color=None, result=BYE)

    @property
    def is_bye(self) -> bool:
        return self.result == BYE

    def to_dict(self) -> Dict[str, Any]:
        if self.is_bye:
            return {"opponent": None, "color": None, "result": BYE}
        return {
            "opponent": self.opponent,
            "color": self.color,
            "result": self.result,
            "raw": self.raw,
        }


@dataclass
class PlayerRanking:
    rank: int
    name: Optional[str] = None
    federation: Optional[str] = None
    rating: Optional[int] = None
    points: Optional[float] = None
    rounds: List[RoundResult] = field(default_factory=list)
    tie_breaks: Dict[str, Optional[float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "name": self.name,
            "federation": self.federation,
            "rating": self.rating,
            "points": self.points,
            "rounds": [r.to_dict() for r in self.rounds],
            "tie_breaks": dict(self.tie_breaks),
        }


@dataclass
class TournamentData:
    tournament_metadata: TournamentMetadata
    player_rankings: List[PlayerRanking] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_metadata": self.tournament_metadata.to_dict(),
            "player_rankings": [p.to_dict() for p in self.player_rankings],
        }


@dataclass
class BoardPairing:
    board_number: int
    white_player: Optional[str]
    black_player: Optional[str]
    white_rating: Optional[int]
    black_rating: Optional[int]
    result: str
    white_score: float
    black_score: float
    white_result: str
    black_result: str
    white_title: Optional[str] = None
    black_title: Optional[str] = None

    @property
    def has_missing_player(self) -> bool:
        return self.white_player is None or self.black_player is None

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        for key in ("white_title", "black_title"):
            if values[key] is None:
                del values[key]
        return values


@dataclass
class TeamPairing:
    pairing_number: str
    team_white: str
    team_black: str
    team_white_score: float
    team_black_score: float
    is_forfeit: bool = False
    team_white_rank: Optional[int] = None
    team_black_rank: Optional[int] = None
    board_pairings: List[BoardPairing] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        values = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "board_pairings"
        }
        values = _drop_none(values)
        values["board_pairings"] = [b.to_dict() for b in self.board_pairings]
        return values


@dataclass
class PairingWarning:
    pairing_number: str
    kind: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TeamRoundData:
    tournament_metadata: TeamTournamentMetadata
    team_pairings: List[TeamPairing] = field(default_factory=list)
    warnings: List[PairingWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_metadata": self.tournament_metadata.to_dict(),
            "team_pairings": [p.to_dict() for p in self.team_pairings],
            "warnings": [w.to_dict() for w in self.warnings],
        }


def flatten_rankings(data: TournamentData) -> List[Dict[str, Any]]:
    """
    Flatten a parse result for Parquet storage.
    Creates one row per player-round combination; players without rounds
    get a single row with empty round fields.
    """
    meta = data.tournament_metadata
    flattened = []
    for player in data.player_rankings:
        base = {
            "source": meta.source or "",
            "tournament_name": meta.tournament_name or "",
            "rank": player.rank,
            "name": player.name or "",
            "federation": player.federation or "",
            "rating": player.rating,
            "points": player.points,
        }
        if not player.rounds:
            flattened.append(
                {**base, "round": None, "opponent": "", "color": "", "result": "", "raw": ""}
            )
            continue
        for round_no, rnd in enumerate(player.rounds, start=1):
            flattened.append(
                {
                    **base,
                    "round": round_no,
                    "opponent": rnd.opponent or "",
                    "color": rnd.color or "",
                    "result": rnd.result or "",
                    "raw": rnd.raw or "",
                }
            )
    return flattened


def flatten_team_round(data: TeamRoundData) -> List[Dict[str, Any]]:
    """One row per board pairing, carrying its team pairing's fields."""
    meta = data.tournament_metadata
    flattened = []
    for pairing in data.team_pairings:
        base = {
            "source": meta.source or "",
            "round_number": meta.round_number,
            "pairing_number": pairing.pairing_number,
            "team_white": pairing.team_white,
            "team_black": pairing.team_black,
            "team_white_score": pairing.team_white_score,
            "team_black_score": pairing.team_black_score,
            "is_forfeit": pairing.is_forfeit,
        }
        for board in pairing.board_pairings:
            flattened.append(
                {
                    **base,
                    "board_number": board.board_number,
                    "white_player": board.white_player or "",
                    "black_player": board.black_player or "",
                    "white_rating": board.white_rating,
                    "black_rating": board.black_rating,
                    "result": board.result,
                    "white_score": board.white_score,
                    "black_score": board.black_score,
                }
            )
    return flattened
