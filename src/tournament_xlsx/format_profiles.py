"""
Format profiles for the supported spreadsheet exports.

Each profile is a small value object telling the shared pipeline how to
find the ranking table, how to read round columns and which tie-break
labels the exporting tool uses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Pattern, Tuple

from sheet_structure import FOOTER_SIGNATURES, RANKING_MARKERS, compile_patterns

RANK_PATTERN = r"^(rk\.?|rank)$"
NAME_PATTERN = r"^name$"
FED_PATTERN = r"^(fed\.?|federation)$"
RATING_PATTERN = r"^(rtg|rating|elo)$"


class RoundColumnMode(str, Enum):
    # "1.Rd" headers start an opponent/colour/result group
    ROUND_GROUPS = "round_groups"
    # numeric headers reference the opponent's rank in a cross-table
    OPPONENT_RANK = "opponent_rank"
    NONE = "none"


@dataclass(frozen=True)
class FormatProfile:
    name: str
    marker_phrases: Tuple[str, ...]
    header_required: Tuple[Pattern, ...]
    header_window: int
    header_min_cells: int
    round_mode: RoundColumnMode
    tie_break_aliases: Tuple[Tuple[Pattern, str], ...] = ()
    footer_signatures: Tuple[str, ...] = FOOTER_SIGNATURES
    metadata_row_budget: int = 30
    keep_undecodable_rounds: bool = False
    blank_round_is_bye: bool = False
    stop_at_blank_identity: bool = False
    append_section_to_name: bool = False
    section_field: bool = False
    tournament_type: Optional[str] = None


def _aliases(pairs) -> Tuple[Tuple[Pattern, str], ...]:
    return tuple(zip(compile_patterns([p for p, _ in pairs]), [slot for _, slot in pairs]))


SWISS_LEGACY = FormatProfile(
    name="swiss",
    marker_phrases=("final ranking",),
    header_required=compile_patterns([RANK_PATTERN, NAME_PATTERN, FED_PATTERN]),
    header_window=3,
    header_min_cells=4,
    round_mode=RoundColumnMode.ROUND_GROUPS,
)

SWISS_MANAGER = FormatProfile(
    name="swiss-manager",
    marker_phrases=("final ranking",),
    header_required=compile_patterns(
        [RANK_PATTERN, NAME_PATTERN, RATING_PATTERN, FED_PATTERN]
    ),
    header_window=3,
    header_min_cells=5,
    round_mode=RoundColumnMode.ROUND_GROUPS,
    tie_break_aliases=_aliases(
        [
            (r"^ratp$", "performance_rating"),
            (r"^res\.?$", "direct_encounter"),
            (r"^win(/p)?$", "wins"),
            (r"^bh[:.]?\s*gp$", "buchholz"),
            (r"^tpr$", "tournament_performance"),
            (r"^(sb|sonneborn)", "sonneborn_berger"),
            (r"^(aro|average rating)", "ARO"),
        ]
    ),
    keep_undecodable_rounds=True,
    blank_round_is_bye=True,
    stop_at_blank_identity=True,
    section_field=True,
)

ROUND_ROBIN = FormatProfile(
    name="round-robin",
    marker_phrases=RANKING_MARKERS,
    header_required=compile_patterns([RANK_PATTERN, NAME_PATTERN]),
    header_window=10,
    header_min_cells=4,
    round_mode=RoundColumnMode.OPPONENT_RANK,
    tie_break_aliases=_aliases(
        [
            (r"^(sb|sonneborn)", "TB1"),
            (r"^(bh|buchholz)", "TB2"),
            (r"^(de|direct encounter)", "TB3"),
            (r"^ratp$", "TB5"),
            (r"^(aro|average rating)", "ARO"),
        ]
    ),
    keep_undecodable_rounds=True,
    append_section_to_name=True,
    tournament_type="Round robin",
)

# Team round files have no ranking table; only the metadata and footer
# settings of this profile are used.
TEAM_ROUND = FormatProfile(
    name="team",
    marker_phrases=(),
    header_required=(),
    header_window=0,
    header_min_cells=0,
    round_mode=RoundColumnMode.NONE,
    metadata_row_budget=20,
    append_section_to_name=True,
)

PROFILES: Dict[str, FormatProfile] = {
    p.name: p for p in (SWISS_LEGACY, SWISS_MANAGER, ROUND_ROBIN, TEAM_ROUND)
}
