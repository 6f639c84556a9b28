"""
Extraction of the descriptive block above the ranking table.

Exports put one "Label : value" line per row in column A (sometimes with the
value spread over the following cells). Rows are scanned until the ranking
section starts or the row budget runs out.
"""

import logging
import re
from typing import Callable, List, Optional, Tuple

from format_profiles import FormatProfile
from result_tokens import detect_round_number, is_team_pairing_number
from sheet_cells import clean_cell, parse_date_flexible, parse_decimal_or_null, parse_int_or_null
from sheet_structure import Grid
from tournament_records import TeamTournamentMetadata, TournamentMetadata

logger = logging.getLogger(__name__)

_ROUNDS_AFTER_RE = re.compile(r"final ranking.*after\s+(\d+)\s+rounds?", re.IGNORECASE)
_ROUND_LINE_RE = re.compile(r"^round\s+(\d+)", re.IGNORECASE)
_ROUNDS_COUNT_RE = re.compile(r"\b(\d+)\s+rounds\b", re.IGNORECASE)
_ROUND_DATE_RE = re.compile(r"\bon\s+([\d/\-.]+)", re.IGNORECASE)
_RATE_OF_PLAY_RE = re.compile(r"^([^(]+?)\s*\(([^)]+)\)\s*$")
_LICENCE_RE = re.compile(r"\s*\([^)]+\)")
_HEADER_START_RE = re.compile(r"^(rank|rk\.?|no\.?)$", re.IGNORECASE)


def extract_after_colon(text: str) -> Optional[str]:
    """Text after the first colon, trimmed; None when there is no colon."""
    if ":" not in text:
        return None
    value = text.split(":", 1)[1].strip()
    return value or None


def split_time_control(value: str) -> Tuple[str, Optional[str]]:
    """'90 min + 30 sec (Standard)' -> ('90 min + 30 sec', 'Standard')"""
    match = _RATE_OF_PLAY_RE.match(value)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return value.strip(), None


def split_rating_age(value: str) -> Tuple[Optional[int], Optional[float]]:
    parts = [p.strip() for p in value.split("/")]
    if len(parts) != 2:
        return None, None
    elo = parse_decimal_or_null(parts[0])
    return (int(elo) if elo is not None else None), parse_decimal_or_null(parts[1])


def _has(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern, re.IGNORECASE)
    return lambda label: bool(compiled.search(label))


def _has_not(pattern: str, excluded: str) -> Callable[[str], bool]:
    wanted = re.compile(pattern, re.IGNORECASE)
    unwanted = re.compile(excluded, re.IGNORECASE)
    return lambda label: bool(wanted.search(label)) and not unwanted.search(label)


# (test on column-A label, metadata field)
LABEL_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (_has(r"organi[sz]er"), "organizer"),
    (_has(r"\bfederation\b"), "federation"),
    (_has_not(r"chief arbiter", r"deputy"), "chief_arbiter"),
    (_has(r"deputy chief arbiter"), "deputy_chief_arbiter"),
    (_has(r"tournament director"), "tournament_director"),
    (_has_not(r"arbiter", r"chief|deputy"), "arbiter"),
    (_has(r"\b(location|town|venue)\b"), "location"),
    (_has_not(r"tournament type|\btype\b", r"rating"), "tournament_type"),
    (_has(r"rating (calculation|type)"), "rating_calculation"),
]


def is_url(text: str) -> bool:
    return bool(re.match(r"^(https?://|www\.)", text, re.IGNORECASE))


def _is_label_row(text: str) -> bool:
    return ":" in text


def _is_marker(text: str, profile: FormatProfile) -> bool:
    lowered = text.lower()
    return any(p in lowered for p in profile.marker_phrases) or "final ranking" in lowered


def _is_section_stop(text: str, profile: FormatProfile) -> bool:
    return (
        _is_marker(text, profile)
        or bool(_HEADER_START_RE.match(text))
        or is_team_pairing_number(text)
    )


def extract_tournament_name(rows: Grid, profile: FormatProfile) -> Tuple[Optional[str], Optional[str]]:
    """
    Return (tournament name, section line).

    The name is the first column-A text near the top that is neither a URL,
    a "label : value" row nor a section marker. The row right after it is a
    section (e.g. "U13A") when it is also plain text.
    """
    budget = min(profile.metadata_row_budget, len(rows))
    for i in range(budget):
        text = clean_cell(rows[i][0]) if rows[i] else ""
        if not text or is_url(text) or _is_label_row(text):
            continue
        if _is_section_stop(text, profile):
            return None, None

        section = None
        nxt = clean_cell(rows[i + 1][0]) if i + 1 < len(rows) and rows[i + 1] else ""
        if (
            nxt
            and not is_url(nxt)
            and not _is_label_row(nxt)
            and not _is_section_stop(nxt, profile)
            and not _ROUND_LINE_RE.match(nxt)
        ):
            section = nxt
        return text, section
    return None, None


def _apply_row(metadata: TournamentMetadata, cell: str, full_text: str, log) -> None:
    value = extract_after_colon(full_text)
    # only the text before the colon is a label
    label = cell.split(":", 1)[0].strip()
    lowered = label.lower()

    if value is None:
        match = _ROUNDS_COUNT_RE.search(cell)
        if match and metadata.rounds is None:
            metadata.rounds = int(match.group(1))
            log.debug(f"rounds: {metadata.rounds}")
        return

    for test, field_name in LABEL_RULES:
        if test(label) and getattr(metadata, field_name) is None:
            setattr(metadata, field_name, value)
            log.debug(f"{field_name}: {value}")

    if "time control" in lowered:
        metadata.time_control, metadata.rate_of_play = split_time_control(value)
        log.debug(f"time control: {metadata.time_control}, rate: {metadata.rate_of_play}")

    if re.search(r"\bdate\b", lowered) and metadata.date is None:
        metadata.date = parse_date_flexible(value)
        log.debug(f"date: raw={value!r} parsed={metadata.date!r}")

    if re.search(r"\brounds?\b", lowered) and metadata.rounds is None and not _ROUND_LINE_RE.match(label):
        digits = re.search(r"(\d+)", value)
        if digits:
            metadata.rounds = int(digits.group(1))
            log.debug(f"rounds: {metadata.rounds}")

    if "rating-ø" in lowered or "average age" in lowered:
        elo, age = split_rating_age(value)
        if elo is not None or age is not None:
            metadata.average_elo, metadata.average_age = elo, age
            log.debug(f"average elo: {elo}, average age: {age}")


def extract_metadata(
    rows: Grid,
    filename: str,
    profile: FormatProfile,
    log=logger,
    metadata: Optional[TournamentMetadata] = None,
) -> TournamentMetadata:
    """
    Scan the rows above the ranking section for labelled metadata fields.
    source is always set to the file name.
    """
    metadata = metadata if metadata is not None else TournamentMetadata()

    name, section = extract_tournament_name(rows, profile)
    if name:
        if section and profile.append_section_to_name:
            name = f"{name} {section}"
        elif section and profile.section_field:
            metadata.section = section
        metadata.tournament_name = name
        log.debug(f"tournament name: {name!r}")

    for row in rows:
        cell = clean_cell(row[0]) if row else ""
        match = _ROUNDS_AFTER_RE.search(cell)
        if match:
            metadata.rounds = int(match.group(1))
            log.debug(f"rounds from ranking marker: {metadata.rounds}")
            break

    for i in range(min(profile.metadata_row_budget, len(rows))):
        row = rows[i]
        label = clean_cell(row[0]) if row else ""
        if not label:
            continue
        if _is_section_stop(label, profile):
            log.debug(f"metadata scan stopped at row {i}")
            break
        full_text = " ".join(clean_cell(c) for c in row)
        _apply_row(metadata, label, full_text, log)

    if profile.tournament_type and metadata.tournament_type is None:
        metadata.tournament_type = profile.tournament_type
    metadata.source = filename
    return metadata


def extract_team_metadata(rows: Grid, filename: str, profile: FormatProfile, log=logger) -> TeamTournamentMetadata:
    """Team round metadata: the shared fields plus the round line."""
    metadata = extract_metadata(rows, filename, profile, log, TeamTournamentMetadata())

    for attr in ("chief_arbiter", "deputy_chief_arbiter"):
        value = getattr(metadata, attr)
        if value:
            setattr(metadata, attr, _LICENCE_RE.sub("", value, count=1).strip())

    for i in range(min(profile.metadata_row_budget, len(rows))):
        row = rows[i]
        label = clean_cell(row[0]) if row else ""
        if is_team_pairing_number(label):
            break
        match = _ROUND_LINE_RE.match(label)
        if not match:
            continue
        metadata.round_number = int(match.group(1))
        date_match = _ROUND_DATE_RE.search(" ".join(clean_cell(c) for c in row))
        if date_match:
            metadata.round_date = parse_date_flexible(date_match.group(1))
        log.debug(f"round {metadata.round_number} on {metadata.round_date}")
        break

    if metadata.round_number is None:
        metadata.round_number = detect_round_number(filename)
        if metadata.round_number is not None:
            log.debug(f"round number from file name: {metadata.round_number}")
    return metadata
