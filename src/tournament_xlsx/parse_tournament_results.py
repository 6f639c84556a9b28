#!/usr/bin/env python3
"""
Tournament Results Spreadsheet Parser

Parses final-ranking spreadsheets exported by chess-results.com and Swiss
Manager (Swiss and round-robin cross-tables) and team round pairing sheets
into normalized tournament records.
Malformed content never raises: structural failures give metadata-only
results and undecodable cells are left out, with the details logged.
"""

import argparse
import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
from tqdm import tqdm

from column_classifier import ColumnMap, classify_headers
from format_profiles import (
    PROFILES,
    ROUND_ROBIN,
    SWISS_LEGACY,
    SWISS_MANAGER,
    FormatProfile,
    RoundColumnMode,
)
from parse_team_round import parse_team_round_results
from parse_trace import ParseStage, stage_logger
from result_tokens import decode_crosstable_cell, decode_swiss_round_token
from sheet_cells import cell_at, clean_cell, parse_decimal_or_null, parse_int_or_null
from sheet_metadata import extract_metadata
from sheet_structure import (
    Grid,
    Row,
    WorkbookReadError,
    find_header_row,
    find_section_marker,
    is_footer_row,
    read_sheet_rows,
)
from tiebreak_classifier import classify_tie_breaks
from tournament_records import (
    PlayerRanking,
    RoundResult,
    TeamRoundData,
    TournamentData,
    TournamentMetadata,
    flatten_rankings,
    flatten_team_round,
)

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "uploaded.xlsx"
ROW_DUMP_LIMIT = 20


class UnknownFormatError(ValueError):
    """The requested format name has no parser."""


def format_duration(seconds: float) -> str:
    """Elapsed parse time for the CLI summary: '4.2s', '3m 5s' or '1h 2m'."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


def extract_swiss_rounds(row: Row, columns: ColumnMap, profile: FormatProfile, log) -> List[RoundResult]:
    """
    Decode the round groups of one Swiss ranking row.

    A group is either one cell holding the whole token ("12w1") or three
    cells holding opponent, colour and result.
    """
    rounds = []
    for col in columns.round_columns:
        cells = [clean_cell(cell_at(row, col.index + k)) for k in range(col.width)]
        text = " ".join(c for c in cells if c)

        if not text or text == "-":
            if profile.blank_round_is_bye:
                rounds.append(RoundResult.bye())
            continue

        decoded = decode_swiss_round_token(cells[0])
        if decoded is None and col.width > 1:
            decoded = decode_swiss_round_token(text)

        if decoded is not None:
            rounds.append(decoded)
        elif profile.keep_undecodable_rounds:
            log.debug(f"round {col.round_number}: undecodable {text!r} kept as raw")
            rounds.append(RoundResult(raw=text))
        else:
            log.debug(f"round {col.round_number}: undecodable {text!r} dropped")
    return rounds


def build_player(row: Row, columns: ColumnMap, profile: FormatProfile, log) -> Optional[PlayerRanking]:
    """Build one ranking entry; None when the row has no usable rank."""
    rank = parse_int_or_null(cell_at(row, columns.rank))
    name = clean_cell(cell_at(row, columns.name)) or None

    if rank is None or rank <= 0:
        if name:
            log.debug(f"Skipping {name!r}: no rank")
        return None

    player = PlayerRanking(
        rank=rank,
        name=name,
        federation=clean_cell(cell_at(row, columns.federation)) or None,
        rating=parse_int_or_null(cell_at(row, columns.rating)),
        points=parse_decimal_or_null(cell_at(row, columns.points)),
    )

    if profile.round_mode == RoundColumnMode.ROUND_GROUPS:
        player.rounds = extract_swiss_rounds(row, columns, profile, log)

    for tb in columns.tie_break_columns:
        value = parse_decimal_or_null(cell_at(row, tb.index))
        if value is not None:
            player.tie_breaks[tb.slot] = value

    return player


def resolve_crosstable_rounds(players: List[PlayerRanking], player_rows: List[Row], columns: ColumnMap, log) -> None:
    """Second pass: read every opponent-rank column once all ranks are known."""
    ranks = [p.rank for p in players]
    duplicated = sorted({r for r in ranks if ranks.count(r) > 1})
    if duplicated:
        log.warning(f"Shared ranks {duplicated}: opponents with these ranks stay unresolved")

    for player, row in zip(players, player_rows):
        for col in columns.opponent_rank_columns:
            decoded = decode_crosstable_cell(cell_at(row, col.index), col.opponent_rank, players)
            if decoded is not None:
                player.rounds.append(decoded)


def describe_header_rounds(columns: ColumnMap, metadata: TournamentMetadata) -> None:
    """Tournament type and round count as implied by the header row."""
    if columns.round_columns:
        detected_type = "Swiss"
        count = len(columns.round_columns)
    else:
        detected_type = "Round robin"
        count = len(columns.opponent_rank_columns)
    metadata.tournament_type = metadata.tournament_type or detected_type
    if metadata.rounds is None and count:
        metadata.rounds = count


def parse_rows(
    rows: Grid,
    filename: str,
    profile: FormatProfile,
    logger: Optional[logging.Logger] = None,
) -> TournamentData:
    """
    Run the shared pipeline over an already-read sheet grid.

    Stages: metadata scan, ranking-section marker, header row, row walk.
    A missing header row ends the parse with metadata only.
    """
    log = stage_logger(filename, ParseStage.SCANNING_METADATA, logger)
    log.info(f"Parsing {len(rows)} rows as {profile.name}")
    for i, row in enumerate(rows[:ROW_DUMP_LIMIT]):
        log.debug(f"Row {i}: {row!r}")

    metadata = extract_metadata(rows, filename, profile, log)

    log = log.at(ParseStage.LOCATING_SECTION)
    marker = find_section_marker(rows, profile.marker_phrases)
    if marker >= 0:
        log.debug(f"Ranking section marker at row {marker}")
        window = profile.header_window
    else:
        log.info("No ranking section marker, searching header from the top")
        window = profile.metadata_row_budget

    log = log.at(ParseStage.LOCATING_HEADER)
    header_index = find_header_row(
        rows, marker, profile.header_required, window, profile.header_min_cells
    )
    if header_index < 0:
        log.at(ParseStage.FAILED_NO_HEADER).warning(
            "No header row found, no players extracted"
        )
        return TournamentData(tournament_metadata=metadata, player_rankings=[])

    columns = classify_headers(rows[header_index], profile)
    log.info(f"Header row at {header_index}")
    log.debug(f"Column mapping: {columns.summary()}")
    if profile.section_field:
        describe_header_rounds(columns, metadata)

    log = log.at(ParseStage.EXTRACTING_ROWS)
    players: List[PlayerRanking] = []
    player_rows: List[Row] = []
    for i in range(header_index + 1, len(rows)):
        row = rows[i]
        if not row:
            continue
        if is_footer_row(row, profile.footer_signatures):
            log.debug(f"Footer at row {i}, stopping")
            break
        if profile.stop_at_blank_identity and not (
            clean_cell(cell_at(row, columns.rank)) or clean_cell(cell_at(row, columns.name))
        ):
            log.debug(f"Row {i} has no rank or name, end of table")
            break

        player = build_player(row, columns, profile, log)
        if player is None:
            log.debug(f"Skipping row {i}")
            continue
        players.append(player)
        player_rows.append(row)

    if profile.round_mode == RoundColumnMode.OPPONENT_RANK:
        resolve_crosstable_rounds(players, player_rows, columns, log)

    log = log.at(ParseStage.DONE)
    log.info(f"Players extracted: {len(players)}")
    for player in players[:2]:
        kinds = classify_tie_breaks(player.tie_breaks) or {}
        log.debug(
            f"{player.rank}. {player.name}: {len(player.rounds)} rounds, "
            f"tie-breaks {player.tie_breaks} "
            f"({', '.join(f'{slot}={kind.value}' for slot, kind in kinds.items())})"
        )
    return TournamentData(tournament_metadata=metadata, player_rankings=players)


def parse_workbook(
    buffer: bytes,
    filename: str,
    profile: FormatProfile,
    logger: Optional[logging.Logger] = None,
) -> TournamentData:
    """Read the first sheet of `buffer` and parse it with `profile`."""
    rows = read_sheet_rows(buffer)
    return parse_rows(rows, filename, profile, logger)


def parse_swiss_results(buffer: bytes, filename: str = DEFAULT_FILENAME, logger=None) -> TournamentData:
    """chess-results.com final ranking (legacy Swiss export)."""
    return parse_workbook(buffer, filename, SWISS_LEGACY, logger)


def parse_swiss_manager_results(buffer: bytes, filename: str = DEFAULT_FILENAME, logger=None) -> TournamentData:
    """Swiss Manager final ranking with named tie-break columns."""
    return parse_workbook(buffer, filename, SWISS_MANAGER, logger)


def parse_round_robin_results(buffer: bytes, filename: str = DEFAULT_FILENAME, logger=None) -> TournamentData:
    """Round-robin cross-table; numeric headers are opponent ranks."""
    return parse_workbook(buffer, filename, ROUND_ROBIN, logger)


PARSERS = {
    SWISS_LEGACY.name: parse_swiss_results,
    SWISS_MANAGER.name: parse_swiss_manager_results,
    ROUND_ROBIN.name: parse_round_robin_results,
    "team": parse_team_round_results,
}


def parse_results(
    buffer: bytes,
    filename: str = DEFAULT_FILENAME,
    fmt: str = SWISS_LEGACY.name,
    logger=None,
) -> Union[TournamentData, TeamRoundData]:
    """Dispatch to the parser chosen by the caller's format selector."""
    parser = PARSERS.get(fmt)
    if parser is None:
        raise UnknownFormatError(f"unknown format {fmt!r}, expected one of {sorted(PARSERS)}")
    return parser(buffer, filename, logger)


def flatten_parsed(parsed: Union[TournamentData, TeamRoundData]) -> List[Dict]:
    if isinstance(parsed, TeamRoundData):
        return flatten_team_round(parsed)
    return flatten_rankings(parsed)


def save_results_parquet(parsed_results: List[Union[TournamentData, TeamRoundData]], parquet_path: str):
    """Save flattened rows (player-rounds or boards) as a Parquet file."""
    try:
        rows = []
        for parsed in parsed_results:
            rows.extend(flatten_parsed(parsed))
        df = pd.DataFrame(rows)
        dirname = os.path.dirname(parquet_path)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        df.to_parquet(parquet_path, index=False, engine="pyarrow")
        logger.info(f"Saved {len(parsed_results)} parsed file(s) to {parquet_path}")
        logger.info(f"  Total rows: {len(df)}")
    except Exception as e:
        logger.error(f"Parquet save failed: {e}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Parse chess tournament result spreadsheets into JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("files", nargs="+", help="Spreadsheet files (.xlsx/.xls)")
    parser.add_argument(
        "--format",
        "-f",
        choices=sorted(PROFILES),
        default=SWISS_LEGACY.name,
        help="Export format of the files (default: swiss)",
    )
    parser.add_argument("--output", "-o", type=str, default="", help="JSON output path (default: stdout)")
    parser.add_argument("--parquet", type=str, default="", help="Also save flattened rows as Parquet")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show the parse trace (row dumps, column mappings) instead of a progress bar",
    )
    parser.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")
    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    start_time = time.time()
    all_results: List[Dict] = []
    parsed_results = []
    error_count = 0

    files = args.files if args.verbose else tqdm(args.files, desc="Parsing", unit="file")
    for file_name in files:
        path = Path(file_name)
        result = {"file": path.name}
        try:
            parsed = parse_results(path.read_bytes(), path.name, args.format)
        except (OSError, WorkbookReadError) as e:
            error_count += 1
            logger.error(f"{path.name}: {e}")
            result.update({"success": False, "error": str(e)})
        else:
            parsed_results.append(parsed)
            result.update({"success": True, "error": ""})
            result.update(parsed.to_dict())
        all_results.append(result)

    if args.output:
        dirname = os.path.dirname(args.output)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(all_results, f, indent=2, ensure_ascii=False)
        logger.info(f"Saved JSON output to {args.output}")
    else:
        json.dump(all_results, sys.stdout, indent=2, ensure_ascii=False)

    if args.parquet:
        save_results_parquet(parsed_results, args.parquet)

    logger.info(
        f"Parsed {len(args.files) - error_count}/{len(args.files)} files "
        f"in {format_duration(time.time() - start_time)}"
    )
    return 1 if error_count else 0


if __name__ == "__main__":
    raise SystemExit(main())
