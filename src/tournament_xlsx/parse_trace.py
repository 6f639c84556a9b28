"""
Stage-keyed trace logging for a single parse call.

The parsers never print; they log through a StageLogger wrapped around
either the caller's logger or this package's default one.
"""

import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger("tournament_xlsx")


class ParseStage(str, Enum):
    SCANNING_METADATA = "scanning_metadata"
    LOCATING_SECTION = "locating_section"
    LOCATING_HEADER = "locating_header"
    EXTRACTING_ROWS = "extracting_rows"
    VALIDATING = "validating"
    DONE = "done"
    FAILED_NO_HEADER = "failed_no_header"


class StageLogger(logging.LoggerAdapter):
    """Prefixes messages with [source:stage] and adds both to the record."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return f"[{self.extra['source']}:{self.extra['stage']}] {msg}", kwargs

    def at(self, stage: ParseStage) -> "StageLogger":
        return StageLogger(self.logger, {"source": self.extra["source"], "stage": stage.value})


def stage_logger(
    source: str,
    stage: ParseStage = ParseStage.SCANNING_METADATA,
    base: Optional[logging.Logger] = None,
) -> StageLogger:
    return StageLogger(base or logger, {"source": source, "stage": stage.value})
