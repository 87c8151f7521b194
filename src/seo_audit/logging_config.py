"""Logging setup for crawl runs.

Crawl progress goes to stderr so that reports printed on stdout (notably
``--format json``) stay machine readable. An optional log file receives the
same records.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from seo_audit.constants import LOG_FORMAT, QUIET_LOGGERS


def _resolve_level(level: str) -> Optional[int]:
    """Map a level name like 'debug' to its numeric value, or None if unknown."""
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else None


def _build_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    return handlers


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> None:
    """Configure the root logger for a crawl run.

    Replaces any handlers configured earlier in the process, so calling it
    again (e.g. from tests) does not duplicate output.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO with a warning.
        log_file: Optional file that also receives log records
        format_string: Optional record format (LOG_FORMAT if None)
    """
    numeric_level = _resolve_level(level)

    logging.basicConfig(
        level=numeric_level if numeric_level is not None else logging.INFO,
        format=format_string or LOG_FORMAT,
        handlers=_build_handlers(log_file),
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if numeric_level is None:
        logging.getLogger(__name__).warning(f"Unknown log level {level!r}, using INFO")
