"""Logging for Covenant.

Three output modes, all written to stderr so documents printed to stdout
stay clean:
- Human mode: [LEVEL] message
- Verbose mode: [LEVEL][HH:MM:SS] logger: message
- CI mode: one JSON object per line

Clause warnings found while assembling a document are logged with
``CovenantLogger.structured`` so CI mode can report the section key,
warning kind and offset as separate fields.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class LineFormatter(logging.Formatter):
    """Plain single-line formatter for the human and verbose modes."""

    def __init__(self, verbose: bool = False) -> None:
        super().__init__()
        self.verbose = verbose

    def format(self, record: logging.LogRecord) -> str:
        if not self.verbose:
            return f"[{record.levelname}] {record.getMessage()}"
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        return f"[{record.levelname}][{timestamp}] {record.name}: {record.getMessage()}"


class JSONFormatter(logging.Formatter):
    """JSON lines formatter; structured fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, "fields", {}))
        return json.dumps(entry, sort_keys=True, default=str)


class CovenantLogger(logging.Logger):
    """Logger that can attach structured fields to a record."""

    def structured(self, level: int, msg: str, **fields: Any) -> None:
        """Log a message with extra fields for the JSON mode.

        Args:
            level: Log level
            msg: Log message
            **fields: Values such as section_key or warning_kind
        """
        self.log(level, msg, extra={"fields": fields}, stacklevel=2)


logging.setLoggerClass(CovenantLogger)


def get_logger(name: str = "covenant") -> CovenantLogger:
    """Return a Covenant logger."""
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Attach a single handler to the ``covenant`` logger.

    Args:
        mode: Output mode
        level: Minimum log level
        stream: Output stream (default: stderr)
    """
    logger = logging.getLogger("covenant")
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = LineFormatter(verbose=mode == LogMode.VERBOSE)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_from_cli(verbose: bool = False, quiet: bool = False, ci: bool = False) -> None:
    """Configure logging from the global CLI flags.

    ``--ci`` selects JSON output, ``--verbose`` adds timestamps and debug
    records, and ``--quiet`` keeps warnings and errors only.
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    setup_logging(mode=mode, level=level)
