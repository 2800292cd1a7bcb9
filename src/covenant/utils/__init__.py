"""Covenant utilities: logging setup and display formatting."""

from covenant.utils.formatting import (
    format_currency,
    format_date,
    format_term_duration,
    join_address,
)
from covenant.utils.logging import configure_from_cli, get_logger, setup_logging

__all__ = [
    "configure_from_cli",
    "format_currency",
    "format_date",
    "format_term_duration",
    "get_logger",
    "join_address",
    "setup_logging",
]
