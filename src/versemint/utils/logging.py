"""Structured logging setup for versemint.

Every event is one JSON object per line in the versemint log file. Events
are snake_case names with keyword fields, e.g.
``logger.info("commit_submitted", tx_hash=..., block=...)``.
"""

import os
from pathlib import Path
from typing import Any

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def log_file_path() -> Path:
    """Location of the JSON log, created on first use."""
    log_dir = Path.home() / ".cache" / "versemint" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / "versemint.log"


def log_level() -> str:
    """Level from VERSEMINT_LOG_LEVEL; unknown values fall back to INFO."""
    level = os.environ.get("VERSEMINT_LOG_LEVEL", "INFO").upper()
    return level if level in LOG_LEVELS else "INFO"


def configure_logging() -> None:
    """
    Route structlog output to the JSON log file at the configured level.

    What each level carries:
    - DEBUG: ledger RPC calls, verse cycle cut-offs, verified verse contents,
      checkpoint writes
    - INFO: validation and planning stages, submitted commits and mints,
      state transitions, commitment age waits
    - WARNING: aborted sessions
    - ERROR: ledger RPC failures, content mismatches, failed checkpoint
      writes, failed CLI commands

    Secrets are never passed to the logger.

    Example:
        VERSEMINT_LOG_LEVEL=DEBUG versemint mint --spec mint.json
        tail -f ~/.cache/versemint/logs/versemint.log | jq .
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level()),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file_path(), "a")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Structured logger for a module; pass ``__name__``."""
    return structlog.get_logger(name)
