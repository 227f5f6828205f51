"""Structured logging setup for promptfence.

Everything is written as JSON lines to a log file, never to the terminal, so
logging does not interfere with the TUI or with CLI output meant for pipes.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import structlog

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.environ.get("PROMPTFENCE_LOG_LEVEL", "INFO")).upper()
    return LOG_LEVELS.get(name, logging.INFO)


def _resolve_log_file(log_file: Optional[Path]) -> Path:
    if log_file is not None:
        return Path(log_file).expanduser()
    if env_file := os.environ.get("PROMPTFENCE_LOG_FILE"):
        return Path(env_file).expanduser()
    return Path.home() / ".cache" / "promptfence" / "logs" / "promptfence.log"


def configure_logging(log_file: Optional[Path] = None, level: Optional[str] = None) -> Path:
    """
    Send structlog output to a JSON-lines log file.

    The level comes from ``level``, else PROMPTFENCE_LOG_LEVEL, else INFO;
    unknown names fall back to INFO. The file comes from ``log_file``, else
    PROMPTFENCE_LOG_FILE, else ~/.cache/promptfence/logs/promptfence.log.

    What each level shows:
    - DEBUG: Vetoed edits, fragment relocations, atomic writes
    - INFO: Disable/enable/hide/delete actions, state loads and saves
    - WARNING: Orphaned fragments, repaired state records, restored text
    - ERROR: Failed saves and unreadable files

    Example:
        PROMPTFENCE_LOG_LEVEL=DEBUG promptfence edit prompt.json
        tail -f ~/.cache/promptfence/logs/promptfence.log | jq .

    Returns:
        Path of the log file
    """
    path = _resolve_log_file(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=path.open("a", encoding="utf-8")),
        cache_logger_on_first_use=True,
    )
    return path


def get_logger(name: str) -> Any:
    """
    Get a structured logger bound to a module name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("fragment_disabled", fragment_id=3, length=12)
    """
    return structlog.get_logger(name)
