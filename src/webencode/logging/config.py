"""Logging setup for a webencode run.

Two audiences share stderr: the per-job progress lines printed by the CLI
and log records. When progress lines are shown, the stderr handler only
passes warnings and errors (debug runs pass everything); a log file, if
configured, always receives records at the configured level.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from webencode.logging.context import JobContextFilter
from webencode.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from webencode.config.models import LoggingConfig

TEXT_FORMAT = "%(asctime)s - %(job_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def resolve_level(name: str) -> int:
    """Map a configured level name to a logging level; unknown names are INFO."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def build_formatter(format_name: str) -> logging.Formatter:
    if format_name.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def _open_log_file(config: LoggingConfig) -> RotatingFileHandler | None:
    if not config.file:
        return None
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        # Logging is not configured yet, so report straight to stderr
        sys.stderr.write(f"Warning: Could not open log file {path}: {e}\n")
        return None


def stderr_level(level: int, progress_on_stderr: bool) -> int:
    """Level for the stderr handler given the configured level."""
    if progress_on_stderr and level > logging.DEBUG:
        return max(level, logging.WARNING)
    return level


def configure_logging(config: LoggingConfig, progress_on_stderr: bool = False) -> None:
    """Install handlers on the root logger for this process.

    Args:
        config: Logging configuration.
        progress_on_stderr: True when the CLI prints per-job progress lines
            to stderr; INFO records are then kept off stderr.
    """
    level = resolve_level(config.level)
    formatter = build_formatter(config.format)
    job_filter = JobContextFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = []
    file_handler = _open_log_file(config)
    if file_handler is not None:
        file_handler.setLevel(level)
        handlers.append(file_handler)

    if file_handler is None or config.include_stderr:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(stderr_level(level, progress_on_stderr))
        handlers.append(stream_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(job_filter)
        root_logger.addHandler(handler)
