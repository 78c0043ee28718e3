"""Job context for structured logging.

Uses contextvars so that every record logged while a job is being launched
or reaped carries that job's id.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)


@contextmanager
def job_context(job_id: str) -> Generator[None, None, None]:
    """Context manager tagging log records with a job id.

    Example:
        with job_context("poster_720p"):
            logger.info("Started")  # Logged as "[poster_720p] Started"
    """
    token = _job_id.set(job_id)
    try:
        yield
    finally:
        _job_id.reset(token)


def get_job_context() -> str | None:
    """Get the current job id, or None outside a job context."""
    return _job_id.get()


class JobContextFilter(logging.Filter):
    """Logging filter that injects the current job id into log records.

    Adds job_id for JSON output and a compact job_tag ("[webm] ") for
    text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        job_id = get_job_context()
        record.job_id = job_id
        record.job_tag = f"[{job_id}] " if job_id else ""
        return True  # Never filter out records
