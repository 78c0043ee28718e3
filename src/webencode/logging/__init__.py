"""Structured logging module for webencode.

Provides configurable logging with JSON format support and file rotation,
plus job context tagging for concurrently running jobs.
"""

from webencode.logging.config import configure_logging
from webencode.logging.context import (
    JobContextFilter,
    get_job_context,
    job_context,
)
from webencode.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "JobContextFilter",
    "configure_logging",
    "get_job_context",
    "job_context",
]
