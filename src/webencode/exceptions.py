"""Exception hierarchy for webencode.

All errors raised by the orchestration layer derive from WebencodeError so
the CLI can map them to exit codes in one place.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from webencode.jobs.models import Job


class WebencodeError(Exception):
    """Base exception for webencode errors."""


class ConfigurationError(WebencodeError):
    """Raised for invalid command-line options or configuration values.

    Always raised before the output directory is created.
    """


class InputNotFoundError(ConfigurationError):
    """Raised when the input media file does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Input file not found: {path}")


class UnknownVariantError(ConfigurationError):
    """Raised in strict mode when --variants names an unknown variant."""

    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__(f"Unknown variant name(s): {', '.join(names)}")


class ToolNotFoundError(WebencodeError):
    """Raised when a required external tool is not installed."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(
            f"{tool} is not installed or not in PATH. "
            f"Configure a custom path via WEBENCODE_{tool.upper()}_PATH."
        )


class OutputDirectoryExistsError(ConfigurationError):
    """Raised when the run's output directory already exists.

    Each run must own its output directory exclusively.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"Output directory already exists: {path}. "
            "Remove it or move it aside before re-running."
        )


class JobFailedError(WebencodeError):
    """Raised by the execution engine when a job ends in FAILED.

    Attributes:
        job: The first job observed as failed.
    """

    def __init__(self, job: Job) -> None:
        self.job = job
        detail = f": {job.error}" if job.error else ""
        super().__init__(f"Job {job.kind.name} failed{detail}")


class RunCancelledError(WebencodeError):
    """Raised when the run is interrupted before all jobs finished."""


class InvalidJobTransitionError(WebencodeError):
    """Raised when a job status change would leave a terminal state."""

    def __init__(self, job_name: str, current: object, requested: object) -> None:
        self.job_name = job_name
        self.current = current
        self.requested = requested
        super().__init__(
            f"Job {job_name} cannot move from {current} to {requested}"
        )
