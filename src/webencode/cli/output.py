"""CLI output helpers: error exits, warnings and per-job progress lines."""

from __future__ import annotations

import json
import sys
from typing import NoReturn

import click

from webencode.cli.exit_codes import ExitCode
from webencode.core.formatting import format_duration
from webencode.jobs.models import Job, JobStatus


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Exit with formatted error message.

    Args:
        message: Error message to display.
        code: Exit code to use (ExitCode enum or int).
        json_output: Whether to format output as JSON.

    Note:
        This function never returns; it always calls sys.exit().
    """
    if isinstance(code, ExitCode):
        code_name = code.name
        exit_value = int(code)
    else:
        code_name = "UNKNOWN_ERROR"
        exit_value = code

    if json_output:
        click.echo(
            json.dumps(
                {
                    "status": "failed",
                    "error": {
                        "code": code_name,
                        "message": message,
                    },
                }
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(exit_value)


def warning_output(message: str, json_output: bool = False) -> None:
    """Output a warning message (suppressed in JSON mode)."""
    if not json_output:
        click.echo(f"Warning: {message}", err=True)


class ProgressPrinter:
    """Job observer printing one line per job start and finish to stderr."""

    def __init__(self, enabled: bool = True) -> None:
        """Initialize the printer.

        Args:
            enabled: If False, suppresses output (for tests).
        """
        self.enabled = enabled
        self.started = 0
        self.finished = 0

    def on_job_start(self, job: Job) -> None:
        self.started += 1
        self._echo(f"[started]   {job.name}")

    def on_job_finish(self, job: Job) -> None:
        self.finished += 1
        if job.status is JobStatus.SUCCEEDED:
            duration = format_duration(job.duration or 0.0)
            line = f"[done]      {job.name} ({duration})"
            if job.optimization is not None:
                line = f"{line}: {job.optimization.message}"
        elif job.status is JobStatus.FAILED:
            line = f"[FAILED]    {job.name}: {job.error}"
        else:
            line = f"[cancelled] {job.name}"
        self._echo(line)

    def _echo(self, line: str) -> None:
        if self.enabled:
            click.echo(line, err=True)
