"""Job graph construction.

Turns a RunConfig into the ordered list of jobs to execute. Most kinds are
independent; the poster chain is the only dependency chain:

    poster -> poster_{size}p (x4) -> optimize_{size}p (x4)

where each optimize job depends only on the resize of the same size.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from webencode.config.models import ExecutionConfig
from webencode.jobs.commands import build_command
from webencode.jobs.models import (
    Job,
    JobClass,
    JobFamily,
    JobKind,
    RunConfig,
    all_job_kinds,
)
from webencode.jobs.paths import output_paths, written_paths

logger = logging.getLogger(__name__)


def timeout_for(kind: JobKind, execution: ExecutionConfig) -> float | None:
    """Per-job-class timeout in seconds, None for no limit."""
    if kind.job_class is JobClass.STREAMING:
        return execution.streaming_timeout
    if kind.job_class is JobClass.POSTER:
        return execution.poster_timeout
    return execution.encode_timeout


def enabled_kinds(run: RunConfig, include_optimize: bool = True) -> list[JobKind]:
    """Kinds the run will execute, parents before children.

    Args:
        run: Run configuration.
        include_optimize: False drops the poster optimize stage.
    """
    kinds = []
    for kind in all_job_kinds():
        if not run.is_enabled(kind):
            continue
        if kind.family is JobFamily.POSTER_OPTIMIZE and not include_optimize:
            continue
        kinds.append(kind)
    return kinds


def build_job_graph(
    run: RunConfig,
    ffmpeg_path: Path,
    execution: ExecutionConfig,
    optimizer_path: Path | None = None,
) -> list[Job]:
    """Instantiate the enabled job set.

    Disabled variants produce no jobs at all. Optimize jobs are only created
    when an optimizer is available.

    Args:
        run: Run configuration.
        ffmpeg_path: Path to ffmpeg.
        execution: Execution settings (timeouts).
        optimizer_path: Path to the poster optimizer, or None if missing.

    Returns:
        Jobs in PENDING state, every job after all of its dependencies.
    """
    jobs = []
    for kind in enabled_kinds(run, include_optimize=optimizer_path is not None):
        jobs.append(
            Job(
                kind=kind,
                command=build_command(kind, run, ffmpeg_path, optimizer_path),
                outputs=output_paths(kind, run.output_dir, run.stem),
                timeout=timeout_for(kind, execution),
            )
        )

    validate_graph(jobs, run)
    logger.debug("Job graph: %s", ", ".join(job.name for job in jobs))
    return jobs


def validate_graph(jobs: Iterable[Job], run: RunConfig) -> None:
    """Check ordering and path ownership of a job list.

    Raises:
        ValueError: If a job precedes one of its dependencies, a dependency
            is absent, or two jobs write the same path.
    """
    seen: set[JobKind] = set()
    owners: dict[Path, str] = {}
    for job in jobs:
        missing = job.kind.depends_on - seen
        if missing:
            names = ", ".join(sorted(kind.name for kind in missing))
            raise ValueError(
                f"{job.name} is scheduled without its dependencies: {names}"
            )
        seen.add(job.kind)

        for path in written_paths(job.kind, run.output_dir, run.stem):
            if path in owners:
                raise ValueError(
                    f"{job.name} and {owners[path]} both write {path}"
                )
            owners[path] = job.name
