"""Run report rendering.

The report lists every known job kind with the artifact it produced, so a
reader can see at a glance what was generated, what was disabled and, after
a failure, which job broke the run.
"""

from __future__ import annotations

import json
from typing import Any

from webencode.core.formatting import format_duration, format_file_size
from webencode.jobs.models import (
    Job,
    JobFamily,
    JobKind,
    JobStatus,
    RunResult,
    all_job_kinds,
    poster_optimize,
)
from webencode.jobs.paths import output_paths

NOT_GENERATED = "(not generated)"

# Optimize kinds are folded into the line of the poster they finalize
_REPORTED_KINDS: tuple[JobKind, ...] = tuple(
    kind for kind in all_job_kinds() if kind.family is not JobFamily.POSTER_OPTIMIZE
)


def _status_text(result: RunResult) -> str:
    duration = format_duration(result.duration)
    if result.success:
        return f"completed in {duration}"
    if result.cancelled:
        return f"cancelled after {duration}, output removed"
    return f"failed after {duration}, output removed"


def _optimization_note(result: RunResult, kind: JobKind) -> str | None:
    if kind.family is not JobFamily.POSTER_RESIZE or kind.size is None:
        return None
    if not result.optimizer_available:
        return "not optimized, optimizer unavailable"
    job = result.job_for(poster_optimize(kind.size))
    if job is None or job.optimization is None:
        return None
    return job.optimization.message


def _artifact_text(result: RunResult, kind: JobKind, job: Job | None) -> str:
    if job is None:
        return NOT_GENERATED
    if result.committed and job.status is JobStatus.SUCCEEDED:
        return str(output_paths(kind, result.run.output_dir, result.run.stem)[0])
    if job.status is JobStatus.FAILED:
        return f"FAILED: {job.error}" if job.error else "FAILED"
    # Succeeded or cancelled jobs of a discarded run left nothing behind
    return f"({job.status.value}, discarded)"


def build_report(result: RunResult) -> str:
    """Render a run result as text.

    Args:
        result: Outcome of the run.

    Returns:
        Multi-line report: a short header, then one line per job kind with
        its artifact path or "(not generated)" for disabled kinds.
    """
    run = result.run
    lines = [
        f"Input:  {run.input_path}",
        f"Output: {run.output_dir}",
        f"Audio:  {'yes' if run.has_audio else 'no'}",
        f"Status: {_status_text(result)}",
        "",
    ]

    width = max(len(kind.name) for kind in _REPORTED_KINDS)
    for kind in _REPORTED_KINDS:
        job = result.job_for(kind)
        line = f"  {kind.name:<{width}}  {_artifact_text(result, kind, job)}"
        note = _optimization_note(result, kind)
        if note and job is not None:
            line = f"{line}  [{note}]"
        lines.append(line)

    return "\n".join(lines)


def build_report_data(result: RunResult) -> dict[str, Any]:
    """Render a run result as a JSON-serializable dict."""
    run = result.run
    artifacts: dict[str, Any] = {}
    for kind in _REPORTED_KINDS:
        job = result.job_for(kind)
        entry: dict[str, Any] = {
            "generated": bool(
                job is not None
                and result.committed
                and job.status is JobStatus.SUCCEEDED
            ),
            "status": job.status.value if job is not None else None,
            "paths": [],
        }
        if job is not None:
            entry["paths"] = [str(path) for path in job.outputs]
            if job.error:
                entry["error"] = job.error
        if kind.family is JobFamily.POSTER_RESIZE and kind.size is not None:
            optimize = result.job_for(poster_optimize(kind.size))
            if optimize is not None and optimize.optimization is not None:
                outcome = optimize.optimization
                entry["optimization"] = {
                    "replaced": outcome.replaced,
                    "original_size": outcome.original_size,
                    "final_size": outcome.final_size,
                    "final_size_display": format_file_size(outcome.final_size),
                    "message": outcome.message,
                }
        artifacts[kind.name] = entry

    data: dict[str, Any] = {
        "status": "completed" if result.success else "failed",
        "input": str(run.input_path),
        "output_dir": str(run.output_dir),
        "has_audio": run.has_audio,
        "committed": result.committed,
        "cancelled": result.cancelled,
        "duration_seconds": round(result.duration, 3),
        "optimizer_available": result.optimizer_available,
        "enabled_variants": {
            variant.value: enabled for variant, enabled in run.enabled_variants.items()
        },
        "artifacts": artifacts,
    }
    if result.error:
        data["error"] = result.error
    return data


def build_report_json(result: RunResult) -> str:
    return json.dumps(build_report_data(result), indent=2)
