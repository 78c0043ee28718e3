"""Job system for a single encode run.

- models: job kinds, job lifecycle, RunConfig and RunResult
- paths / commands: per-kind output paths and process arguments
- graph: the enabled job set and its dependency order
- engine: concurrent execution of external processes
- optimize: optimistic replacement of poster files
- runner: the end-to-end pipeline for one input
"""

from webencode.jobs.engine import ExecutionEngine, JobObserver
from webencode.jobs.graph import build_job_graph, validate_graph
from webencode.jobs.models import (
    POSTER_SIZES,
    Job,
    JobClass,
    JobFamily,
    JobKind,
    JobStatus,
    OptimizationOutcome,
    RunConfig,
    RunResult,
    all_job_kinds,
)
from webencode.jobs.runner import run_pipeline

__all__ = [
    "POSTER_SIZES",
    "ExecutionEngine",
    "Job",
    "JobClass",
    "JobFamily",
    "JobKind",
    "JobObserver",
    "JobStatus",
    "OptimizationOutcome",
    "RunConfig",
    "RunResult",
    "all_job_kinds",
    "build_job_graph",
    "run_pipeline",
    "validate_graph",
]
