"""Run pipeline for a single input file.

Wires the components together in order: tool detection, audio probe,
RunConfig, job graph, then execution inside the output transaction.
Configuration problems surface as exceptions before anything is written;
job failures and cancellations come back as a RunResult whose output has
already been discarded.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from pathlib import Path

from webencode.config.models import WebencodeConfig
from webencode.exceptions import InputNotFoundError, JobFailedError, RunCancelledError
from webencode.introspector import FFprobeAudioProbe
from webencode.jobs.engine import ExecutionEngine, JobObserver
from webencode.jobs.graph import build_job_graph
from webencode.jobs.models import Job, RunConfig, RunResult
from webencode.jobs.paths import required_directories
from webencode.output import OutputTransaction
from webencode.tools import detect_tools, require_tool
from webencode.variants import Variant

logger = logging.getLogger(__name__)


def prepare_directories(jobs: list[Job], output_dir: Path) -> None:
    """Create the subdirectories jobs expect to exist before they start."""
    for job in jobs:
        for directory in required_directories(job.kind, output_dir):
            directory.mkdir(parents=True, exist_ok=True)


def run_pipeline(
    input_path: Path,
    enabled_variants: Mapping[Variant, bool],
    config: WebencodeConfig,
    engine: ExecutionEngine | None = None,
    observer: JobObserver | None = None,
) -> RunResult:
    """Produce every enabled artifact for one input.

    Args:
        input_path: Source media file.
        enabled_variants: Resolved variant selection.
        config: Effective configuration.
        engine: Engine to run jobs on; one is built from config if omitted.
        observer: Progress receiver for an engine built here.

    Returns:
        RunResult. `committed` is True only if every job succeeded and the
        output directory was kept.

    Raises:
        InputNotFoundError: If the input file does not exist.
        ToolNotFoundError: If ffmpeg is not available.
        OutputDirectoryExistsError: If the output directory already exists.
    """
    if not input_path.is_file():
        raise InputNotFoundError(input_path)

    tools = detect_tools(config.tools)
    missing = tools.get_missing_tools()
    if missing:
        logger.debug("Tools not found: %s", ", ".join(missing))
    ffmpeg_path = require_tool(tools.ffmpeg)

    optimizer_path = tools.optimizer.path if tools.optimizer.is_available() else None
    if optimizer_path is None and enabled_variants.get(Variant.POSTERS, False):
        logger.warning(
            "%s not found; posters will not be optimized", tools.optimizer.name
        )

    probe = FFprobeAudioProbe(
        tools.ffprobe.path, timeout=config.execution.probe_timeout
    )
    has_audio = probe.has_audio(input_path)

    run = RunConfig.for_input(input_path, enabled_variants, has_audio)
    jobs = build_job_graph(run, ffmpeg_path, config.execution, optimizer_path)
    result = RunResult(
        run=run,
        jobs=tuple(jobs),
        optimizer_available=optimizer_path is not None,
    )

    if engine is None:
        engine = ExecutionEngine.from_config(config.execution, observer=observer)

    logger.info(
        "Encoding %s into %s (%d job(s), audio: %s)",
        run.input_path.name,
        run.output_dir,
        len(jobs),
        "yes" if has_audio else "no",
    )

    start = time.monotonic()
    try:
        with OutputTransaction(run.output_dir) as transaction:
            prepare_directories(jobs, run.output_dir)
            engine.run(jobs)
            transaction.commit()
    except JobFailedError as e:
        result.error = str(e)
        logger.error("Run failed: %s", e)
    except RunCancelledError as e:
        result.error = str(e)
        result.cancelled = True
        logger.warning("Run cancelled: %s", e)
    else:
        result.committed = transaction.committed
    finally:
        result.duration = time.monotonic() - start

    return result
