"""Concurrent job execution engine.

Runs every job as its own external process. A single control loop launches
jobs whose dependencies have succeeded (up to max_parallel at a time) and
polls the liveness of the in-flight processes at a fixed interval, so no
single long-running encode blocks the others.

The first failed job stops the run: nothing new is launched, in-flight
processes are terminated and pending jobs are cancelled. Poster optimize
jobs never fail the run; their result is applied with optimistic
replacement instead.
"""

from __future__ import annotations

import logging
import os
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import tempfile
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import IO, Protocol, runtime_checkable

from webencode.config.models import ExecutionConfig
from webencode.exceptions import JobFailedError, RunCancelledError
from webencode.jobs.models import Job, JobFamily, JobKind, JobStatus
from webencode.jobs.optimize import apply_candidate
from webencode.jobs.paths import optimization_candidate_path
from webencode.logging import job_context

logger = logging.getLogger(__name__)


@runtime_checkable
class JobObserver(Protocol):
    """Receives job lifecycle events for progress display."""

    def on_job_start(self, job: Job) -> None:
        """Called right after a job's process was started."""
        ...

    def on_job_finish(self, job: Job) -> None:
        """Called once a job reached a terminal state."""
        ...


@dataclass
class _RunningProcess:
    job: Job
    process: subprocess.Popen
    stderr_file: IO[bytes]
    deadline: float | None


class ExecutionEngine:
    """Executes a job list with bounded process-level concurrency.

    Example:
        engine = ExecutionEngine(max_parallel=4)
        engine.run(jobs)  # raises JobFailedError on the first failure
    """

    STDERR_TAIL_BYTES: int = 4096
    TERMINATE_GRACE_SECONDS: float = 5.0

    def __init__(
        self,
        max_parallel: int = 1,
        poll_interval: float = 0.25,
        observer: JobObserver | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            max_parallel: Maximum number of processes running at once.
            poll_interval: Seconds between liveness checks.
            observer: Optional receiver of job start/finish events.
        """
        if max_parallel < 1:
            raise ValueError(f"max_parallel must be at least 1, got {max_parallel}")
        self._max_parallel = max_parallel
        self._poll_interval = poll_interval
        self._observer = observer
        self._cancel_event = threading.Event()

    @classmethod
    def from_config(
        cls, execution: ExecutionConfig, observer: JobObserver | None = None
    ) -> ExecutionEngine:
        return cls(
            max_parallel=execution.max_parallel,
            poll_interval=execution.poll_interval,
            observer=observer,
        )

    def cancel(self) -> None:
        """Request cancellation; safe to call from another thread."""
        self._cancel_event.set()

    def run(self, jobs: Sequence[Job]) -> None:
        """Run jobs to completion or first failure.

        Args:
            jobs: Jobs in PENDING state, every job after its dependencies.

        Raises:
            JobFailedError: If any job failed. All other jobs are terminal
                (SUCCEEDED or CANCELLED) when this is raised.
            RunCancelledError: If cancel() was called or the run was
                interrupted with Ctrl+C.
        """
        jobs_by_kind = {job.kind: job for job in jobs}
        pending = [job for job in jobs if job.status is JobStatus.PENDING]
        running: list[_RunningProcess] = []
        failed: Job | None = None

        logger.info(
            "Executing %d job(s), up to %d in parallel",
            len(pending),
            self._max_parallel,
        )

        try:
            while pending or running:
                if self._cancel_event.is_set():
                    raise RunCancelledError("Run cancelled")

                failed = self._launch_ready(pending, running, jobs_by_kind)
                if failed is not None:
                    break

                if not running:
                    if pending:
                        names = ", ".join(job.name for job in pending)
                        raise RuntimeError(f"Jobs can never become ready: {names}")
                    break

                in_flight = len(running)
                failed = self._reap(running)
                if failed is not None:
                    break
                # Freed slots or newly satisfied dependencies: launch again now
                if len(running) < in_flight:
                    continue

                time.sleep(self._poll_interval)
        except KeyboardInterrupt as e:
            self._abort(running, pending, "run interrupted")
            raise RunCancelledError("Run interrupted") from e
        except BaseException:
            self._abort(running, pending, "run aborted")
            raise

        if failed is not None:
            self._abort(running, pending, f"cancelled after {failed.name} failed")
            raise JobFailedError(failed)

    def _is_ready(self, job: Job, jobs_by_kind: dict[JobKind, Job]) -> bool:
        for dependency in job.kind.depends_on:
            parent = jobs_by_kind.get(dependency)
            if parent is None or parent.status is not JobStatus.SUCCEEDED:
                return False
        return True

    def _launch_ready(
        self,
        pending: list[Job],
        running: list[_RunningProcess],
        jobs_by_kind: dict[JobKind, Job],
    ) -> Job | None:
        """Start every ready job while capacity remains.

        Returns:
            The job that failed to start, if any. An optimize job whose
            optimizer could not be started is settled, not returned.
        """
        for job in list(pending):
            if len(running) >= self._max_parallel:
                break
            if not self._is_ready(job, jobs_by_kind):
                continue
            pending.remove(job)
            started = self._launch(job)
            if started is not None:
                running.append(started)
            elif job.status is JobStatus.FAILED:
                return job
        return None

    def _launch(self, job: Job) -> _RunningProcess | None:
        with job_context(job.name):
            logger.debug("Command: %s", " ".join(job.command))
            stderr_file = tempfile.TemporaryFile()
            try:
                process = subprocess.Popen(  # nosec B603 - args built from templates
                    job.command,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=stderr_file,
                )
            except OSError as e:
                stderr_file.close()
                job.mark_running()
                reason = f"could not start {job.command[0]}: {e}"
                if job.kind.family is JobFamily.POSTER_OPTIMIZE:
                    logger.warning("Optimizer %s", reason)
                    self._settle_optimize(job, None, failure=reason)
                else:
                    job.mark_failed(reason)
                    logger.error("Could not start: %s", e)
                self._notify_finish(job)
                return None

            job.mark_running()
            logger.info("Started")
            if self._observer is not None:
                self._observer.on_job_start(job)

        deadline = None
        if job.timeout is not None:
            deadline = time.monotonic() + job.timeout
        return _RunningProcess(job, process, stderr_file, deadline)

    def _reap(self, running: list[_RunningProcess]) -> Job | None:
        """Collect finished processes and enforce timeouts.

        Returns:
            The first job found failed in this pass, if any.
        """
        first_failure: Job | None = None
        now = time.monotonic()
        for proc in list(running):
            returncode = proc.process.poll()
            if returncode is None:
                if proc.deadline is None or now < proc.deadline:
                    continue
                running.remove(proc)
                self._expire(proc)
            else:
                running.remove(proc)
                self._finish(proc, returncode)
            if proc.job.status is JobStatus.FAILED:
                first_failure = first_failure or proc.job
        return first_failure

    def _expire(self, proc: _RunningProcess) -> None:
        """Kill a process that ran past its deadline."""
        job = proc.job
        self._kill(proc)
        proc.stderr_file.close()
        reason = f"timed out after {job.timeout}s"
        with job_context(job.name):
            if job.kind.family is JobFamily.POSTER_OPTIMIZE:
                logger.warning("Optimizer %s", reason)
                self._settle_optimize(
                    job, proc.process.returncode, failure=f"optimizer {reason}"
                )
            else:
                logger.error("Timed out after %ss", job.timeout)
                job.mark_failed(reason, proc.process.returncode)
        self._notify_finish(job)

    def _finish(self, proc: _RunningProcess, returncode: int) -> None:
        job = proc.job
        stderr_tail = self._read_stderr_tail(proc.stderr_file)
        proc.stderr_file.close()

        with job_context(job.name):
            if job.kind.family is JobFamily.POSTER_OPTIMIZE:
                self._settle_optimize(job, returncode)
            elif returncode == 0:
                job.mark_succeeded()
                logger.info("Finished in %.1fs", job.duration or 0.0)
            else:
                error = f"exited with code {returncode}"
                if stderr_tail:
                    error = f"{error}: {stderr_tail.splitlines()[-1]}"
                job.mark_failed(error, returncode)
                logger.error("Failed (exit %d)\n%s", returncode, stderr_tail)

        self._notify_finish(job)

    def _settle_optimize(
        self, job: Job, returncode: int | None, failure: str | None = None
    ) -> None:
        """Finish an optimize job; only a missing poster fails it."""
        poster = job.outputs[0]
        try:
            job.optimization = apply_candidate(
                poster,
                optimization_candidate_path(poster),
                returncode,
                failure=failure,
            )
        except OSError as e:
            job.mark_failed(f"could not finalize {poster.name}: {e}", returncode)
            logger.error("Could not finalize %s: %s", poster.name, e)
        else:
            job.mark_succeeded(returncode)
            logger.info("Finished: %s", job.optimization.message)

    def _notify_finish(self, job: Job) -> None:
        if self._observer is not None:
            self._observer.on_job_finish(job)

    def _read_stderr_tail(self, stderr_file: IO[bytes]) -> str:
        try:
            stderr_file.seek(0, os.SEEK_END)
            size = stderr_file.tell()
            stderr_file.seek(max(0, size - self.STDERR_TAIL_BYTES))
            return stderr_file.read().decode("utf-8", errors="replace").strip()
        except (OSError, ValueError) as e:
            logger.debug("Could not read stderr: %s", e)
            return ""

    def _kill(self, proc: _RunningProcess) -> None:
        proc.process.kill()
        proc.process.wait()

    def _terminate(self, proc: _RunningProcess) -> None:
        if proc.process.poll() is not None:
            return
        proc.process.terminate()
        try:
            proc.process.wait(timeout=self.TERMINATE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("%s ignored SIGTERM; killing", proc.job.name)
            self._kill(proc)

    def _abort(
        self, running: list[_RunningProcess], pending: list[Job], reason: str
    ) -> None:
        """Terminate in-flight processes and cancel everything not finished."""
        for proc in running:
            with job_context(proc.job.name):
                logger.warning("Terminating: %s", reason)
                self._terminate(proc)
            proc.stderr_file.close()
            proc.job.mark_cancelled(reason)
            self._notify_finish(proc.job)
        running.clear()

        for job in pending:
            job.mark_cancelled(reason)
        pending.clear()
