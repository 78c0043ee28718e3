"""Job and run data models.

JobKind is the typed catalog of everything a run can produce; Job is one
runtime instance of a kind with its lifecycle state; RunConfig and RunResult
bracket a single invocation.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from webencode.exceptions import InvalidJobTransitionError
from webencode.variants.selector import Variant

POSTER_SIZES: tuple[int, ...] = (1080, 720, 480, 360)


class JobFamily(Enum):
    """Kinds of job, before poster sizes are applied."""

    WEBM = "webm"
    H265 = "h265"
    H264 = "h264"
    H264_720 = "h264_720p"
    H264_480 = "h264_480p"
    H264_360 = "h264_360p"
    HLS = "hls"
    DASH = "dash"
    POSTER_EXTRACT = "poster"
    POSTER_RESIZE = "poster_resize"
    POSTER_OPTIMIZE = "poster_optimize"


class JobClass(Enum):
    """Timeout classes."""

    ENCODE = "encode"
    STREAMING = "streaming"
    POSTER = "poster"


_SIZED_FAMILIES = frozenset({JobFamily.POSTER_RESIZE, JobFamily.POSTER_OPTIMIZE})

_FAMILY_VARIANT: dict[JobFamily, Variant] = {
    JobFamily.WEBM: Variant.WEBM,
    JobFamily.H265: Variant.H265,
    JobFamily.H264: Variant.H264,
    JobFamily.H264_720: Variant.H264_720,
    JobFamily.H264_480: Variant.H264_480,
    JobFamily.H264_360: Variant.H264_360,
    JobFamily.HLS: Variant.HLS,
    JobFamily.DASH: Variant.DASH,
    JobFamily.POSTER_EXTRACT: Variant.POSTERS,
    JobFamily.POSTER_RESIZE: Variant.POSTERS,
    JobFamily.POSTER_OPTIMIZE: Variant.POSTERS,
}

# Scaled H.264 encodes and their target height
SCALED_H264_HEIGHTS: Mapping[JobFamily, int] = MappingProxyType(
    {
        JobFamily.H264_720: 720,
        JobFamily.H264_480: 480,
        JobFamily.H264_360: 360,
    }
)


@dataclass(frozen=True)
class JobKind:
    """One producible artifact.

    Poster resize and optimize kinds carry the target poster height in
    `size`; every other kind has size None.
    """

    family: JobFamily
    size: int | None = None

    def __post_init__(self) -> None:
        if self.family in _SIZED_FAMILIES:
            if self.size not in POSTER_SIZES:
                raise ValueError(
                    f"{self.family.value} requires a size in {POSTER_SIZES}, "
                    f"got {self.size}"
                )
        elif self.size is not None:
            raise ValueError(f"{self.family.value} does not take a size")

    @property
    def name(self) -> str:
        """Stable identifier, e.g. "webm", "poster_720p", "optimize_720p"."""
        if self.family is JobFamily.POSTER_RESIZE:
            return f"poster_{self.size}p"
        if self.family is JobFamily.POSTER_OPTIMIZE:
            return f"optimize_{self.size}p"
        return self.family.value

    @property
    def variant(self) -> Variant:
        """Variant whose selection enables this kind."""
        return _FAMILY_VARIANT[self.family]

    @property
    def depends_on(self) -> frozenset[JobKind]:
        """Kinds that must succeed before this kind may start."""
        if self.family is JobFamily.POSTER_RESIZE:
            return frozenset({POSTER_EXTRACT})
        if self.family is JobFamily.POSTER_OPTIMIZE:
            return frozenset({JobKind(JobFamily.POSTER_RESIZE, self.size)})
        return frozenset()

    @property
    def job_class(self) -> JobClass:
        if self.family in (JobFamily.HLS, JobFamily.DASH):
            return JobClass.STREAMING
        if self.variant is Variant.POSTERS:
            return JobClass.POSTER
        return JobClass.ENCODE

    def __str__(self) -> str:
        return self.name


POSTER_EXTRACT = JobKind(JobFamily.POSTER_EXTRACT)


def poster_resize(size: int) -> JobKind:
    return JobKind(JobFamily.POSTER_RESIZE, size)


def poster_optimize(size: int) -> JobKind:
    return JobKind(JobFamily.POSTER_OPTIMIZE, size)


def all_job_kinds() -> tuple[JobKind, ...]:
    """Every known kind, parents always before their children."""
    independent = tuple(
        JobKind(family)
        for family in JobFamily
        if family not in _SIZED_FAMILIES
    )
    resizes = tuple(poster_resize(size) for size in POSTER_SIZES)
    optimizes = tuple(poster_optimize(size) for size in POSTER_SIZES)
    return independent + resizes + optimizes


class JobStatus(Enum):
    """Job lifecycle state.

    PENDING -> RUNNING -> SUCCEEDED | FAILED. A job that never gets to
    finish because the run was aborted ends CANCELLED.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELLED)


_ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING, JobStatus.CANCELLED}),
    JobStatus.RUNNING: frozenset(
        {JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELLED}
    ),
    JobStatus.SUCCEEDED: frozenset(),
    JobStatus.FAILED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


@dataclass
class OptimizationOutcome:
    """What happened when the optimizer ran over one poster."""

    original_size: int
    candidate_size: int | None = None
    replaced: bool = False
    message: str = ""

    @property
    def final_size(self) -> int:
        if self.replaced and self.candidate_size is not None:
            return self.candidate_size
        return self.original_size


@dataclass(eq=False)
class Job:
    """Runtime instance of a JobKind.

    Status changes go through the mark_* methods, which reject transitions
    out of a terminal state.
    """

    kind: JobKind
    command: list[str] = field(default_factory=list)
    outputs: tuple[Path, ...] = ()
    timeout: float | None = None
    status: JobStatus = JobStatus.PENDING
    returncode: int | None = None
    error: str | None = None
    started_at: float | None = None
    finished_at: float | None = None
    optimization: OptimizationOutcome | None = None

    @property
    def name(self) -> str:
        return self.kind.name

    @property
    def duration(self) -> float | None:
        """Wall-clock seconds between start and finish, if both happened."""
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def _transition(self, new_status: JobStatus) -> None:
        if new_status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidJobTransitionError(self.name, self.status, new_status)
        self.status = new_status

    def mark_running(self) -> None:
        self._transition(JobStatus.RUNNING)
        self.started_at = time.monotonic()

    def mark_succeeded(self, returncode: int | None = 0) -> None:
        self._transition(JobStatus.SUCCEEDED)
        self.returncode = returncode
        self.finished_at = time.monotonic()

    def mark_failed(self, error: str, returncode: int | None = None) -> None:
        self._transition(JobStatus.FAILED)
        self.error = error
        self.returncode = returncode
        self.finished_at = time.monotonic()

    def mark_cancelled(self, reason: str) -> None:
        self._transition(JobStatus.CANCELLED)
        self.error = reason
        if self.started_at is not None:
            self.finished_at = time.monotonic()


@dataclass(frozen=True)
class RunConfig:
    """Immutable description of one invocation.

    Attributes:
        input_path: Absolute path to the source media file.
        output_dir: Sibling directory named after the input's stem.
        enabled_variants: One entry per Variant.
        has_audio: Whether the input carries an audio stream.
    """

    input_path: Path
    output_dir: Path
    enabled_variants: Mapping[Variant, bool]
    has_audio: bool

    def __post_init__(self) -> None:
        missing = [v.value for v in Variant if v not in self.enabled_variants]
        if missing:
            raise ValueError(f"enabled_variants is missing: {', '.join(missing)}")
        # Freeze the mapping so no component can mutate selections later
        object.__setattr__(
            self, "enabled_variants", MappingProxyType(dict(self.enabled_variants))
        )

    @classmethod
    def for_input(
        cls,
        input_path: Path,
        enabled_variants: Mapping[Variant, bool],
        has_audio: bool,
    ) -> RunConfig:
        """Build a RunConfig, deriving the output directory from the input."""
        input_path = input_path.expanduser().resolve()
        return cls(
            input_path=input_path,
            output_dir=output_dir_for(input_path),
            enabled_variants=enabled_variants,
            has_audio=has_audio,
        )

    @property
    def stem(self) -> str:
        """Base name shared by every artifact."""
        return self.input_path.stem

    def is_enabled(self, kind: JobKind) -> bool:
        return self.enabled_variants[kind.variant]


def output_dir_for(input_path: Path) -> Path:
    """Output directory for an input: `clip.mp4` -> `clip/` beside it."""
    return input_path.parent / input_path.stem


@dataclass
class RunResult:
    """Aggregate outcome of a run.

    Attributes:
        run: The run's configuration.
        jobs: Every job that was instantiated, in catalog order.
        committed: True if the output directory was kept.
        optimizer_available: False when poster optimization was skipped.
        duration: Wall-clock seconds for the whole run.
        error: Failure description when the run did not commit.
        cancelled: True when the run was interrupted rather than failed.
    """

    run: RunConfig
    jobs: tuple[Job, ...] = ()
    committed: bool = False
    optimizer_available: bool = True
    duration: float = 0.0
    error: str | None = None
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return self.committed and all(
            job.status is JobStatus.SUCCEEDED for job in self.jobs
        )

    @property
    def has_audio(self) -> bool:
        return self.run.has_audio

    def job_for(self, kind: JobKind) -> Job | None:
        for job in self.jobs:
            if job.kind == kind:
                return job
        return None

    @property
    def failed_jobs(self) -> list[Job]:
        return [job for job in self.jobs if job.status is JobStatus.FAILED]
