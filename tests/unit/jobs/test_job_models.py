"""Tests for job kinds, job lifecycle and run models."""

from __future__ import annotations

from pathlib import Path

import pytest

from webencode.exceptions import InvalidJobTransitionError
from webencode.jobs.models import (
    POSTER_EXTRACT,
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
    output_dir_for,
    poster_optimize,
    poster_resize,
)
from webencode.variants import Variant


class TestJobKind:
    """Tests for JobKind."""

    def test_names(self) -> None:
        assert JobKind(JobFamily.WEBM).name == "webm"
        assert JobKind(JobFamily.H264_720).name == "h264_720p"
        assert POSTER_EXTRACT.name == "poster"
        assert poster_resize(720).name == "poster_720p"
        assert poster_optimize(360).name == "optimize_360p"

    def test_sized_family_requires_known_size(self) -> None:
        with pytest.raises(ValueError):
            JobKind(JobFamily.POSTER_RESIZE)
        with pytest.raises(ValueError):
            JobKind(JobFamily.POSTER_RESIZE, 999)

    def test_unsized_family_rejects_size(self) -> None:
        with pytest.raises(ValueError):
            JobKind(JobFamily.WEBM, 720)

    def test_dependencies(self) -> None:
        assert JobKind(JobFamily.HLS).depends_on == frozenset()
        assert POSTER_EXTRACT.depends_on == frozenset()
        assert poster_resize(480).depends_on == {POSTER_EXTRACT}
        # Each optimize job depends only on the resize of the same size
        assert poster_optimize(480).depends_on == {poster_resize(480)}

    def test_variants(self) -> None:
        assert JobKind(JobFamily.H264_360).variant is Variant.H264_360
        assert poster_optimize(1080).variant is Variant.POSTERS

    def test_job_classes(self) -> None:
        assert JobKind(JobFamily.DASH).job_class is JobClass.STREAMING
        assert JobKind(JobFamily.H265).job_class is JobClass.ENCODE
        assert poster_resize(720).job_class is JobClass.POSTER

    def test_kinds_are_hashable_and_equal_by_value(self) -> None:
        assert poster_resize(720) == JobKind(JobFamily.POSTER_RESIZE, 720)
        assert len({poster_resize(720), poster_resize(720)}) == 1


class TestAllJobKinds:
    """Tests for the job kind catalog."""

    def test_catalog_size(self) -> None:
        # 8 independent encodes/packages, 1 extract, 4 resizes, 4 optimizes
        assert len(all_job_kinds()) == 8 + 1 + 2 * len(POSTER_SIZES)

    def test_parents_before_children(self) -> None:
        seen: set[JobKind] = set()
        for kind in all_job_kinds():
            assert kind.depends_on <= seen
            seen.add(kind)

    def test_names_unique(self) -> None:
        names = [kind.name for kind in all_job_kinds()]
        assert len(names) == len(set(names))


class TestJobLifecycle:
    """Tests for Job status transitions."""

    def test_success_path(self) -> None:
        job = Job(kind=JobKind(JobFamily.WEBM))
        assert job.status is JobStatus.PENDING
        job.mark_running()
        job.mark_succeeded()
        assert job.status is JobStatus.SUCCEEDED
        assert job.returncode == 0
        assert job.duration is not None and job.duration >= 0

    def test_failure_records_error(self) -> None:
        job = Job(kind=JobKind(JobFamily.WEBM))
        job.mark_running()
        job.mark_failed("exited with code 1", 1)
        assert job.status is JobStatus.FAILED
        assert job.error == "exited with code 1"
        assert job.returncode == 1

    def test_pending_can_be_cancelled(self) -> None:
        job = Job(kind=POSTER_EXTRACT)
        job.mark_cancelled("parent failed")
        assert job.status is JobStatus.CANCELLED
        assert job.duration is None

    def test_running_can_be_cancelled(self) -> None:
        job = Job(kind=POSTER_EXTRACT)
        job.mark_running()
        job.mark_cancelled("run interrupted")
        assert job.status is JobStatus.CANCELLED
        assert job.finished_at is not None

    @pytest.mark.parametrize(
        "terminal",
        ["succeeded", "cancelled"],
    )
    def test_terminal_states_are_never_left(self, terminal: str) -> None:
        job = Job(kind=JobKind(JobFamily.WEBM))
        job.mark_running()
        if terminal == "succeeded":
            job.mark_succeeded()
        else:
            job.mark_cancelled("stop")
        with pytest.raises(InvalidJobTransitionError):
            job.mark_running()
        with pytest.raises(InvalidJobTransitionError):
            job.mark_failed("late failure")

    def test_pending_cannot_succeed_directly(self) -> None:
        job = Job(kind=JobKind(JobFamily.WEBM))
        with pytest.raises(InvalidJobTransitionError):
            job.mark_succeeded()

    def test_is_terminal(self) -> None:
        assert not JobStatus.PENDING.is_terminal
        assert not JobStatus.RUNNING.is_terminal
        assert JobStatus.SUCCEEDED.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert JobStatus.CANCELLED.is_terminal


class TestRunConfig:
    """Tests for RunConfig."""

    def test_output_dir_derivation(self) -> None:
        assert output_dir_for(Path("/videos/clip.mp4")) == Path("/videos/clip")
        assert output_dir_for(Path("/videos/my.movie.mov")) == Path("/videos/my.movie")

    def test_for_input_resolves_path(self, input_file: Path, all_enabled) -> None:
        run = RunConfig.for_input(input_file, all_enabled, has_audio=False)
        assert run.input_path.is_absolute()
        assert run.output_dir == input_file.parent / "clip"
        assert run.stem == "clip"

    def test_requires_every_variant(self, input_file: Path) -> None:
        with pytest.raises(ValueError, match="missing"):
            RunConfig.for_input(input_file, {Variant.WEBM: True}, has_audio=True)

    def test_immutable(self, make_run) -> None:
        run = make_run()
        with pytest.raises(AttributeError):
            run.has_audio = False  # type: ignore[misc]
        with pytest.raises(TypeError):
            run.enabled_variants[Variant.WEBM] = False  # type: ignore[index]

    def test_selection_copied_on_construction(self, make_run, all_enabled) -> None:
        run = make_run(all_enabled)
        all_enabled[Variant.WEBM] = False
        assert run.enabled_variants[Variant.WEBM] is True

    def test_is_enabled(self, make_run, all_enabled) -> None:
        all_enabled[Variant.POSTERS] = False
        run = make_run(all_enabled)
        assert not run.is_enabled(poster_optimize(720))
        assert run.is_enabled(JobKind(JobFamily.WEBM))


class TestRunResult:
    """Tests for RunResult."""

    def test_success_requires_commit_and_all_succeeded(self, make_run) -> None:
        job = Job(kind=JobKind(JobFamily.WEBM))
        job.mark_running()
        job.mark_succeeded()
        result = RunResult(run=make_run(), jobs=(job,), committed=True)
        assert result.success
        result.committed = False
        assert not result.success

    def test_failed_jobs_and_lookup(self, make_run) -> None:
        failed = Job(kind=JobKind(JobFamily.DASH))
        failed.mark_running()
        failed.mark_failed("boom", 1)
        result = RunResult(run=make_run(), jobs=(failed,))
        assert result.failed_jobs == [failed]
        assert result.job_for(JobKind(JobFamily.DASH)) is failed
        assert result.job_for(JobKind(JobFamily.HLS)) is None


class TestOptimizationOutcome:
    def test_final_size(self) -> None:
        assert OptimizationOutcome(100, 80, replaced=True).final_size == 80
        assert OptimizationOutcome(100, 120).final_size == 100
        assert OptimizationOutcome(100).final_size == 100
