"""Tests for run report rendering."""

from __future__ import annotations

import json

from webencode.jobs.models import (
    POSTER_EXTRACT,
    POSTER_SIZES,
    Job,
    JobFamily,
    JobKind,
    OptimizationOutcome,
    RunResult,
    poster_optimize,
    poster_resize,
)
from webencode.reports import NOT_GENERATED, build_report, build_report_json
from webencode.variants import Variant


def finished(kind: JobKind, outputs=()) -> Job:
    job = Job(kind=kind, outputs=tuple(outputs))
    job.mark_running()
    job.mark_succeeded()
    return job


def line_for(report: str, name: str) -> str:
    for line in report.splitlines():
        if line.split() and line.split()[0] == name:
            return line
    raise AssertionError(f"no report line for {name}")


class TestBuildReport:
    """Tests for build_report."""

    def test_disabled_kinds_marked_not_generated(self, make_run) -> None:
        enabled = dict.fromkeys(Variant, False)
        enabled[Variant.WEBM] = True
        run = make_run(enabled)
        result = RunResult(
            run=run,
            jobs=(finished(JobKind(JobFamily.WEBM)),),
            committed=True,
        )

        report = build_report(result)

        assert str(run.output_dir / "clip.webm") in line_for(report, "webm")
        for name in ("h265", "h264", "h264_720p", "hls", "dash", "poster"):
            assert NOT_GENERATED in line_for(report, name)
        assert "Status: completed" in report

    def test_one_line_per_kind(self, make_run) -> None:
        report = build_report(RunResult(run=make_run(), committed=True))
        for name in ["webm", "h265", "h264", "hls", "dash", "poster"]:
            line_for(report, name)
        for size in POSTER_SIZES:
            line_for(report, f"poster_{size}p")

    def test_audio_fact(self, make_run) -> None:
        assert "Audio:  no" in build_report(RunResult(run=make_run(has_audio=False)))
        assert "Audio:  yes" in build_report(RunResult(run=make_run(has_audio=True)))

    def test_failed_run(self, make_run) -> None:
        failed = Job(kind=JobKind(JobFamily.DASH))
        failed.mark_running()
        failed.mark_failed("exited with code 1", 1)
        cancelled = Job(kind=JobKind(JobFamily.HLS))
        cancelled.mark_cancelled("cancelled after dash failed")
        result = RunResult(
            run=make_run(),
            jobs=(failed, cancelled),
            error="Job dash failed",
        )

        report = build_report(result)

        assert "failed after" in report
        assert "output removed" in report
        assert "FAILED: exited with code 1" in line_for(report, "dash")
        assert "cancelled" in line_for(report, "hls")

    def test_optimization_note(self, make_run) -> None:
        enabled = dict.fromkeys(Variant, False)
        enabled[Variant.POSTERS] = True
        optimize = finished(poster_optimize(720))
        optimize.optimization = OptimizationOutcome(
            1000, 600, replaced=True, message="saved 400 B"
        )
        jobs = (finished(POSTER_EXTRACT), finished(poster_resize(720)), optimize)
        result = RunResult(run=make_run(enabled), jobs=jobs, committed=True)

        report = build_report(result)

        assert "[saved 400 B]" in line_for(report, "poster_720p")

    def test_optimizer_unavailable_note(self, make_run) -> None:
        jobs = (finished(POSTER_EXTRACT), finished(poster_resize(480)))
        result = RunResult(
            run=make_run(), jobs=jobs, committed=True, optimizer_available=False
        )

        assert "optimizer unavailable" in line_for(build_report(result), "poster_480p")


class TestBuildReportJson:
    """Tests for build_report_json."""

    def test_structure(self, make_run) -> None:
        run = make_run(has_audio=False)
        webm = finished(JobKind(JobFamily.WEBM), [run.output_dir / "clip.webm"])
        result = RunResult(run=run, jobs=(webm,), committed=True, duration=2.5)

        data = json.loads(build_report_json(result))

        assert data["has_audio"] is False
        assert data["committed"] is True
        assert data["duration_seconds"] == 2.5
        assert data["enabled_variants"]["webm"] is True
        assert data["artifacts"]["webm"]["generated"] is True
        assert data["artifacts"]["webm"]["paths"] == [str(run.output_dir / "clip.webm")]
        assert data["artifacts"]["dash"] == {
            "generated": False,
            "status": None,
            "paths": [],
        }

    def test_failed_status(self, make_run) -> None:
        result = RunResult(run=make_run(), error="Job hls failed", cancelled=False)

        data = json.loads(build_report_json(result))

        assert data["status"] == "failed"
        assert data["error"] == "Job hls failed"
