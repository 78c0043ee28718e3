"""Tests for the output directory transaction."""

from __future__ import annotations

from pathlib import Path

import pytest

from webencode.exceptions import JobFailedError, OutputDirectoryExistsError
from webencode.jobs.models import Job, JobFamily, JobKind
from webencode.output import OutputTransaction


class TestOutputTransaction:
    """Tests for OutputTransaction."""

    def test_creates_directory_on_enter(self, tmp_path: Path) -> None:
        target = tmp_path / "clip"
        with OutputTransaction(target) as transaction:
            assert target.is_dir()
            transaction.commit()

    def test_committed_directory_is_kept(self, tmp_path: Path) -> None:
        target = tmp_path / "clip"
        with OutputTransaction(target) as transaction:
            (target / "clip.webm").write_bytes(b"video")
            transaction.commit()

        assert transaction.committed
        assert (target / "clip.webm").read_bytes() == b"video"

    def test_uncommitted_directory_is_removed(self, tmp_path: Path) -> None:
        target = tmp_path / "clip"
        with OutputTransaction(target) as transaction:
            (target / "hls" / "0").mkdir(parents=True)
            (target / "hls" / "0" / "playlist.m3u8").write_text("#EXTM3U")

        assert not transaction.committed
        assert transaction.rolled_back
        assert not target.exists()

    def test_exception_removes_directory_and_propagates(self, tmp_path: Path) -> None:
        target = tmp_path / "clip"
        job = Job(kind=JobKind(JobFamily.WEBM))
        job.mark_running()
        job.mark_failed("exited with code 1", 1)

        with pytest.raises(JobFailedError):
            with OutputTransaction(target):
                (target / "clip.webm").write_bytes(b"partial")
                raise JobFailedError(job)

        assert not target.exists()

    def test_exception_after_commit_still_rolls_back(self, tmp_path: Path) -> None:
        target = tmp_path / "clip"
        with pytest.raises(RuntimeError):
            with OutputTransaction(target) as transaction:
                transaction.commit()
                raise RuntimeError("late failure")

        assert not transaction.committed
        assert not target.exists()

    def test_keyboard_interrupt_rolls_back(self, tmp_path: Path) -> None:
        target = tmp_path / "clip"
        with pytest.raises(KeyboardInterrupt):
            with OutputTransaction(target):
                raise KeyboardInterrupt

        assert not target.exists()

    def test_existing_directory_is_refused_and_untouched(self, tmp_path: Path) -> None:
        target = tmp_path / "clip"
        target.mkdir()
        (target / "previous.webm").write_bytes(b"keep me")

        with pytest.raises(OutputDirectoryExistsError):
            with OutputTransaction(target):
                pass  # pragma: no cover

        assert (target / "previous.webm").read_bytes() == b"keep me"

    def test_commit_requires_enter(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            OutputTransaction(tmp_path / "clip").commit()
