"""Tests for logging configuration, job context and JSON formatting."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from webencode.config.models import LoggingConfig
from webencode.logging import (
    JobContextFilter,
    JSONFormatter,
    configure_logging,
    get_job_context,
    job_context,
)
from webencode.logging.config import resolve_level, stderr_level


def make_record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="webencode.jobs.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestJobContext:
    """Tests for job_context and JobContextFilter."""

    def test_default_is_none(self) -> None:
        assert get_job_context() is None

    def test_context_is_scoped(self) -> None:
        with job_context("poster_720p"):
            assert get_job_context() == "poster_720p"
            with job_context("optimize_720p"):
                assert get_job_context() == "optimize_720p"
            assert get_job_context() == "poster_720p"
        assert get_job_context() is None

    def test_filter_adds_tag(self) -> None:
        record = make_record()
        with job_context("webm"):
            assert JobContextFilter().filter(record)
        assert record.job_id == "webm"
        assert record.job_tag == "[webm] "

    def test_filter_without_context(self) -> None:
        record = make_record()
        JobContextFilter().filter(record)
        assert record.job_id is None
        assert record.job_tag == ""


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self) -> None:
        data = json.loads(JSONFormatter().format(make_record("Started")))
        assert data["message"] == "Started"
        assert data["level"] == "INFO"
        assert data["logger"] == "webencode.jobs.engine"
        assert "timestamp" in data

    def test_job_id_and_extra_context(self) -> None:
        record = make_record(job_id="hls", job_tag="[hls] ", command="ffmpeg")
        data = json.loads(JSONFormatter().format(record))
        assert data["job_id"] == "hls"
        assert data["context"] == {"command": "ffmpeg"}


@pytest.mark.usefixtures("restore_root_logger")
class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_stderr_handler_by_default(self) -> None:
        configure_logging(LoggingConfig(level="warning"))
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "webencode.log"
        configure_logging(LoggingConfig(level="info", file=log_file))

        with job_context("dash"):
            logging.getLogger("webencode.test").info("packaging")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert "[dash] webencode.test - INFO - packaging" in text

    def test_json_file_output(self, tmp_path: Path) -> None:
        log_file = tmp_path / "webencode.log"
        configure_logging(LoggingConfig(file=log_file, format="json"))

        logging.getLogger("webencode.test").warning("careful")
        for handler in logging.getLogger().handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["message"] == "careful"

    def test_include_stderr(self, tmp_path: Path) -> None:
        configure_logging(
            LoggingConfig(file=tmp_path / "webencode.log", include_stderr=True)
        )
        assert len(logging.getLogger().handlers) == 2

    def test_progress_keeps_info_off_stderr(self) -> None:
        configure_logging(LoggingConfig(level="info"), progress_on_stderr=True)
        (handler,) = logging.getLogger().handlers
        assert logging.getLogger().level == logging.INFO
        assert handler.level == logging.WARNING

    def test_progress_still_logs_info_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "webencode.log"
        configure_logging(
            LoggingConfig(file=log_file, include_stderr=True),
            progress_on_stderr=True,
        )

        file_handler, stream_handler = logging.getLogger().handlers
        assert file_handler.level == logging.INFO
        assert stream_handler.level == logging.WARNING

    def test_unwritable_log_file_falls_back_to_stderr(
        self, tmp_path: Path, capsys
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        configure_logging(LoggingConfig(file=blocker / "webencode.log"))

        (handler,) = logging.getLogger().handlers
        assert not isinstance(handler, logging.FileHandler)
        assert "Could not open log file" in capsys.readouterr().err


class TestLevels:
    @pytest.mark.parametrize(
        ("name", "level"),
        [
            ("debug", logging.DEBUG),
            ("WARNING", logging.WARNING),
            ("bogus", logging.INFO),
        ],
    )
    def test_resolve_level(self, name: str, level: int) -> None:
        assert resolve_level(name) == level

    def test_stderr_level(self) -> None:
        assert stderr_level(logging.INFO, progress_on_stderr=False) == logging.INFO
        assert stderr_level(logging.INFO, progress_on_stderr=True) == logging.WARNING
        assert stderr_level(logging.ERROR, progress_on_stderr=True) == logging.ERROR
        assert stderr_level(logging.DEBUG, progress_on_stderr=True) == logging.DEBUG
