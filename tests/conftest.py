"""Shared test fixtures for webencode."""

from __future__ import annotations

import stat
from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner

from webencode.jobs.models import RunConfig
from webencode.variants import Variant


@pytest.fixture
def runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def all_enabled() -> dict[Variant, bool]:
    """Variant selection with every variant enabled."""
    return dict.fromkeys(Variant, True)


@pytest.fixture
def input_file(tmp_path: Path) -> Path:
    """An (empty) source media file; its contents are never decoded."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00" * 64)
    return path


@pytest.fixture
def make_run(input_file: Path) -> Callable[..., RunConfig]:
    """Factory for RunConfig instances over input_file."""

    def _make(
        enabled: dict[Variant, bool] | None = None, has_audio: bool = True
    ) -> RunConfig:
        if enabled is None:
            enabled = dict.fromkeys(Variant, True)
        return RunConfig.for_input(input_file, enabled, has_audio)

    return _make


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing an executable shell script into tmp_path/bin."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _write(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write
