"""Tests for the ffprobe audio probe."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

from webencode.introspector import FFprobeAudioProbe, parse_stream_types

FFPROBE = Path("/usr/bin/ffprobe")
CLIP = Path("/videos/clip.mp4")


class TestParseStreamTypes:
    def test_lines(self) -> None:
        assert parse_stream_types("audio\naudio,\n\n") == ["audio", "audio"]

    def test_empty(self) -> None:
        assert parse_stream_types("") == []


class TestFFprobeAudioProbe:
    """Tests for FFprobeAudioProbe.has_audio."""

    def test_audio_present(self) -> None:
        with patch(
            "webencode.introspector.ffprobe.run_command",
            return_value=("audio\n", "", 0),
        ) as run:
            assert FFprobeAudioProbe(FFPROBE, timeout=5).has_audio(CLIP)

        args = run.call_args.args[0]
        assert args[0] == FFPROBE
        assert args[args.index("-select_streams") + 1] == "a"
        assert args[-1] == CLIP
        assert run.call_args.kwargs["timeout"] == 5

    def test_no_audio(self) -> None:
        with patch(
            "webencode.introspector.ffprobe.run_command", return_value=("", "", 0)
        ):
            assert not FFprobeAudioProbe(FFPROBE).has_audio(CLIP)

    def test_tool_missing_fails_open(self, caplog) -> None:
        assert not FFprobeAudioProbe(None).has_audio(CLIP)
        assert "ffprobe not available" in caplog.text

    def test_nonzero_exit_fails_open(self) -> None:
        with patch(
            "webencode.introspector.ffprobe.run_command",
            return_value=("audio\n", "Invalid data", 1),
        ):
            assert not FFprobeAudioProbe(FFPROBE).has_audio(CLIP)

    def test_timeout_fails_open(self) -> None:
        with patch(
            "webencode.introspector.ffprobe.run_command",
            side_effect=subprocess.TimeoutExpired(cmd="ffprobe", timeout=30),
        ):
            assert not FFprobeAudioProbe(FFPROBE).has_audio(CLIP)

    def test_os_error_fails_open(self) -> None:
        with patch(
            "webencode.introspector.ffprobe.run_command",
            side_effect=PermissionError("denied"),
        ):
            assert not FFprobeAudioProbe(FFPROBE).has_audio(CLIP)

    def test_real_subprocess(self, write_script) -> None:
        ffprobe = write_script("ffprobe", 'echo "audio"\n')
        assert FFprobeAudioProbe(ffprobe).has_audio(CLIP)
