"""FFprobe-based audio presence probe.

The probe is advisory: any failure is treated as "no audio" so that a
video-only encode can still proceed.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from webencode.core.subprocess_utils import run_command

logger = logging.getLogger(__name__)


def parse_stream_types(output: str) -> list[str]:
    """Parse `-show_entries stream=codec_type -of csv=p=0` output.

    Args:
        output: Raw ffprobe stdout.

    Returns:
        One codec type per stream, lower-cased, blank lines dropped.
    """
    return [
        line.strip().strip(",").casefold()
        for line in output.splitlines()
        if line.strip()
    ]


class FFprobeAudioProbe:
    """Answers "does this input contain an audio stream".

    Example:
        probe = FFprobeAudioProbe(Path("/usr/bin/ffprobe"))
        probe.has_audio(Path("clip.mp4"))
    """

    def __init__(self, ffprobe_path: Path | None, timeout: int = 30) -> None:
        """Initialize the probe.

        Args:
            ffprobe_path: Path to ffprobe, or None if it is not installed.
            timeout: Seconds before the probe is abandoned.
        """
        self._ffprobe_path = ffprobe_path
        self._timeout = timeout

    def has_audio(self, path: Path) -> bool:
        """Return True if ffprobe reports at least one audio stream.

        Never raises; probe failures are logged and reported as False.
        """
        if self._ffprobe_path is None:
            logger.warning("ffprobe not available; assuming %s has no audio", path)
            return False

        try:
            stdout, stderr, returncode = run_command(
                [
                    self._ffprobe_path,
                    "-v",
                    "error",
                    "-select_streams",
                    "a",
                    "-show_entries",
                    "stream=codec_type",
                    "-of",
                    "csv=p=0",
                    path,
                ],
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("ffprobe timed out for %s; assuming no audio", path)
            return False
        except OSError as e:
            logger.warning("ffprobe could not be run (%s); assuming no audio", e)
            return False

        if returncode != 0:
            logger.warning(
                "ffprobe failed for %s (exit %d): %s; assuming no audio",
                path,
                returncode,
                stderr.strip(),
            )
            return False

        has_audio = "audio" in parse_stream_types(stdout)
        logger.debug("Audio probe for %s: %s", path, has_audio)
        return has_audio
