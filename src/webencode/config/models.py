"""Configuration data models for webencode.

Each section of the TOML config file maps onto one dataclass here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ToolPathsConfig:
    """Paths to external tools.

    None means "look the tool up on PATH".
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None
    optimizer: Path | None = None

    # Executable name used when optimizer is not configured explicitly
    optimizer_name: str = "guetzli"


def _default_max_parallel() -> int:
    return max(1, os.cpu_count() or 2)


@dataclass
class ExecutionConfig:
    """Configuration for the job execution engine."""

    max_parallel: int = field(default_factory=_default_max_parallel)
    """Maximum number of external processes running at once."""

    poll_interval: float = 0.25
    """Seconds between liveness checks of running processes."""

    # Per-job-class timeouts in seconds (None = no limit)
    encode_timeout: float | None = 6 * 3600
    streaming_timeout: float | None = 6 * 3600
    poster_timeout: float | None = 300

    probe_timeout: int = 30
    """Timeout for the ffprobe audio probe."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_parallel < 1:
            raise ValueError(
                f"max_parallel must be at least 1, got {self.max_parallel}"
            )
        if self.poll_interval <= 0:
            raise ValueError(
                f"poll_interval must be positive, got {self.poll_interval}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class WebencodeConfig:
    """Main configuration container.

    Aggregates all configuration sections.
    """

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
