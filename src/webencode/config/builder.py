"""Configuration builder with explicit layering.

ConfigBuilder composes WebencodeConfig from ConfigSources, later sources
overriding earlier ones.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from webencode.config.env import EnvReader
from webencode.config.models import (
    ExecutionConfig,
    LoggingConfig,
    ToolPathsConfig,
    WebencodeConfig,
)
from webencode.exceptions import ConfigurationError


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values mean "not specified in this source" and never override
    values from lower-precedence sources.
    """

    # Tool paths
    ffmpeg_path: Path | None = None
    ffprobe_path: Path | None = None
    optimizer_path: Path | None = None
    optimizer_name: str | None = None

    # Execution config
    max_parallel: int | None = None
    poll_interval: float | None = None
    encode_timeout: float | None = None
    streaming_timeout: float | None = None
    poster_timeout: float | None = None
    probe_timeout: int | None = None

    # Logging config
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


class ConfigBuilder:
    """Builds WebencodeConfig by layering ConfigSources with precedence.

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource) -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> WebencodeConfig:
        """Build the final WebencodeConfig with defaults for unset values.

        Raises:
            ValueError: If a layered value fails section validation.
        """
        tools_defaults = ToolPathsConfig()
        tools = ToolPathsConfig(
            ffmpeg=self._get("ffmpeg_path", None),
            ffprobe=self._get("ffprobe_path", None),
            optimizer=self._get("optimizer_path", None),
            optimizer_name=self._get("optimizer_name", tools_defaults.optimizer_name),
        )

        exec_defaults = ExecutionConfig()
        execution = ExecutionConfig(
            max_parallel=self._get("max_parallel", exec_defaults.max_parallel),
            poll_interval=self._get("poll_interval", exec_defaults.poll_interval),
            encode_timeout=_timeout_value(
                self._get("encode_timeout", exec_defaults.encode_timeout)
            ),
            streaming_timeout=_timeout_value(
                self._get("streaming_timeout", exec_defaults.streaming_timeout)
            ),
            poster_timeout=_timeout_value(
                self._get("poster_timeout", exec_defaults.poster_timeout)
            ),
            probe_timeout=self._get("probe_timeout", exec_defaults.probe_timeout),
        )

        log_defaults = LoggingConfig()
        logging_config = LoggingConfig(
            level=self._get("logging_level", log_defaults.level),
            file=self._get("logging_file", log_defaults.file),
            format=self._get("logging_format", log_defaults.format),
            include_stderr=self._get(
                "logging_include_stderr", log_defaults.include_stderr
            ),
            max_bytes=self._get("logging_max_bytes", log_defaults.max_bytes),
            backup_count=self._get("logging_backup_count", log_defaults.backup_count),
        )

        return WebencodeConfig(
            tools=tools,
            execution=execution,
            logging=logging_config,
        )


def _timeout_value(value: Any) -> float | None:
    # A timeout of 0 in config or env disables the limit
    if value is None:
        return None
    value = float(value)
    return value if value > 0 else None


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from WEBENCODE_* environment variables.

    Args:
        reader: EnvReader instance for reading environment variables.
    """
    return ConfigSource(
        ffmpeg_path=reader.get_path("WEBENCODE_FFMPEG_PATH"),
        ffprobe_path=reader.get_path("WEBENCODE_FFPROBE_PATH"),
        optimizer_path=reader.get_path("WEBENCODE_OPTIMIZER_PATH"),
        optimizer_name=reader.get_str("WEBENCODE_OPTIMIZER"),
        max_parallel=reader.get_int("WEBENCODE_MAX_PARALLEL"),
        poll_interval=reader.get_float("WEBENCODE_POLL_INTERVAL"),
        encode_timeout=reader.get_float("WEBENCODE_ENCODE_TIMEOUT"),
        streaming_timeout=reader.get_float("WEBENCODE_STREAMING_TIMEOUT"),
        poster_timeout=reader.get_float("WEBENCODE_POSTER_TIMEOUT"),
        probe_timeout=reader.get_int("WEBENCODE_PROBE_TIMEOUT"),
        logging_level=reader.get_str("WEBENCODE_LOG_LEVEL"),
        logging_file=reader.get_path("WEBENCODE_LOG_FILE", must_exist=False),
        logging_format=reader.get_str("WEBENCODE_LOG_FORMAT"),
        logging_include_stderr=reader.get_bool("WEBENCODE_LOG_INCLUDE_STDERR"),
    )


def _section(file_config: dict[str, Any], name: str) -> dict[str, Any]:
    section = file_config.get(name, {})
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"Config file section [{name}] must be a table, "
            f"got {type(section).__name__}"
        )
    return section


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from a parsed config file.

    Args:
        file_config: Parsed TOML dictionary.

    Raises:
        ConfigurationError: If a section is not a table or a path is not a
            string.
    """
    tools = _section(file_config, "tools")
    execution = _section(file_config, "execution")
    logging_section = _section(file_config, "logging")

    def _path(value: Any) -> Path | None:
        if not value:
            return None
        if not isinstance(value, str):
            raise ConfigurationError(f"Expected a path string, got {value!r}")
        return Path(value).expanduser()

    return ConfigSource(
        ffmpeg_path=_path(tools.get("ffmpeg")),
        ffprobe_path=_path(tools.get("ffprobe")),
        optimizer_path=_path(tools.get("optimizer_path")),
        optimizer_name=tools.get("optimizer"),
        max_parallel=execution.get("max_parallel"),
        poll_interval=execution.get("poll_interval"),
        encode_timeout=execution.get("encode_timeout"),
        streaming_timeout=execution.get("streaming_timeout"),
        poster_timeout=execution.get("poster_timeout"),
        probe_timeout=execution.get("probe_timeout"),
        logging_level=logging_section.get("level"),
        logging_file=_path(logging_section.get("file")),
        logging_format=logging_section.get("format"),
        logging_include_stderr=logging_section.get("include_stderr"),
        logging_max_bytes=logging_section.get("max_bytes"),
        logging_backup_count=logging_section.get("backup_count"),
    )
