"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed to get_config as a ConfigSource)
2. Environment variables (WEBENCODE_*)
3. Config file (~/.config/webencode/config.toml)
4. Default values

Environment variables:
- WEBENCODE_CONFIG_PATH: Path to config file (overrides default location)
- WEBENCODE_FFMPEG_PATH / WEBENCODE_FFPROBE_PATH: Tool paths
- WEBENCODE_OPTIMIZER / WEBENCODE_OPTIMIZER_PATH: JPEG optimizer name or path
- WEBENCODE_MAX_PARALLEL: Maximum concurrent external processes
- WEBENCODE_POLL_INTERVAL: Seconds between process liveness checks
- WEBENCODE_ENCODE_TIMEOUT / WEBENCODE_STREAMING_TIMEOUT /
  WEBENCODE_POSTER_TIMEOUT: Per-job-class timeouts in seconds (0 = none)
- WEBENCODE_LOG_LEVEL / WEBENCODE_LOG_FILE / WEBENCODE_LOG_FORMAT /
  WEBENCODE_LOG_INCLUDE_STDERR
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from webencode.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from webencode.config.env import EnvReader
from webencode.config.models import WebencodeConfig
from webencode.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "webencode"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


def get_default_config_path(env: Mapping[str, str] | None = None) -> Path:
    """Get the default config file path.

    Can be overridden by WEBENCODE_CONFIG_PATH environment variable.
    """
    env_path = EnvReader(env).get_str("WEBENCODE_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from TOML file.

    Args:
        path: Path to config file. If None, uses default location.
        strict: If True, raise ConfigurationError when the file cannot be
            parsed. If False, log a warning and return an empty dict.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.
    """
    if path is None:
        path = get_default_config_path()

    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}

    logger.debug("Loaded config from %s", path)
    return config


def get_config(
    config_path: Path | None = None,
    cli: ConfigSource | None = None,
    env: Mapping[str, str] | None = None,
) -> WebencodeConfig:
    """Get webencode configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides WEBENCODE_CONFIG_PATH).
        cli: Values from command-line options.
        env: Environment mapping (defaults to os.environ).

    Returns:
        WebencodeConfig with merged configuration.

    Raises:
        ConfigurationError: If a merged value is invalid.
    """
    # An explicitly requested file must parse; the default one may be broken
    strict = config_path is not None
    if config_path is None:
        config_path = get_default_config_path(env)
    file_config: dict[str, Any] = load_config_file(config_path, strict=strict)

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config))
    builder.apply(source_from_env(EnvReader(env if env is not None else os.environ)))
    if cli is not None:
        builder.apply(cli)

    try:
        return builder.build()
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
