"""Configuration management for webencode.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (WEBENCODE_*)
3. Config file (~/.config/webencode/config.toml)
4. Default values (lowest priority)
"""

from webencode.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from webencode.config.env import EnvReader
from webencode.config.loader import (
    get_config,
    get_default_config_path,
    load_config_file,
)
from webencode.config.models import (
    ExecutionConfig,
    LoggingConfig,
    ToolPathsConfig,
    WebencodeConfig,
)

__all__ = [
    # Models
    "ExecutionConfig",
    "LoggingConfig",
    "ToolPathsConfig",
    "WebencodeConfig",
    # Builder
    "ConfigBuilder",
    "ConfigSource",
    "EnvReader",
    "source_from_env",
    "source_from_file",
    # Loader
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
