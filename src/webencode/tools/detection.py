"""External tool detection.

Resolves configured tool paths, falling back to a PATH lookup.
"""

import logging
import os
import shutil
from pathlib import Path

from webencode.config.models import ToolPathsConfig
from webencode.exceptions import ToolNotFoundError
from webencode.tools.models import ToolInfo, ToolRegistry, ToolStatus

logger = logging.getLogger(__name__)


def find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Find a tool executable.

    Args:
        name: Tool name (e.g., "ffmpeg").
        configured_path: Optional configured path override.

    Returns:
        Path to tool executable, or None if not found.
    """
    if configured_path:
        if configured_path.is_file() and os.access(configured_path, os.X_OK):
            return configured_path
        logger.warning(
            "Configured path for %s is not an executable file: %s",
            name,
            configured_path,
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)

    return None


def detect_tool(name: str, configured_path: Path | None = None) -> ToolInfo:
    """Detect a single tool.

    Args:
        name: Tool executable name.
        configured_path: Optional configured path override.

    Returns:
        ToolInfo with status AVAILABLE or MISSING.
    """
    info = ToolInfo(name=name)
    path = find_tool(name, configured_path)
    if path is None:
        info.status_message = f"{name} not found in PATH"
        return info

    info.path = path
    info.status = ToolStatus.AVAILABLE
    logger.debug("Found %s at %s", name, path)
    return info


def detect_tools(tools: ToolPathsConfig) -> ToolRegistry:
    """Detect every tool a run may use.

    Args:
        tools: Configured tool paths.

    Returns:
        ToolRegistry with detection results.
    """
    return ToolRegistry(
        ffmpeg=detect_tool("ffmpeg", tools.ffmpeg),
        ffprobe=detect_tool("ffprobe", tools.ffprobe),
        optimizer=detect_tool(tools.optimizer_name, tools.optimizer),
    )


def require_tool(info: ToolInfo) -> Path:
    """Return the path of a required tool.

    Raises:
        ToolNotFoundError: If the tool is not available.
    """
    if not info.is_available() or info.path is None:
        raise ToolNotFoundError(info.name)
    return info.path
