"""External tool detection for ffmpeg, ffprobe and the poster optimizer."""

from webencode.tools.detection import detect_tools, find_tool, require_tool
from webencode.tools.models import ToolInfo, ToolRegistry, ToolStatus

__all__ = [
    "ToolInfo",
    "ToolRegistry",
    "ToolStatus",
    "detect_tools",
    "find_tool",
    "require_tool",
]
