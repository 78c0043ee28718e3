"""Data models for detected external tools."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ToolStatus(Enum):
    """Status of an external tool."""

    AVAILABLE = "available"  # Tool found and executable
    MISSING = "missing"  # Tool not found in PATH or configured location


@dataclass
class ToolInfo:
    """Detection result for one external tool."""

    name: str
    path: Path | None = None
    status: ToolStatus = ToolStatus.MISSING
    status_message: str | None = None

    def is_available(self) -> bool:
        """Return True if the tool is available and usable."""
        return self.status == ToolStatus.AVAILABLE and self.path is not None


@dataclass
class ToolRegistry:
    """Tools available to one run.

    ffmpeg is required; ffprobe and the optimizer are optional.
    """

    ffmpeg: ToolInfo = field(default_factory=lambda: ToolInfo(name="ffmpeg"))
    ffprobe: ToolInfo = field(default_factory=lambda: ToolInfo(name="ffprobe"))
    optimizer: ToolInfo = field(default_factory=lambda: ToolInfo(name="guetzli"))

    def get_missing_tools(self) -> list[str]:
        """Return names of tools that were not found."""
        return [
            tool.name
            for tool in (self.ffmpeg, self.ffprobe, self.optimizer)
            if not tool.is_available()
        ]
