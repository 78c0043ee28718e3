"""webencode: turn one source video into a web-ready artifact set."""

__version__ = "0.1.0"
