"""Media introspection via ffprobe."""

from webencode.introspector.ffprobe import FFprobeAudioProbe, parse_stream_types

__all__ = ["FFprobeAudioProbe", "parse_stream_types"]
