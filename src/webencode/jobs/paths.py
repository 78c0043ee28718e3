"""Artifact path templates.

Every job kind owns a distinct set of paths under the output directory, so
concurrently running jobs never write to the same file.
"""

from __future__ import annotations

from pathlib import Path

from webencode.jobs.models import SCALED_H264_HEIGHTS, JobFamily, JobKind

HLS_DIR = "hls"
DASH_DIR = "dash"
HLS_RENDITION_COUNT = 4


def poster_path(output_dir: Path, stem: str) -> Path:
    """Full-size poster extracted from the source."""
    return output_dir / f"{stem}-poster.jpg"


def resized_poster_path(output_dir: Path, stem: str, size: int) -> Path:
    return output_dir / f"{stem}-poster-{size}p.jpg"


def optimization_candidate_path(poster: Path) -> Path:
    """Scratch file the optimizer writes next to the poster it shrinks."""
    return poster.with_name(f"{poster.stem}.optimized{poster.suffix}")


def output_paths(kind: JobKind, output_dir: Path, stem: str) -> tuple[Path, ...]:
    """Paths a job kind produces, primary artifact first.

    Args:
        kind: Job kind.
        output_dir: Run output directory.
        stem: Input base name without extension.

    Returns:
        Non-empty tuple of paths.
    """
    family = kind.family
    if family is JobFamily.WEBM:
        return (output_dir / f"{stem}.webm",)
    if family is JobFamily.H265:
        return (output_dir / f"{stem}.mp4",)
    if family is JobFamily.H264:
        return (output_dir / f"{stem}_h264.mp4",)
    if family in SCALED_H264_HEIGHTS:
        return (output_dir / f"{stem}_{SCALED_H264_HEIGHTS[family]}p.mp4",)
    if family is JobFamily.HLS:
        hls_dir = output_dir / HLS_DIR
        playlists = tuple(
            hls_dir / str(i) / "playlist.m3u8" for i in range(HLS_RENDITION_COUNT)
        )
        return (hls_dir / "master.m3u8", *playlists)
    if family is JobFamily.DASH:
        return (output_dir / DASH_DIR / "manifest.mpd",)
    if family is JobFamily.POSTER_EXTRACT:
        return (poster_path(output_dir, stem),)
    if kind.size is not None:
        # An optimize job finalizes the resized poster in place
        return (resized_poster_path(output_dir, stem, kind.size),)
    raise ValueError(f"No path template for {kind.name}")


def required_directories(kind: JobKind, output_dir: Path) -> tuple[Path, ...]:
    """Subdirectories that must exist before the job's process starts."""
    if kind.family is JobFamily.HLS:
        hls_dir = output_dir / HLS_DIR
        return tuple(hls_dir / str(i) for i in range(HLS_RENDITION_COUNT))
    if kind.family is JobFamily.DASH:
        return (output_dir / DASH_DIR,)
    return ()


def written_paths(kind: JobKind, output_dir: Path, stem: str) -> tuple[Path, ...]:
    """Paths a job's process writes to while it runs.

    Same as output_paths except for optimize jobs, whose process writes a
    candidate file beside the resized poster.
    """
    if kind.family is JobFamily.POSTER_OPTIMIZE:
        (resized,) = output_paths(kind, output_dir, stem)
        return (optimization_candidate_path(resized),)
    return output_paths(kind, output_dir, stem)
