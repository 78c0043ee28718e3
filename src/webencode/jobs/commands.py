"""External process argument templates.

Each job kind maps to a fixed ffmpeg (or optimizer) argument list that is
parameterized only by the input path, the output path(s) and whether the
source carries audio.
"""

from __future__ import annotations

from pathlib import Path

from webencode.jobs.models import (
    SCALED_H264_HEIGHTS,
    JobFamily,
    JobKind,
    RunConfig,
)
from webencode.jobs.paths import (
    optimization_candidate_path,
    output_paths,
    poster_path,
    resized_poster_path,
)

# (height, video bitrate, max rate, buffer size) per HLS rendition; the
# rendition index is the subfolder name under hls/
HLS_RENDITIONS: tuple[tuple[int, str, str, str], ...] = (
    (1080, "5000k", "5350k", "7500k"),
    (720, "2800k", "2996k", "4200k"),
    (480, "1400k", "1498k", "2100k"),
    (360, "800k", "856k", "1200k"),
)

HLS_SEGMENT_SECONDS = 6
DASH_SEGMENT_SECONDS = 4
GOP_SIZE = 48


def build_audio_args(
    has_audio: bool, codec: str = "aac", bitrate: str = "128k"
) -> list[str]:
    """Build the audio clause.

    Args:
        has_audio: Whether the source has an audio stream.
        codec: Audio encoder.
        bitrate: Audio bitrate.

    Returns:
        Encoder arguments when there is audio, otherwise ["-an"].
    """
    if not has_audio:
        return ["-an"]
    return ["-c:a", codec, "-b:a", bitrate, "-ac", "2"]


def _build_stream_maps(has_audio: bool) -> list[str]:
    args = ["-map", "0:v:0"]
    if has_audio:
        args.extend(["-map", "0:a:0"])
    return args


def _gop_args() -> list[str]:
    # Fixed GOP so segment boundaries line up across renditions
    return ["-g", str(GOP_SIZE), "-keyint_min", str(GOP_SIZE), "-sc_threshold", "0"]


def _webm_args(run: RunConfig, output: Path) -> list[str]:
    cmd = ["-i", str(run.input_path)]
    cmd.extend(_build_stream_maps(run.has_audio))
    cmd.extend(["-c:v", "libvpx-vp9"])
    cmd.extend(["-crf", "32", "-b:v", "0"])
    cmd.extend(["-row-mt", "1", "-deadline", "good", "-cpu-used", "2"])
    cmd.extend(build_audio_args(run.has_audio, codec="libopus", bitrate="96k"))
    cmd.append(str(output))
    return cmd


def _h265_args(run: RunConfig, output: Path) -> list[str]:
    cmd = ["-i", str(run.input_path)]
    cmd.extend(_build_stream_maps(run.has_audio))
    cmd.extend(["-c:v", "libx265", "-crf", "28", "-preset", "medium"])
    # hvc1 tag is required for playback in Safari/QuickTime
    cmd.extend(["-tag:v", "hvc1", "-pix_fmt", "yuv420p"])
    cmd.extend(build_audio_args(run.has_audio))
    cmd.extend(["-movflags", "+faststart"])
    cmd.append(str(output))
    return cmd


def _h264_args(run: RunConfig, output: Path, height: int | None = None) -> list[str]:
    cmd = ["-i", str(run.input_path)]
    cmd.extend(_build_stream_maps(run.has_audio))
    if height is not None:
        cmd.extend(["-vf", f"scale=-2:{height}"])
    cmd.extend(["-c:v", "libx264", "-crf", "23", "-preset", "medium"])
    cmd.extend(["-profile:v", "high", "-pix_fmt", "yuv420p"])
    cmd.extend(build_audio_args(run.has_audio))
    cmd.extend(["-movflags", "+faststart"])
    cmd.append(str(output))
    return cmd


def _hls_args(run: RunConfig, hls_dir: Path) -> list[str]:
    count = len(HLS_RENDITIONS)
    split_labels = "".join(f"[v{i}]" for i in range(count))
    filters = [f"[0:v]split={count}{split_labels}"]
    for i, rendition in enumerate(HLS_RENDITIONS):
        filters.append(f"[v{i}]scale=-2:{rendition[0]}[v{i}out]")

    cmd = ["-i", str(run.input_path)]
    cmd.extend(["-filter_complex", ";".join(filters)])
    for i, (_height, bitrate, maxrate, bufsize) in enumerate(HLS_RENDITIONS):
        cmd.extend(["-map", f"[v{i}out]"])
        cmd.extend([f"-c:v:{i}", "libx264", f"-b:v:{i}", bitrate])
        cmd.extend([f"-maxrate:v:{i}", maxrate, f"-bufsize:v:{i}", bufsize])
    cmd.extend(["-preset", "veryfast", "-pix_fmt", "yuv420p"])
    cmd.extend(_gop_args())

    if run.has_audio:
        for _ in HLS_RENDITIONS:
            cmd.extend(["-map", "0:a:0"])
        cmd.extend(build_audio_args(True))
        stream_map = " ".join(f"v:{i},a:{i}" for i in range(count))
    else:
        cmd.extend(build_audio_args(False))
        stream_map = " ".join(f"v:{i}" for i in range(count))

    cmd.extend(["-f", "hls", "-hls_time", str(HLS_SEGMENT_SECONDS)])
    cmd.extend(["-hls_playlist_type", "vod"])
    cmd.extend(["-hls_flags", "independent_segments"])
    cmd.extend(["-hls_segment_type", "mpegts"])
    cmd.extend(["-hls_segment_filename", str(hls_dir / "%v" / "segment_%03d.ts")])
    cmd.extend(["-master_pl_name", "master.m3u8"])
    cmd.extend(["-var_stream_map", stream_map])
    cmd.append(str(hls_dir / "%v" / "playlist.m3u8"))
    return cmd


def _dash_args(run: RunConfig, manifest: Path) -> list[str]:
    cmd = ["-i", str(run.input_path)]
    cmd.extend(_build_stream_maps(run.has_audio))
    cmd.extend(["-c:v", "libx264", "-crf", "23", "-preset", "veryfast"])
    cmd.extend(["-pix_fmt", "yuv420p"])
    cmd.extend(_gop_args())
    cmd.extend(build_audio_args(run.has_audio))
    cmd.extend(["-f", "dash", "-seg_duration", str(DASH_SEGMENT_SECONDS)])
    cmd.extend(["-use_template", "1", "-use_timeline", "1"])
    cmd.extend(["-init_seg_name", "init-stream$RepresentationID$.m4s"])
    cmd.extend(["-media_seg_name", "chunk-stream$RepresentationID$-$Number%05d$.m4s"])
    if run.has_audio:
        cmd.extend(["-adaptation_sets", "id=0,streams=v id=1,streams=a"])
    else:
        cmd.extend(["-adaptation_sets", "id=0,streams=v"])
    cmd.append(str(manifest))
    return cmd


def _poster_extract_args(run: RunConfig, poster: Path) -> list[str]:
    # thumbnail picks the most representative frame of the opening batch
    cmd = ["-i", str(run.input_path)]
    cmd.extend(["-vf", "thumbnail", "-frames:v", "1", "-q:v", "2"])
    cmd.append(str(poster))
    return cmd


def _poster_resize_args(poster: Path, resized: Path, height: int) -> list[str]:
    cmd = ["-i", str(poster)]
    cmd.extend(["-vf", f"scale=-2:{height}", "-q:v", "2"])
    cmd.append(str(resized))
    return cmd


def build_command(
    kind: JobKind,
    run: RunConfig,
    ffmpeg_path: Path,
    optimizer_path: Path | None = None,
) -> list[str]:
    """Build the full argument list for a job.

    Args:
        kind: Job kind to build for.
        run: Run configuration.
        ffmpeg_path: Path to ffmpeg.
        optimizer_path: Path to the poster optimizer (optimize kinds only).

    Returns:
        Argument list suitable for subprocess.Popen.

    Raises:
        ValueError: If an optimize kind is built without an optimizer.
    """
    family = kind.family

    if family is JobFamily.POSTER_OPTIMIZE:
        if optimizer_path is None or kind.size is None:
            raise ValueError(f"{kind.name} requires an optimizer path")
        resized = resized_poster_path(run.output_dir, run.stem, kind.size)
        return [
            str(optimizer_path),
            str(resized),
            str(optimization_candidate_path(resized)),
        ]

    primary = output_paths(kind, run.output_dir, run.stem)[0]
    if family is JobFamily.WEBM:
        args = _webm_args(run, primary)
    elif family is JobFamily.H265:
        args = _h265_args(run, primary)
    elif family is JobFamily.H264:
        args = _h264_args(run, primary)
    elif family in SCALED_H264_HEIGHTS:
        args = _h264_args(run, primary, SCALED_H264_HEIGHTS[family])
    elif family is JobFamily.HLS:
        args = _hls_args(run, primary.parent)
    elif family is JobFamily.DASH:
        args = _dash_args(run, primary)
    elif family is JobFamily.POSTER_EXTRACT:
        args = _poster_extract_args(run, primary)
    elif family is JobFamily.POSTER_RESIZE and kind.size is not None:
        poster = poster_path(run.output_dir, run.stem)
        args = _poster_resize_args(poster, primary, kind.size)
    else:
        raise ValueError(f"No command template for {kind.name}")

    cmd = [str(ffmpeg_path), "-hide_banner", "-nostdin", "-loglevel", "error"]
    cmd.extend(args)
    return cmd
