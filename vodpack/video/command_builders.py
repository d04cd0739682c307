"""Helper functions for building ffmpeg commands"""

import logging
from pathlib import Path
from typing import List

import ffmpeg

from ..config import (
    FFMPEG_BIN, VIDEO_CODEC, X264_PRESET, AUDIO_CODEC, AUDIO_BITRATE,
    AUDIO_CHANNELS, SEGMENT_SECONDS, THUMBNAIL_WIDTH, THUMBNAIL_HEIGHT
)
from ..locator import manifest_filename, segment_filename_pattern
from ..tiers import QualityTier

log = logging.getLogger(__name__)

GLOBAL_ARGS = ("-hide_banner", "-loglevel", "warning")

def build_rendition_command(
    source: Path,
    output_dir: Path,
    base_name: str,
    tier: QualityTier
) -> List[str]:
    """
    Build the ffmpeg command producing one HLS rendition.

    Every segment is SEGMENT_SECONDS long and starts on a forced keyframe,
    scene-cut keyframes are disabled so they cannot shift boundaries.
    Width follows the source aspect ratio (rounded to an even number).
    """
    manifest = Path(output_dir) / manifest_filename(base_name, tier)
    segments = Path(output_dir) / segment_filename_pattern(base_name, tier)
    buffer_kbps = tier.video_bitrate_kbps * 2

    stream = ffmpeg.input(str(source))
    stream = ffmpeg.output(
        stream,
        str(manifest),
        format="hls",
        vf=f"scale=-2:{tier.height}",
        preset=X264_PRESET,
        force_key_frames=f"expr:gte(t,n_forced*{SEGMENT_SECONDS})",
        sc_threshold=0,
        maxrate=tier.video_bitrate,
        bufsize=f"{buffer_kbps}k",
        ac=AUDIO_CHANNELS,
        hls_time=SEGMENT_SECONDS,
        hls_list_size=0,
        hls_playlist_type="vod",
        hls_segment_filename=str(segments),
        **{
            "c:v": VIDEO_CODEC,
            "b:v": tier.video_bitrate,
            "c:a": AUDIO_CODEC,
            "b:a": AUDIO_BITRATE,
        }
    )
    stream = ffmpeg.overwrite_output(stream).global_args(*GLOBAL_ARGS)
    return ffmpeg.compile(stream, cmd=FFMPEG_BIN)

def build_thumbnail_command(
    source: Path,
    output_path: Path,
    offset_seconds: float
) -> List[str]:
    """Build the ffmpeg command grabbing one frame at offset_seconds."""
    stream = ffmpeg.input(str(source), ss=f"{offset_seconds:g}")
    stream = ffmpeg.output(
        stream,
        str(output_path),
        vframes=1,
        s=f"{THUMBNAIL_WIDTH}x{THUMBNAIL_HEIGHT}",
        **{"q:v": 2}
    )
    stream = ffmpeg.overwrite_output(stream).global_args(*GLOBAL_ARGS)
    return ffmpeg.compile(stream, cmd=FFMPEG_BIN)
