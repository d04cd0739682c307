"""Configuration settings for the vodpack transcoding pipeline

This module centralizes all configuration settings including:
- Output root and public URL layout
- Log directory and level
- Fixed HLS packaging policy (segment length, audio, thumbnail size)
- Concurrency and memory thresholds for tier encodes

User-configurable settings are read from environment variables; the
packaging policy is fixed because players and the CDN depend on it.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

def env_int(name: str, default: int, minimum: int = 1) -> int:
    """Read a positive integer setting, falling back to default if unset or invalid."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        value = None
    if value is None or value < minimum:
        logger.warning("Ignoring %s=%r (expected an integer >= %d); using %d", name, raw, minimum, default)
        return default
    return value

# Root under which videos/{owner}/ directories are created
OUTPUT_ROOT = Path(os.environ.get("VODPACK_OUTPUT_ROOT", "./uploads"))

# Prefix for public manifest and thumbnail URLs
PUBLIC_BASE_URL = os.environ.get("VODPACK_PUBLIC_BASE_URL", "/uploads").rstrip("/")

# Storage key / URL path segment shared by every rendition
VIDEOS_PREFIX = "videos"

# LOG_DIR: user definable with default of "$HOME/vodpack_logs"
LOG_DIR = Path(os.environ.get("VODPACK_LOG_DIR", str(Path.home() / "vodpack_logs")))
LOG_LEVEL = os.environ.get("VODPACK_LOG_LEVEL", "INFO").upper()

# External tools
FFMPEG_BIN = os.environ.get("VODPACK_FFMPEG", "ffmpeg")
FFPROBE_BIN = os.environ.get("VODPACK_FFPROBE", "ffprobe")

# HLS packaging policy
SEGMENT_SECONDS = 2
MANIFEST_EXT = ".m3u8"
SEGMENT_EXT = ".ts"
SEGMENT_INDEX_DIGITS = 3
VIDEO_CODEC = "libx264"
X264_PRESET = os.environ.get("VODPACK_X264_PRESET", "veryfast")
AUDIO_CODEC = "aac"
AUDIO_BITRATE = "128k"
AUDIO_CHANNELS = 2

# Thumbnail settings
THUMBNAIL_WIDTH = 320
THUMBNAIL_HEIGHT = 180
THUMBNAIL_OFFSET = 1.0
THUMBNAIL_PREFIX = "thumb-"
THUMBNAIL_EXT = ".jpg"

# Concurrency settings
DEFAULT_CONCURRENCY = env_int("VODPACK_CONCURRENCY", 1)
MEMORY_RESERVE = 0.2  # Fraction of total memory kept free before admitting another encode
SCHEDULER_POLL_INTERVAL = 0.5  # Seconds between cancellation checks while waiting on encodes
TERMINATE_GRACE_PERIOD = 5.0  # Seconds between SIGTERM and SIGKILL on cancellation

# Progress logging
PROGRESS_LOG_INTERVAL = 10.0  # Minimum percent step between progress log lines
