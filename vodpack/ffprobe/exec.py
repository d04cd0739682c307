"""Low-level ffprobe execution

Responsibilities:
- Run ffprobe through ffmpeg-python and return the parsed JSON
- Convert tool, decoding and OS failures into MetadataError
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

import ffmpeg

from ..config import FFPROBE_BIN

logger = logging.getLogger(__name__)

class MetadataError(Exception):
    """Raised when metadata cannot be retrieved or parsed"""
    def __init__(self, message: str, property_name: str = None):
        self.property_name = property_name
        super().__init__(f"Metadata error: {message}")

def ffprobe_query(path: Path) -> Dict[str, Any]:
    """
    Run ffprobe on a file and return format and stream information.

    Args:
        path: Path to media file

    Returns:
        Parsed ffprobe JSON ({"format": {...}, "streams": [...]})

    Raises:
        MetadataError: If the file is missing, ffprobe fails or its output
            cannot be parsed
    """
    path = Path(path)
    if not path.is_file():
        raise MetadataError(f"Source not found: {path}")
    try:
        return ffmpeg.probe(str(path), cmd=FFPROBE_BIN)
    except ffmpeg.Error as e:
        stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else str(e)
        raise MetadataError(f"ffprobe failed: {stderr}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise MetadataError(f"Failed to query ffprobe: {e}") from e
