"""Utility functions for the vodpack pipeline"""

import logging
import shutil
from datetime import datetime
from typing import List

from .config import FFMPEG_BIN, FFPROBE_BIN
from .exceptions import DependencyError

logger = logging.getLogger(__name__)

def get_timestamp() -> str:
    """Get current timestamp in YYYYMMDD_HHMMSS format"""
    return datetime.now().strftime("%Y%m%d_%H%M%S")

def format_elapsed(seconds: float) -> str:
    """Format a duration as HHh MMm SSs"""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours:02d}h {minutes:02d}m {secs:02d}s"

def missing_dependencies() -> List[str]:
    """Return the required external tools that are not on PATH"""
    missing = [cmd for cmd in (FFMPEG_BIN, FFPROBE_BIN) if shutil.which(cmd) is None]
    for cmd in missing:
        logger.error("Required dependency not found: %s", cmd)
    return missing

def check_dependencies() -> None:
    """
    Verify that ffmpeg and ffprobe are available.

    Raises:
        DependencyError: If a required tool is not on PATH
    """
    missing = missing_dependencies()
    if missing:
        raise DependencyError(
            f"Missing required dependencies: {', '.join(missing)}",
            module="utils"
        )
