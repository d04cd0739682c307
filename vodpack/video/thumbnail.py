"""Poster thumbnail extraction"""

import logging
from pathlib import Path
from typing import Optional

from ..cancel import CancellationToken
from ..config import THUMBNAIL_OFFSET
from ..exceptions import CommandExecutionError, JobCancelled, ThumbnailFailed
from ..models import StageStatus, Thumbnail
from ..process import run_cmd_with_progress
from .command_builders import build_thumbnail_command

logger = logging.getLogger(__name__)

def extract_thumbnail(
    source: Path,
    output_path: Path,
    offset_seconds: float = THUMBNAIL_OFFSET,
    cancel_token: Optional[CancellationToken] = None
) -> Thumbnail:
    """
    Grab a single 320x180 frame at offset_seconds.

    Failures are returned as a FAILED Thumbnail; there is no retry and no
    placeholder image.
    """
    output_path = Path(output_path)

    def failed(cause: str) -> Thumbnail:
        logger.error("Thumbnail generation error: %s", cause)
        return Thumbnail(
            path=None,
            offset_seconds=offset_seconds,
            status=StageStatus.FAILED,
            error=ThumbnailFailed(cause),
        )

    if offset_seconds < 0:
        return failed(f"Negative offset {offset_seconds}")
    try:
        if output_path.is_file():
            output_path.unlink()
        cmd = build_thumbnail_command(Path(source), output_path, offset_seconds)
        run_cmd_with_progress(cmd, cancel_token=cancel_token)
    except JobCancelled as e:
        return failed(e.reason)
    except CommandExecutionError as e:
        return failed(e.output or e.message)
    except OSError as e:
        return failed(str(e))

    # ffmpeg exits 0 without writing a frame when the offset is past the end
    if not output_path.is_file() or output_path.stat().st_size == 0:
        return failed(f"No frame at {offset_seconds:g}s")

    logger.info("Thumbnail generated: %s", output_path)
    return Thumbnail(path=output_path, offset_seconds=offset_seconds, status=StageStatus.SUCCEEDED)
