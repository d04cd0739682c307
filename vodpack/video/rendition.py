"""Rendition encoding

Responsibilities:
- Encode one quality tier of a source into an HLS playlist + segments
- Remove stale files of the same rendition before re-encoding
- Publish encode progress without blocking the encode
- Report failures as a FAILED RenditionOutput instead of raising
"""

import logging
import re
from pathlib import Path
from typing import Optional

from ..cancel import CancellationToken
from ..config import SEGMENT_EXT, SEGMENT_INDEX_DIGITS
from ..exceptions import CommandExecutionError, EncodeFailed, JobCancelled
from ..locator import manifest_filename, segment_stem
from ..models import RenditionOutput, StageStatus, failed_rendition
from ..process import ProgressStream, run_cmd_with_progress
from ..tiers import QualityTier
from .command_builders import build_rendition_command

logger = logging.getLogger(__name__)

def remove_stale_outputs(output_dir: Path, base_name: str, tier: QualityTier) -> int:
    """Delete a previous run's manifest and segments of this rendition."""
    removed = 0
    manifest_name = manifest_filename(base_name, tier)
    segment_re = re.compile(
        re.escape(segment_stem(base_name, tier))
        + r"\d{%d,}" % SEGMENT_INDEX_DIGITS
        + re.escape(SEGMENT_EXT)
    )
    # Other base names may share this prefix, so match whole names only
    candidates = sorted(
        path for path in output_dir.iterdir()
        if path.name == manifest_name or segment_re.fullmatch(path.name)
    )
    for path in candidates:
        if path.is_file():
            path.unlink()
            removed += 1
    if removed:
        logger.info("Removed %d stale file(s) of %s rendition", removed, tier.label)
    return removed

def encode_rendition(
    source: Path,
    output_dir: Path,
    base_name: str,
    tier: QualityTier,
    segment_key_prefix: str = "",
    duration_seconds: float = 0,
    cancel_token: Optional[CancellationToken] = None,
    progress: Optional[ProgressStream] = None
) -> RenditionOutput:
    """
    Encode a single tier.

    Args:
        source: Source video
        output_dir: Directory receiving the manifest and segments
        base_name: Base name shared by all tiers of the job
        tier: Quality tier to produce
        segment_key_prefix: Storage key prefix recorded on the result
        duration_seconds: Source duration, used for progress percentages
        cancel_token: Job cancellation token
        progress: Stream receiving percent-complete values

    Returns:
        RenditionOutput with status SUCCEEDED, or FAILED carrying
        EncodeFailed / JobCancelled
    """
    source = Path(source)
    output_dir = Path(output_dir)
    manifest_path = output_dir / manifest_filename(base_name, tier)
    if progress is None:
        progress = ProgressStream()

    def failed(error) -> RenditionOutput:
        progress.close(completed=False)
        return failed_rendition(tier, manifest_path, segment_key_prefix, error)

    try:
        if cancel_token is not None:
            cancel_token.raise_if_stopped()
        remove_stale_outputs(output_dir, base_name, tier)
        cmd = build_rendition_command(source, output_dir, base_name, tier)
        logger.info("Encoding %s rendition of %s", tier.label, source.name)
        run_cmd_with_progress(cmd, duration_seconds, progress, cancel_token)
    except JobCancelled as e:
        logger.warning("%s rendition cancelled: %s", tier.label, e.reason)
        return failed(e)
    except CommandExecutionError as e:
        logger.error("ffmpeg failed for %s: %s", tier.label, e.output or e.message)
        return failed(EncodeFailed(tier, e.output or e.message))
    except OSError as e:
        logger.error("I/O error while encoding %s: %s", tier.label, e)
        return failed(EncodeFailed(tier, str(e)))

    if not manifest_path.is_file():
        return failed(EncodeFailed(tier, f"ffmpeg did not write {manifest_path.name}"))

    progress.close(completed=True)
    logger.info("HLS conversion completed for %s", tier.label)
    return RenditionOutput(
        tier=tier,
        manifest_path=manifest_path,
        segment_key_prefix=segment_key_prefix,
        status=StageStatus.SUCCEEDED,
    )
