"""Media backend interface

This module defines the capability interface the pipeline uses for every
heavyweight media operation, and its ffmpeg implementation.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .cancel import CancellationToken
from .ffprobe import probe_duration
from .models import ProbeResult, RenditionOutput, Thumbnail
from .process import ProgressStream
from .tiers import QualityTier
from .video.rendition import encode_rendition
from .video.thumbnail import extract_thumbnail

class MediaBackend(ABC):
    """Operations the pipeline needs from a media toolkit."""

    @abstractmethod
    def probe(self, path: Path) -> ProbeResult:
        """Get the source duration.

        Must not raise: failures are reported as a degraded 0-second result.
        """

    @abstractmethod
    def encode(
        self,
        source: Path,
        tier: QualityTier,
        output_dir: Path,
        base_name: str,
        segment_key_prefix: str = "",
        duration_seconds: float = 0,
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[ProgressStream] = None
    ) -> RenditionOutput:
        """Produce one tier's manifest and segments under output_dir.

        Must not raise for encode failures; they are returned as a FAILED
        RenditionOutput.
        """

    @abstractmethod
    def extract_thumbnail(
        self,
        source: Path,
        output_path: Path,
        offset_seconds: float,
        cancel_token: Optional[CancellationToken] = None
    ) -> Thumbnail:
        """Write a poster image; failures are returned, not raised."""

class FFmpegBackend(MediaBackend):
    """Backend running the ffmpeg / ffprobe command line tools."""

    def probe(self, path: Path) -> ProbeResult:
        return probe_duration(path)

    def encode(self, source, tier, output_dir, base_name, segment_key_prefix="",
               duration_seconds=0, cancel_token=None, progress=None):
        return encode_rendition(
            source, output_dir, base_name, tier,
            segment_key_prefix=segment_key_prefix,
            duration_seconds=duration_seconds,
            cancel_token=cancel_token,
            progress=progress,
        )

    def extract_thumbnail(self, source, output_path, offset_seconds, cancel_token=None):
        return extract_thumbnail(source, output_path, offset_seconds, cancel_token)
