"""
vodpack - adaptive-bitrate packaging for uploaded videos

This package turns a locally staged source video into an HLS package:
- Probes the source duration with ffprobe
- Encodes one manifest + segment set per quality tier (720p, 1080p)
- Extracts a poster thumbnail
- Derives deterministic public URLs and storage keys for every rendition
- Bounds concurrent encodes and isolates per-tier failures

The output layout is consumed by the storage sync and the web player, so
file names produced here must stay stable.
"""

__version__ = "0.1.0"
