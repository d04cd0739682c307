"""FFProbe utilities for source inspection

This package provides utilities for:
- Executing ffprobe and parsing its JSON output
- Determining the duration of a source with fallbacks
"""

from .exec import MetadataError, ffprobe_query
from .media import get_duration, probe_duration

__all__ = [
    'MetadataError',
    'ffprobe_query',
    'get_duration',
    'probe_duration',
]
