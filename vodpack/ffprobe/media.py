"""Source duration

Responsibilities:
- Extract the duration of a source, falling back from container to stream
- Degrade to 0 seconds instead of failing the job
"""

import logging
import math
from pathlib import Path
from typing import Any, Dict, Optional

from ..exceptions import ProbeDegraded
from ..models import ProbeResult
from .exec import MetadataError, ffprobe_query

logger = logging.getLogger(__name__)

def _as_seconds(value: Any) -> Optional[float]:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(seconds) or math.isinf(seconds) or seconds <= 0:
        return None
    return seconds

def get_duration(path: Path, probe_data: Optional[Dict[str, Any]] = None) -> float:
    """
    Get duration with fallbacks.

    Tries the container duration first, then the first video stream.

    Raises:
        MetadataError: If no usable duration is reported
    """
    data = probe_data if probe_data is not None else ffprobe_query(path)

    duration = _as_seconds(data.get("format", {}).get("duration"))
    if duration is not None:
        return duration

    for stream in data.get("streams", []):
        if stream.get("codec_type") == "video":
            duration = _as_seconds(stream.get("duration"))
            if duration is not None:
                logger.debug("Using video stream duration for %s", path)
                return duration
    raise MetadataError("No valid duration reported", "duration")

def probe_duration(path: Path) -> ProbeResult:
    """
    Duration of a source in whole seconds, rounded down.

    Never raises: any inspection failure gives 0 seconds plus a
    ProbeDegraded condition for the caller to record.
    """
    try:
        seconds = int(math.floor(get_duration(Path(path))))
    except MetadataError as e:
        logger.warning("Could not determine duration of %s: %s", path, e)
        return ProbeResult(duration_seconds=0, degraded=ProbeDegraded(str(e)))
    return ProbeResult(duration_seconds=max(0, seconds))
