"""Quality tier catalog

Responsibilities:
- Define the fixed set of renditions a job can request
- Parse and validate tier labels coming from upload requests
"""

from enum import Enum
from typing import Iterable, List

from .exceptions import RequestError

class QualityTier(Enum):
    """Target quality: (height in pixels, video bitrate in kbps)."""
    P720 = (720, 2000)
    P1080 = (1080, 4000)

    def __init__(self, height: int, video_bitrate_kbps: int):
        self.height = height
        self.video_bitrate_kbps = video_bitrate_kbps

    @property
    def label(self) -> str:
        return f"{self.height}p"

    @property
    def video_bitrate(self) -> str:
        """Bitrate in ffmpeg notation, e.g. '2000k'."""
        return f"{self.video_bitrate_kbps}k"

    @property
    def contract_key(self) -> str:
        """Key used for this tier in the job output record."""
        return f"tier{self.height}"

    def __lt__(self, other):
        if not isinstance(other, QualityTier):
            return NotImplemented
        return self.height < other.height

    def __str__(self) -> str:
        return self.label

    @classmethod
    def from_label(cls, label: str) -> "QualityTier":
        normalized = str(label).strip().lower()
        for tier in cls:
            if tier.label == normalized:
                return tier
        known = ", ".join(t.label for t in cls)
        raise RequestError(f"Unknown tier '{label}' (known: {known})", module="tiers")

ALL_TIERS = tuple(sorted(QualityTier))

def parse_tiers(labels: Iterable) -> List[QualityTier]:
    """
    Parse requested tiers, keeping request order.

    Accepts labels ("720p") or QualityTier members.

    Raises:
        RequestError: If the request is empty, has an unknown label or
            names the same tier twice
    """
    tiers = []
    for item in labels:
        tier = item if isinstance(item, QualityTier) else QualityTier.from_label(item)
        if tier in tiers:
            raise RequestError(f"Tier {tier.label} requested more than once", module="tiers")
        tiers.append(tier)
    if not tiers:
        raise RequestError("At least one tier must be requested", module="tiers")
    return tiers
