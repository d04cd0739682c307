"""Job data model

Responsibilities:
- Describe the source of a job and the results of each pipeline stage
- Enforce the job status state machine
- Record tier results append-once, in request order
- Render the job as the output record consumed by storage sync and the status API
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import JobFailed, StateError, ThumbnailFailed, VodpackError
from .locator import OutputLocation
from .tiers import ALL_TIERS, QualityTier

class JobStatus(Enum):
    """Overall job status."""
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    PARTIALLY_SUCCEEDED = "PartiallySucceeded"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

TERMINAL_STATUSES = frozenset({
    JobStatus.SUCCEEDED, JobStatus.PARTIALLY_SUCCEEDED, JobStatus.FAILED
})

_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.FAILED},
    JobStatus.RUNNING: set(TERMINAL_STATUSES),
}

class StageStatus(Enum):
    """Outcome of a single pipeline stage."""
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    SKIPPED = "Skipped"

@dataclass(frozen=True)
class SourceAsset:
    """Locally staged upload; read-only for the lifetime of a job."""
    path: Path
    owner_id: str
    base_name: str

    def __post_init__(self) -> None:
        if not isinstance(self.path, Path):
            object.__setattr__(self, "path", Path(self.path))

@dataclass(frozen=True)
class RenditionOutput:
    """Result of encoding one tier.

    Attributes:
        tier: Quality tier
        manifest_path: Local path of the .m3u8 playlist
        segment_key_prefix: Storage key prefix of the .ts segments
        status: SUCCEEDED or FAILED
        error: EncodeFailed or JobCancelled when status is FAILED
        location: Public identifiers, set only for succeeded tiers
    """
    tier: QualityTier
    manifest_path: Path
    segment_key_prefix: str
    status: StageStatus
    error: Optional[VodpackError] = None
    location: Optional[OutputLocation] = None

    @property
    def succeeded(self) -> bool:
        return self.status is StageStatus.SUCCEEDED

@dataclass(frozen=True)
class Thumbnail:
    """Poster image result."""
    path: Optional[Path]
    offset_seconds: float
    status: StageStatus
    error: Optional[ThumbnailFailed] = None
    location: Optional[OutputLocation] = None

    @property
    def succeeded(self) -> bool:
        return self.status is StageStatus.SUCCEEDED

@dataclass(frozen=True)
class ProbeResult:
    """Duration in whole seconds plus the degradation, if any."""
    duration_seconds: int
    degraded: Optional[VodpackError] = None

@dataclass
class TranscodeJob:
    """State of one transcoding job.

    Only the pipeline mutates a job; once status is terminal it is final.
    """
    source: SourceAsset
    requested_tiers: List[QualityTier]
    duration_seconds: int = 0
    thumbnail: Optional[Thumbnail] = None
    status: JobStatus = JobStatus.PENDING
    conditions: List[VodpackError] = field(default_factory=list)
    error: Optional[VodpackError] = None
    cancelled: bool = False
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    _slots: List[Optional[RenditionOutput]] = field(default=None, init=False, repr=False)
    _lock: Any = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.requested_tiers = list(self.requested_tiers)
        self._slots = [None] * len(self.requested_tiers)

    @property
    def renditions(self) -> List[RenditionOutput]:
        """Recorded tier results in request order."""
        return [r for r in self._slots if r is not None]

    @property
    def succeeded_tiers(self) -> List[QualityTier]:
        return [r.tier for r in self.renditions if r.succeeded]

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return (self.finished_at or time.time()) - self.started_at

    def transition(self, new_status: JobStatus) -> None:
        """Move to new_status, enforcing the state machine."""
        with self._lock:
            if new_status not in _TRANSITIONS.get(self.status, set()):
                raise StateError(
                    f"Illegal transition {self.status.value} -> {new_status.value}",
                    module="models"
                )
            self.status = new_status
            if new_status is JobStatus.RUNNING:
                self.started_at = time.time()
            elif new_status.is_terminal:
                self.finished_at = time.time()

    def record_rendition(self, index: int, output: RenditionOutput) -> None:
        """Store the result of the tier at request position index (once)."""
        with self._lock:
            if self.status.is_terminal:
                raise StateError("Job is already finalized", module="models")
            if self.requested_tiers[index] is not output.tier:
                raise StateError(
                    f"Slot {index} belongs to {self.requested_tiers[index].label}, "
                    f"not {output.tier.label}",
                    module="models"
                )
            if self._slots[index] is not None:
                raise StateError(f"Result for {output.tier.label} already recorded", module="models")
            self._slots[index] = output

    def replace_rendition(self, index: int, output: RenditionOutput) -> None:
        """Swap a recorded result for its enriched copy (same tier, same status)."""
        with self._lock:
            current = self._slots[index]
            if current is None or current.tier is not output.tier or current.status is not output.status:
                raise StateError("Only recorded results can be enriched", module="models")
            self._slots[index] = output

    def add_condition(self, condition: VodpackError) -> None:
        with self._lock:
            self.conditions.append(condition)

    def errors(self) -> List[VodpackError]:
        """Every job- or tier-level error recorded so far."""
        found = [self.error] if self.error is not None else []
        found.extend(r.error for r in self.renditions if r.error is not None)
        return found

    def raise_for_status(self) -> None:
        """Raise JobFailed when the job finished FAILED."""
        if self.status is JobStatus.FAILED:
            raise JobFailed(self.errors())

    def rendition_for(self, tier: QualityTier) -> Optional[RenditionOutput]:
        for rendition in self.renditions:
            if rendition.tier is tier:
                return rendition
        return None

    def to_output_contract(self) -> Dict[str, Any]:
        """
        Output record for storage sync and the job status API.

        Every catalog tier gets a key; tiers that were not requested or did
        not succeed map to None.
        """
        record: Dict[str, Any] = {}
        for tier in ALL_TIERS:
            rendition = self.rendition_for(tier)
            if rendition is not None and rendition.succeeded and rendition.location is not None:
                record[tier.contract_key] = {
                    "manifestUrl": rendition.location.public_url,
                    "storageKey": rendition.location.storage_key,
                }
            else:
                record[tier.contract_key] = None
        thumb = self.thumbnail
        record["thumbnailUrl"] = (
            thumb.location.public_url
            if thumb is not None and thumb.succeeded and thumb.location is not None
            else None
        )
        record["durationSeconds"] = int(self.duration_seconds)
        record["overallStatus"] = self.status.value
        return record

def failed_rendition(
    tier: QualityTier,
    manifest_path: Path,
    segment_key_prefix: str,
    error: VodpackError
) -> RenditionOutput:
    return RenditionOutput(
        tier=tier,
        manifest_path=manifest_path,
        segment_key_prefix=segment_key_prefix,
        status=StageStatus.FAILED,
        error=error,
    )
