"""High-level orchestration of a transcoding job

Responsibilities:
  - Validate a job request and create the TranscodeJob record.
  - Probe the source duration (degrading to 0 on failure).
  - Prepare the per-owner output directory.
  - Extract the poster thumbnail (best-effort).
  - Encode every requested tier with bounded concurrency, isolating failures.
  - Derive public identifiers and compute the overall status.

Overall status policy: a job SUCCEEDED when every tier succeeded,
PARTIALLY_SUCCEEDED when at least one did, FAILED otherwise. The
thumbnail never affects it.
"""

import dataclasses
import logging
import os
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Union

from .backend import FFmpegBackend, MediaBackend
from .cancel import CancellationToken
from .config import (
    DEFAULT_CONCURRENCY, MEMORY_RESERVE, OUTPUT_ROOT, PROGRESS_LOG_INTERVAL,
    SCHEDULER_POLL_INTERVAL, THUMBNAIL_OFFSET
)
from .exceptions import (
    DirectoryError, EncodeFailed, JobCancelled, ProbeDegraded, RequestError,
    ThumbnailFailed
)
from .locator import (
    base_name_from_filename, locate, manifest_filename, owner_directory,
    segment_key_prefix, thumbnail_filename, thumbnail_location
)
from .models import (
    JobStatus, ProbeResult, RenditionOutput, SourceAsset, StageStatus,
    Thumbnail, TranscodeJob, failed_rendition
)
from .process import ProgressStream
from .scheduler import TierScheduler
from .tiers import QualityTier, parse_tiers

logger = logging.getLogger(__name__)

ProgressListener = Callable[[QualityTier, float], None]

def _stop_reason(token: CancellationToken) -> str:
    if token.cancelled:
        return token.reason or "cancelled"
    return "deadline exceeded"

def _logging_listener(tier: QualityTier, interval: float = PROGRESS_LOG_INTERVAL) -> Callable[[float], None]:
    """Log encode progress every `interval` percent."""
    state = {"last": -interval}

    def listener(percent: float) -> None:
        if percent - state["last"] >= interval or percent >= 100.0:
            logger.info("Processing %s: %.0f%% done", tier.label, percent)
            state["last"] = percent
    return listener

def _probe_source(job: TranscodeJob, backend: MediaBackend, token: CancellationToken) -> None:
    if token.should_stop():
        result = ProbeResult(0, ProbeDegraded(f"skipped, {_stop_reason(token)}"))
    else:
        try:
            result = backend.probe(job.source.path)
        except Exception as e:
            logger.exception("Duration probe raised: %s", e)
            result = ProbeResult(0, ProbeDegraded(str(e)))
    job.duration_seconds = max(0, int(result.duration_seconds))
    if result.degraded is not None:
        job.add_condition(result.degraded)
    logger.info("Duration: %d seconds", job.duration_seconds)

def _prepare_output_dir(output_dir: Path) -> None:
    """
    Create the owner directory and check it is writable.

    Raises:
        DirectoryError: If the directory cannot be created or written
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Cannot create {output_dir}: {e}", module="pipeline") from e
    if not os.access(output_dir, os.W_OK | os.X_OK):
        raise DirectoryError(f"Output directory {output_dir} is not writable", module="pipeline")

def _extract_thumbnail(
    job: TranscodeJob,
    backend: MediaBackend,
    output_dir: Path,
    offset_seconds: float,
    public_base_url: Optional[str],
    token: CancellationToken
) -> None:
    source = job.source
    if token.should_stop():
        job.thumbnail = Thumbnail(path=None, offset_seconds=offset_seconds, status=StageStatus.SKIPPED)
        return
    output_path = output_dir / thumbnail_filename(source.base_name)
    try:
        thumbnail = backend.extract_thumbnail(source.path, output_path, offset_seconds, token)
    except Exception as e:
        logger.exception("Thumbnail extraction raised: %s", e)
        thumbnail = Thumbnail(
            path=None, offset_seconds=offset_seconds,
            status=StageStatus.FAILED, error=ThumbnailFailed(str(e))
        )
    if thumbnail.succeeded:
        thumbnail = dataclasses.replace(
            thumbnail,
            location=thumbnail_location(source.owner_id, source.base_name, public_base_url)
        )
    elif thumbnail.error is not None:
        job.add_condition(thumbnail.error)
    job.thumbnail = thumbnail

def _encode_tier(
    job: TranscodeJob,
    tier: QualityTier,
    backend: MediaBackend,
    output_dir: Path,
    token: CancellationToken,
    progress_listener: Optional[ProgressListener]
) -> RenditionOutput:
    """Worker body for one tier; never raises."""
    source = job.source
    prefix = segment_key_prefix(source.owner_id, source.base_name, tier)
    manifest_path = output_dir / manifest_filename(source.base_name, tier)
    if token.should_stop():
        return failed_rendition(tier, manifest_path, prefix, JobCancelled(_stop_reason(token)))

    if progress_listener is not None:
        listener = lambda percent: progress_listener(tier, percent)
    else:
        listener = _logging_listener(tier)
    try:
        return backend.encode(
            source.path, tier, output_dir, source.base_name,
            segment_key_prefix=prefix,
            duration_seconds=job.duration_seconds,
            cancel_token=token,
            progress=ProgressStream(listener=listener),
        )
    except Exception as e:
        logger.exception("Encoder raised for %s: %s", tier.label, e)
        return failed_rendition(tier, manifest_path, prefix, EncodeFailed(tier, str(e)))

def _record(job: TranscodeJob, index: int, future: Future, token: CancellationToken) -> None:
    output: RenditionOutput = future.result()
    if token.cancelled and output.succeeded:
        # Results collected after the cancellation point are never trusted
        output = failed_rendition(
            output.tier, output.manifest_path, output.segment_key_prefix,
            JobCancelled(_stop_reason(token))
        )
    if output.succeeded:
        logger.info("%s rendition succeeded", output.tier.label)
    else:
        logger.error("%s rendition failed: %s", output.tier.label, output.error)
    job.record_rendition(index, output)

def _encode_tiers(
    job: TranscodeJob,
    backend: MediaBackend,
    output_dir: Path,
    concurrency_limit: int,
    token: CancellationToken,
    progress_listener: Optional[ProgressListener]
) -> None:
    """Encode every requested tier, at most concurrency_limit at a time."""
    pending = list(enumerate(job.requested_tiers))
    scheduler = TierScheduler(concurrency_limit, MEMORY_RESERVE)
    max_workers = min(concurrency_limit, len(pending))

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="vodpack-encode") as executor:
        try:
            _drive(job, executor, scheduler, pending, output_dir, backend, token, progress_listener)
        except KeyboardInterrupt:
            # Stop running encodes before the executor waits for them
            token.cancel("interrupted")
            raise

def _drive(job, executor, scheduler, pending, output_dir, backend, token, progress_listener) -> None:
    """Submit, wait and collect until every tier has a recorded result."""
    while pending or scheduler.running_tasks:
        while pending and not token.should_stop() and scheduler.can_submit():
            index, tier = pending.pop(0)
            future = executor.submit(
                _encode_tier, job, tier, backend, output_dir, token, progress_listener
            )
            scheduler.add_task(index, future)

        if pending and token.should_stop():
            reason = _stop_reason(token)
            for index, tier in pending:
                source = job.source
                job.record_rendition(index, failed_rendition(
                    tier,
                    output_dir / manifest_filename(source.base_name, tier),
                    segment_key_prefix(source.owner_id, source.base_name, tier),
                    JobCancelled(reason),
                ))
            pending = []

        if scheduler.running_tasks:
            wait(scheduler.futures(), timeout=SCHEDULER_POLL_INTERVAL, return_when=FIRST_COMPLETED)
        for index, future in scheduler.pop_completed():
            _record(job, index, future, token)

def _skip_all_tiers(job: TranscodeJob, output_dir: Path, cause: str) -> None:
    source = job.source
    for index, tier in enumerate(job.requested_tiers):
        job.record_rendition(index, failed_rendition(
            tier,
            output_dir / manifest_filename(source.base_name, tier),
            segment_key_prefix(source.owner_id, source.base_name, tier),
            EncodeFailed(tier, f"not attempted: {cause}", module="pipeline"),
        ))

def _attach_locations(job: TranscodeJob, public_base_url: Optional[str]) -> None:
    source = job.source
    for index, rendition in enumerate(job.renditions):
        if rendition.succeeded:
            location = locate(source.owner_id, source.base_name, rendition.tier, public_base_url)
            job.replace_rendition(index, dataclasses.replace(rendition, location=location))

def _overall_status(job: TranscodeJob) -> JobStatus:
    succeeded = len(job.succeeded_tiers)
    if job.error is not None or succeeded == 0:
        return JobStatus.FAILED
    if succeeded == len(job.requested_tiers):
        return JobStatus.SUCCEEDED
    return JobStatus.PARTIALLY_SUCCEEDED

def run_job(
    source: SourceAsset,
    requested_tiers: Iterable,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
    cancel_token: Optional[CancellationToken] = None,
    backend: Optional[MediaBackend] = None,
    output_root: Optional[Union[str, Path]] = None,
    thumbnail_offset: float = THUMBNAIL_OFFSET,
    public_base_url: Optional[str] = None,
    progress_listener: Optional[ProgressListener] = None
) -> TranscodeJob:
    """
    Run a complete transcoding job.

    Args:
        source: Staged upload (path, owner id, base name)
        requested_tiers: Tier labels or QualityTier members, in request order
        concurrency_limit: Maximum number of tier encodes in flight
        cancel_token: Job cancellation / deadline token
        backend: Media backend (default: ffmpeg command line tools)
        output_root: Root holding videos/{owner}/ (default OUTPUT_ROOT)
        thumbnail_offset: Poster frame position in seconds
        public_base_url: Override for the public URL prefix
        progress_listener: Called with (tier, percent) from encoder threads

    Returns:
        The finalized TranscodeJob. Tier and thumbnail failures are recorded
        on it; call raise_for_status() to turn a FAILED job into JobFailed.

    Raises:
        RequestError: If the tiers, identifiers or concurrency limit are invalid
    """
    tiers = parse_tiers(requested_tiers)
    if isinstance(concurrency_limit, bool) or not isinstance(concurrency_limit, int) or concurrency_limit < 1:
        raise RequestError(f"Invalid concurrency limit: {concurrency_limit!r}", module="pipeline")
    backend = backend or FFmpegBackend()
    token = cancel_token or CancellationToken()
    output_dir = owner_directory(output_root if output_root is not None else OUTPUT_ROOT, source.owner_id)
    for tier in tiers:
        locate(source.owner_id, source.base_name, tier, public_base_url)

    job = TranscodeJob(source=source, requested_tiers=tiers)
    job.transition(JobStatus.RUNNING)
    logger.info("Starting job for %s (%s)", source.path, ", ".join(t.label for t in tiers))

    _probe_source(job, backend, token)
    try:
        _prepare_output_dir(output_dir)
    except DirectoryError as e:
        logger.error("Output directory unavailable: %s", e)
        job.error = e
        job.thumbnail = Thumbnail(path=None, offset_seconds=thumbnail_offset, status=StageStatus.SKIPPED)
        _skip_all_tiers(job, output_dir, e.message)
    else:
        _extract_thumbnail(job, backend, output_dir, thumbnail_offset, public_base_url, token)
        _encode_tiers(job, backend, output_dir, concurrency_limit, token, progress_listener)
        _attach_locations(job, public_base_url)

    job.cancelled = token.cancelled
    job.transition(_overall_status(job))
    logger.info("Job finished: %s in %.1fs", job.status.value, job.elapsed)
    return job

def process_request(payload: Dict[str, Any], **kwargs) -> TranscodeJob:
    """
    Run a job from the upload-intake request record.

    payload keys: sourcePath, ownerId, requestedTiers, and optionally
    baseName (default: source file name without extension) and
    concurrencyLimit. Remaining keyword arguments go to run_job().
    """
    try:
        source_path = Path(payload["sourcePath"])
        owner_id = payload["ownerId"]
        requested = payload["requestedTiers"]
    except KeyError as e:
        raise RequestError(f"Missing request field: {e.args[0]}", module="pipeline") from e
    if isinstance(requested, str):
        requested = [label for label in requested.split(",") if label.strip()]
    base_name = payload.get("baseName") or base_name_from_filename(source_path)
    if "concurrencyLimit" in payload:
        kwargs.setdefault("concurrency_limit", payload["concurrencyLimit"])
    source = SourceAsset(path=source_path, owner_id=owner_id, base_name=base_name)
    return run_job(source, requested, **kwargs)
