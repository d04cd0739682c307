"""Output naming and location

Responsibilities:
- Map (owner, base name, tier) to the public manifest URL and storage key
- Own the on-disk names of manifests, segments and thumbnails
- Reject identifiers that would break the per-owner layout

Every function here is pure: identical inputs always give identical
outputs, which is what makes re-running a partially failed job safe.
The layout is shared with the storage sync and the player; changing it
needs a migration.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from .config import (
    PUBLIC_BASE_URL, VIDEOS_PREFIX, MANIFEST_EXT, SEGMENT_EXT,
    SEGMENT_INDEX_DIGITS, THUMBNAIL_PREFIX, THUMBNAIL_EXT
)
from .exceptions import RequestError
from .tiers import QualityTier

@dataclass(frozen=True)
class OutputLocation:
    """Public identifiers of one produced artifact."""
    public_url: str
    storage_key: str

def _check_identifier(value: str, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise RequestError(f"{what} must be a non-empty string", module="locator")
    if "/" in value or "\\" in value or value in (".", "..") or "\x00" in value:
        raise RequestError(f"{what} '{value}' must not contain path separators", module="locator")
    return value

def _key(owner_id: str, filename: str) -> str:
    return str(PurePosixPath(VIDEOS_PREFIX, owner_id, filename))

def _url(key: str, public_base_url: Optional[str]) -> str:
    base = PUBLIC_BASE_URL if public_base_url is None else public_base_url.rstrip("/")
    return f"{base}/{key}"

def manifest_filename(base_name: str, tier: QualityTier) -> str:
    """'{base}-{label}.m3u8'"""
    _check_identifier(base_name, "Base name")
    return f"{base_name}-{tier.label}{MANIFEST_EXT}"

def segment_stem(base_name: str, tier: QualityTier) -> str:
    """Common prefix of every segment file name of a rendition."""
    _check_identifier(base_name, "Base name")
    return f"{base_name}-{tier.label}_"

def segment_filename(base_name: str, tier: QualityTier, index: int) -> str:
    """'{base}-{label}_{NNN}.ts'"""
    return f"{segment_stem(base_name, tier)}{index:0{SEGMENT_INDEX_DIGITS}d}{SEGMENT_EXT}"

def segment_filename_pattern(base_name: str, tier: QualityTier) -> str:
    """printf-style pattern handed to the HLS muxer."""
    return f"{segment_stem(base_name, tier)}%0{SEGMENT_INDEX_DIGITS}d{SEGMENT_EXT}"

def segment_key_prefix(owner_id: str, base_name: str, tier: QualityTier) -> str:
    """Storage key prefix shared by all segments of a rendition."""
    _check_identifier(owner_id, "Owner id")
    return _key(owner_id, segment_stem(base_name, tier))

def thumbnail_filename(base_name: str) -> str:
    _check_identifier(base_name, "Base name")
    return f"{THUMBNAIL_PREFIX}{base_name}{THUMBNAIL_EXT}"

def owner_directory(output_root: Union[str, Path], owner_id: str) -> Path:
    """Local directory holding every artifact of one owner."""
    _check_identifier(owner_id, "Owner id")
    return Path(output_root) / VIDEOS_PREFIX / owner_id

def locate(
    owner_id: str,
    base_name: str,
    tier: QualityTier,
    public_base_url: Optional[str] = None
) -> OutputLocation:
    """
    Derive the public identifiers of a rendition manifest.

    Args:
        owner_id: Uploading user / owner identifier
        base_name: Source base name shared by all tiers of a job
        tier: Quality tier
        public_base_url: Override for the configured URL prefix

    Returns:
        OutputLocation with
        url '{prefix}/videos/{owner}/{base}-{label}.m3u8' and
        key 'videos/{owner}/{base}-{label}.m3u8'
    """
    _check_identifier(owner_id, "Owner id")
    key = _key(owner_id, manifest_filename(base_name, tier))
    return OutputLocation(public_url=_url(key, public_base_url), storage_key=key)

def thumbnail_location(
    owner_id: str,
    base_name: str,
    public_base_url: Optional[str] = None
) -> OutputLocation:
    """Public identifiers of the poster thumbnail."""
    _check_identifier(owner_id, "Owner id")
    key = _key(owner_id, thumbnail_filename(base_name))
    return OutputLocation(public_url=_url(key, public_base_url), storage_key=key)

def base_name_from_filename(filename: Union[str, Path]) -> str:
    """Strip directories and the last extension: 'a/clip.v2.mp4' -> 'clip.v2'."""
    name = Path(filename).name
    stem = Path(name).stem if "." in name.lstrip(".") else name
    return _check_identifier(stem, "Base name")
