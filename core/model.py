from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional
import uuid


TRACK_VIDEO = "video"
TRACK_AUDIO = "audio"
TRACK_KINDS = (TRACK_VIDEO, TRACK_AUDIO)

# Shortest segment the resize gesture will produce (seconds).
MIN_SEGMENT_SEC = 0.1


def new_id() -> str:
    """Generate a stable unique id for assets and timeline segments."""
    return uuid.uuid4().hex


def normalize_kind(kind: str) -> str:
    k = str(kind or "").strip().lower()
    if k not in TRACK_KINDS:
        raise ValueError(f"unknown track kind: {kind!r}")
    return k


@dataclass(frozen=True)
class Asset:
    """
    Registered source media (video or audio).

    Attributes:
        media_handle: opaque reference handed to the playback engine
            (a file path in the desktop app)
        duration: seconds, unknown (None) until the media metadata is read
    """

    id: str
    name: str
    media_handle: Any
    kind: str = TRACK_VIDEO
    duration: Optional[float] = None

    @property
    def has_duration(self) -> bool:
        return self.duration is not None

    def with_duration(self, seconds: float) -> "Asset":
        return replace(self, duration=max(0.0, float(seconds)))


@dataclass(frozen=True)
class Segment:
    """
    A cut of an asset placed on a track.

    Attributes:
        source_start/duration: range inside the source asset (seconds)
        timeline_start: placement on the shared timeline (seconds)
    """

    id: str
    asset_id: str
    source_start: float
    duration: float
    timeline_start: float

    @property
    def source_end(self) -> float:
        return self.source_start + self.duration

    @property
    def timeline_end(self) -> float:
        return self.timeline_start + self.duration

    def overlaps(self, other: "Segment") -> bool:
        return self.timeline_start < other.timeline_end and other.timeline_start < self.timeline_end

    @staticmethod
    def create(asset_id: str, source_start: float, duration: float, timeline_start: float) -> "Segment":
        return Segment(
            id=new_id(),
            asset_id=str(asset_id),
            source_start=float(source_start),
            duration=float(duration),
            timeline_start=float(timeline_start),
        )
