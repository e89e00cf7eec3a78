from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Sequence, Tuple

from .model import Segment

# Fields a manual edit may touch; anything else in the patch is ignored.
EDITABLE_FIELDS = ("asset_id", "source_start", "duration", "timeline_start")


def append_segments(segments: Sequence[Segment], new: Sequence[Segment]) -> Tuple[Segment, ...]:
    """Append segments at the end of the insertion order."""
    return (*segments, *new)


def find_segment(segments: Sequence[Segment], segment_id: Optional[str]) -> Optional[Segment]:
    if segment_id is None:
        return None
    for s in segments:
        if s.id == segment_id:
            return s
    return None


def update_segment(
    segments: Sequence[Segment],
    segment_id: str,
    patch: Dict[str, Any],
) -> Tuple[Tuple[Segment, ...], bool]:
    """
    Merge `patch` into one segment.

    Values are trusted as given (no clamping); numeric fields are coerced to float.

    Returns:
        (new_segments, changed)
    """
    fields: Dict[str, Any] = {}
    for k, v in (patch or {}).items():
        if k not in EDITABLE_FIELDS:
            continue
        fields[k] = str(v) if k == "asset_id" else float(v)
    if not fields:
        return tuple(segments), False

    out = []
    changed = False
    for s in segments:
        if s.id == segment_id:
            s = replace(s, **fields)
            changed = True
        out.append(s)
    if not changed:
        return tuple(segments), False
    return tuple(out), True


def delete_segment(segments: Sequence[Segment], segment_id: str) -> Tuple[Tuple[Segment, ...], bool]:
    out = tuple(s for s in segments if s.id != segment_id)
    return out, len(out) != len(segments)


def sort_by_timeline_start(segments: Sequence[Segment]) -> Tuple[Segment, ...]:
    """Ascending by timeline_start; ties keep insertion order (sorted() is stable)."""
    return tuple(sorted(segments, key=lambda s: s.timeline_start))


def next_segment(segments: Sequence[Segment], after_id: Optional[str]) -> Optional[Segment]:
    """Segment right after `after_id` in timeline order, or None if last/not found."""
    ordered = sort_by_timeline_start(segments)
    for i, s in enumerate(ordered):
        if s.id == after_id:
            return ordered[i + 1] if i + 1 < len(ordered) else None
    return None


def previous_segment(segments: Sequence[Segment], before_id: Optional[str]) -> Optional[Segment]:
    ordered = sort_by_timeline_start(segments)
    for i, s in enumerate(ordered):
        if s.id == before_id:
            return ordered[i - 1] if i > 0 else None
    return None


def timeline_end(segments: Sequence[Segment]) -> float:
    """Second where the last segment of the track ends (0 for an empty track)."""
    end = 0.0
    for s in segments:
        end = max(end, s.timeline_end)
    return end


def overlapping_pairs(segments: Sequence[Segment]) -> Tuple[Tuple[str, str], ...]:
    """
    Id pairs whose timeline ranges overlap.

    Overlap is allowed on a track; this is informational only (e.g. for UI hints).
    """
    ordered = sort_by_timeline_start(segments)
    pairs = []
    for i, a in enumerate(ordered):
        for b in ordered[i + 1 :]:
            if b.timeline_start >= a.timeline_end:
                break
            pairs.append((a.id, b.id))
    return tuple(pairs)
