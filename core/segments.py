from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .model import Asset, Segment, normalize_kind
from .timeline import (
    append_segments,
    delete_segment,
    find_segment,
    next_segment,
    previous_segment,
    sort_by_timeline_start,
    timeline_end,
    update_segment,
)

log = logging.getLogger("duocut")

EVENT_ADD = "add"
EVENT_UPDATE = "update"
EVENT_DELETE = "delete"
EVENT_SELECT = "select"

# (asset_id, source_start, duration, timeline_start) for bulk inserts
SegmentSpec = Tuple[str, float, float, float]
Listener = Callable[["SegmentStore", str], None]


class SegmentStore:
    """
    Ordered segments of one track plus the track's selection.

    The collection is an immutable tuple replaced on every mutation, so a
    reader holding `segments` never sees a half-applied change. Listeners
    run synchronously after each replacement.
    """

    def __init__(self, kind: str) -> None:
        self.kind = normalize_kind(kind)
        self._segments: Tuple[Segment, ...] = ()
        self._selected_id: Optional[str] = None
        self._listeners: List[Listener] = []

    # ---------- reads ----------

    @property
    def segments(self) -> Tuple[Segment, ...]:
        """Snapshot in insertion order."""
        return self._segments

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected(self) -> Optional[Segment]:
        return find_segment(self._segments, self._selected_id)

    def __len__(self) -> int:
        return len(self._segments)

    def __contains__(self, segment_id: object) -> bool:
        return any(s.id == segment_id for s in self._segments)

    def get(self, segment_id: Optional[str]) -> Optional[Segment]:
        return find_segment(self._segments, segment_id)

    def list_ordered(self) -> Tuple[Segment, ...]:
        return sort_by_timeline_start(self._segments)

    def next(self, after_id: Optional[str]) -> Optional[Segment]:
        return next_segment(self._segments, after_id)

    def previous(self, before_id: Optional[str]) -> Optional[Segment]:
        return previous_segment(self._segments, before_id)

    def timeline_end(self) -> float:
        return timeline_end(self._segments)

    # ---------- subscriptions ----------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(self, event)

    # ---------- mutations ----------

    def add(self, asset_id: str, source_start: float, duration: float, timeline_start: float) -> Segment:
        seg = Segment.create(asset_id, source_start, duration, timeline_start)
        self._segments = append_segments(self._segments, [seg])
        self._selected_id = seg.id
        self._notify(EVENT_ADD)
        return seg

    def add_many(self, specs: Iterable[SegmentSpec]) -> List[Segment]:
        """
        Append several segments with a single replacement and notification.

        The first created segment becomes the selection. Empty input changes nothing.
        """
        new = [Segment.create(*spec) for spec in specs]
        if not new:
            return []
        self._segments = append_segments(self._segments, new)
        self._selected_id = new[0].id
        self._notify(EVENT_ADD)
        return new

    def add_asset(self, asset: Asset, default_duration: float = 10.0) -> Segment:
        """Place the whole asset at the timeline origin ("add to timeline")."""
        duration = asset.duration if asset.duration is not None else float(default_duration)
        return self.add(asset.id, 0.0, duration, 0.0)

    def update(self, segment_id: str, **fields: Any) -> bool:
        out, changed = update_segment(self._segments, segment_id, fields)
        if not changed:
            log.debug("update: no segment %s on %s track", segment_id, self.kind)
            return False
        self._segments = out
        self._notify(EVENT_UPDATE)
        return True

    def delete(self, segment_id: str) -> bool:
        out, changed = delete_segment(self._segments, segment_id)
        if not changed:
            log.debug("delete: no segment %s on %s track", segment_id, self.kind)
            return False
        self._segments = out
        if self._selected_id == segment_id:
            self._selected_id = None
        self._notify(EVENT_DELETE)
        return True

    def select(self, segment_id: Optional[str]) -> bool:
        if segment_id is not None and segment_id not in self:
            log.debug("select: no segment %s on %s track", segment_id, self.kind)
            return False
        if segment_id == self._selected_id:
            return True
        self._selected_id = segment_id
        self._notify(EVENT_SELECT)
        return True
