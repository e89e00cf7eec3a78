from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from .geometry import pixels_to_time
from .model import MIN_SEGMENT_SEC, Asset, Segment
from .segments import SegmentStore

EDGE_START = "start"
EDGE_END = "end"
_EDGE_ALIASES = {"start": EDGE_START, "left": EDGE_START, "end": EDGE_END, "right": EDGE_END}

AssetLookup = Callable[[str, str], Optional[Asset]]


def normalize_edge(edge: str) -> str:
    e = _EDGE_ALIASES.get(str(edge or "").strip().lower())
    if e is None:
        raise ValueError(f"unknown resize edge: {edge!r}")
    return e


def _find_owner(stores: Sequence[SegmentStore], segment_id: str) -> Optional[Tuple[SegmentStore, Segment]]:
    for store in stores:
        seg = store.get(segment_id)
        if seg is not None:
            return store, seg
    return None


def resize_values(
    edge: str,
    delta_sec: float,
    initial_source_start: float,
    initial_duration: float,
    asset_duration: Optional[float],
) -> Tuple[float, float]:
    """
    New (source_start, duration) for an edge dragged by `delta_sec`.

    Moving the start edge keeps the source end point fixed until the in-point
    hits 0. The duration is clamped to [MIN_SEGMENT_SEC, asset_duration - source_start].
    """
    if normalize_edge(edge) == EDGE_START:
        source_start = max(0.0, initial_source_start + delta_sec)
        if asset_duration is not None:
            # Leave room for the shortest segment inside the asset.
            source_start = min(source_start, max(0.0, float(asset_duration) - MIN_SEGMENT_SEC))
        duration = initial_duration - delta_sec
    else:
        source_start = initial_source_start
        duration = initial_duration + delta_sec

    if asset_duration is not None:
        duration = min(duration, float(asset_duration) - source_start)
    return source_start, max(MIN_SEGMENT_SEC, duration)


@dataclass(frozen=True)
class Dragging:
    segment_id: str
    initial_pointer_x: float
    initial_timeline_start: float


@dataclass(frozen=True)
class Resizing:
    segment_id: str
    edge: str
    initial_pointer_x: float
    initial_source_start: float
    initial_duration: float


class DragController:
    """
    Moves a segment along the timeline: Idle -> Dragging -> Idle.

    Spans every track store; segment ids are unique across tracks so only
    the owning store is touched.
    """

    def __init__(self, stores: Sequence[SegmentStore], px_per_sec: Optional[float] = None) -> None:
        self.stores = list(stores)
        self.px_per_sec = px_per_sec
        self._state: Optional[Dragging] = None

    @property
    def state(self) -> Optional[Dragging]:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is not None

    def start(self, segment_id: str, pointer_x: float) -> bool:
        owner = _find_owner(self.stores, segment_id)
        if owner is None:
            self._state = None
            return False
        _store, seg = owner
        self._state = Dragging(
            segment_id=seg.id,
            initial_pointer_x=float(pointer_x),
            initial_timeline_start=seg.timeline_start,
        )
        return True

    def move(self, pointer_x: float) -> bool:
        st = self._state
        if st is None:
            return False
        delta = pixels_to_time(float(pointer_x) - st.initial_pointer_x, self.px_per_sec)
        timeline_start = max(0.0, st.initial_timeline_start + delta)
        changed = False
        for store in self.stores:
            if st.segment_id in store:
                changed = store.update(st.segment_id, timeline_start=timeline_start) or changed
        return changed

    def end(self) -> None:
        self._state = None


class ResizeController:
    """
    Trims a segment's in/out point by dragging an edge: Idle -> Resizing -> Idle.

    `asset_lookup(kind, asset_id)` resolves the asset so the clamp can use its
    known duration; an unknown asset or duration leaves the upper bound open.
    timeline_start is never changed here.
    """

    def __init__(
        self,
        stores: Sequence[SegmentStore],
        asset_lookup: AssetLookup,
        px_per_sec: Optional[float] = None,
    ) -> None:
        self.stores = list(stores)
        self.asset_lookup = asset_lookup
        self.px_per_sec = px_per_sec
        self._state: Optional[Resizing] = None

    @property
    def state(self) -> Optional[Resizing]:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is not None

    def start(self, segment_id: str, edge: str, pointer_x: float) -> bool:
        owner = _find_owner(self.stores, segment_id)
        if owner is None:
            self._state = None
            return False
        _store, seg = owner
        self._state = Resizing(
            segment_id=seg.id,
            edge=normalize_edge(edge),
            initial_pointer_x=float(pointer_x),
            initial_source_start=seg.source_start,
            initial_duration=seg.duration,
        )
        return True

    def move(self, pointer_x: float) -> bool:
        st = self._state
        if st is None:
            return False
        owner = _find_owner(self.stores, st.segment_id)
        if owner is None:
            return False
        store, seg = owner
        asset = self.asset_lookup(store.kind, seg.asset_id)
        source_start, duration = resize_values(
            st.edge,
            pixels_to_time(float(pointer_x) - st.initial_pointer_x, self.px_per_sec),
            st.initial_source_start,
            st.initial_duration,
            asset.duration if asset is not None else None,
        )
        return store.update(st.segment_id, source_start=source_start, duration=duration)

    def end(self) -> None:
        self._state = None
