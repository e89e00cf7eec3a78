from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from .assets import AssetRegistry
from .autocut import AutoCutAdapter, HighlightSource
from .geometry import PIXELS_PER_SECOND
from .gestures import DragController, ResizeController
from .model import TRACK_AUDIO, TRACK_VIDEO, Asset, Segment, normalize_kind
from .playback import MediaEngine, PlaybackScheduler, RunTask
from .segments import SegmentStore


class EditorSession:
    """
    Everything the editing surface works on: per-track assets, segments and
    schedulers, plus the gesture controllers shared by both tracks.
    """

    def __init__(
        self,
        px_per_sec: float = PIXELS_PER_SECOND,
        default_segment_sec: float = 10.0,
        highlight_source: Optional[HighlightSource] = None,
    ) -> None:
        self.px_per_sec = float(px_per_sec)
        self.default_segment_sec = float(default_segment_sec)
        self.registries: Dict[str, AssetRegistry] = {
            TRACK_VIDEO: AssetRegistry(TRACK_VIDEO),
            TRACK_AUDIO: AssetRegistry(TRACK_AUDIO),
        }
        self.stores: Dict[str, SegmentStore] = {
            TRACK_VIDEO: SegmentStore(TRACK_VIDEO),
            TRACK_AUDIO: SegmentStore(TRACK_AUDIO),
        }
        both = [self.stores[TRACK_VIDEO], self.stores[TRACK_AUDIO]]
        self.drag = DragController(both, px_per_sec=self.px_per_sec)
        self.resize = ResizeController(both, self.lookup_asset, px_per_sec=self.px_per_sec)
        # AutoCut works on the video track only.
        self.autocut = AutoCutAdapter(self.stores[TRACK_VIDEO], self.registries[TRACK_VIDEO], highlight_source)
        self.schedulers: Dict[str, PlaybackScheduler] = {}

    def track(self, kind: str) -> SegmentStore:
        return self.stores[normalize_kind(kind)]

    def registry(self, kind: str) -> AssetRegistry:
        return self.registries[normalize_kind(kind)]

    def lookup_asset(self, kind: str, asset_id: str) -> Optional[Asset]:
        return self.registry(kind).lookup(asset_id)

    def attach_engine(
        self,
        kind: str,
        engine: MediaEngine,
        run_task: Optional[RunTask] = None,
        on_state_change: Optional[Callable[[str], None]] = None,
    ) -> PlaybackScheduler:
        """Create (or replace) the playback scheduler of a track."""
        k = normalize_kind(kind)
        old = self.schedulers.pop(k, None)
        if old is not None:
            old.stop()
            old.close()
        scheduler = PlaybackScheduler(
            self.stores[k],
            self.registries[k],
            engine,
            run_task=run_task,
            on_state_change=on_state_change,
        )
        self.schedulers[k] = scheduler
        return scheduler

    def scheduler(self, kind: str) -> Optional[PlaybackScheduler]:
        return self.schedulers.get(normalize_kind(kind))

    def add_to_timeline(self, kind: str, asset_id: str) -> Optional[Segment]:
        asset = self.lookup_asset(kind, asset_id)
        if asset is None:
            return None
        return self.track(kind).add_asset(asset, default_duration=self.default_segment_sec)

    def edit_segment(self, kind: str, segment_id: str, **fields: Any) -> bool:
        """Manual numeric edit from the inspector; values are taken as typed."""
        return self.track(kind).update(segment_id, **fields)

    def delete_segment(self, kind: str, segment_id: str) -> bool:
        return self.track(kind).delete(segment_id)

    def owner_of(self, segment_id: str) -> Optional[str]:
        for kind, store in self.stores.items():
            if segment_id in store:
                return kind
        return None

    def select_adjacent(self, segment_id: Optional[str], forward: bool = True) -> Optional[Segment]:
        """Select the neighbour of a segment in timeline order on its own track."""
        kind = self.owner_of(segment_id) if segment_id else None
        if kind is None:
            return None
        store = self.stores[kind]
        seg = store.next(segment_id) if forward else store.previous(segment_id)
        if seg is not None:
            store.select(seg.id)
        return seg

    def timeline_end(self) -> float:
        return max(store.timeline_end() for store in self.stores.values())
