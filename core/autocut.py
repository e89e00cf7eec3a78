from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from .assets import AssetRegistry
from .model import Asset, Segment
from .segments import SegmentSpec, SegmentStore

log = logging.getLogger("duocut.autocut")

MSG_NO_ASSETS = "Upload at least one video before using AutoCut"


@dataclass(frozen=True)
class HighlightRange:
    """A highlight inside a source asset, in seconds."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    @staticmethod
    def coerce(value) -> "HighlightRange":
        if isinstance(value, HighlightRange):
            return value
        if isinstance(value, dict):
            return HighlightRange(start=float(value["start"]), end=float(value["end"]))
        start, end = value
        return HighlightRange(start=float(start), end=float(end))


class HighlightSource(Protocol):
    """Highlight-detection backend: ordered highlight ranges for one asset."""

    def highlights_for(self, asset: Asset) -> List[HighlightRange]: ...


# Fixed answer used until the detection service is wired in.
STUB_HIGHLIGHTS: Tuple[Tuple[float, float], ...] = ((2.0, 4.0), (6.0, 7.0), (9.0, 10.0))


class StubHighlightSource:
    def __init__(self, ranges: Iterable = STUB_HIGHLIGHTS) -> None:
        self.ranges = [HighlightRange.coerce(r) for r in ranges]

    def highlights_for(self, asset: Asset) -> List[HighlightRange]:
        return list(self.ranges)


def highlight_specs(asset_id: str, ranges: Iterable) -> List[SegmentSpec]:
    """
    Segment specs for highlight ranges.

    Every segment starts at timeline 0; repositioning is left to the user.
    Empty or inverted ranges are skipped.
    """
    out: List[SegmentSpec] = []
    for raw in ranges or []:
        r = HighlightRange.coerce(raw)
        if r.end <= r.start:
            log.warning("skipping highlight with end <= start: %s", r)
            continue
        out.append((asset_id, r.start, r.duration, 0.0))
    return out


class AutoCutAdapter:
    """Turns highlight ranges into segments on one track."""

    def __init__(
        self,
        store: SegmentStore,
        registry: AssetRegistry,
        source: Optional[HighlightSource] = None,
    ) -> None:
        self.store = store
        self.registry = registry
        self.source: HighlightSource = source or StubHighlightSource()

    def apply_highlights(self, asset_id: str, ranges: Optional[Sequence] = None) -> Tuple[List[Segment], str]:
        """
        Create one segment per highlight of a single asset.

        `ranges` defaults to the highlight source's answer for the asset.

        Returns:
            (created_segments, message)
        """
        asset = self.registry.lookup(asset_id)
        if asset is None:
            log.debug("AutoCut: unknown asset %s", asset_id)
            return [], ""
        if ranges is None:
            ranges = self.source.highlights_for(asset)
        created = self.store.add_many(highlight_specs(asset.id, ranges))
        if not created:
            return [], ""
        return created, f"AutoCut: {len(created)} segment(s) from {asset.name}"

    def apply_all(self, ranges: Optional[Sequence] = None) -> Tuple[List[Segment], str]:
        """AutoCut every registered asset with one append and one selection update."""
        assets = self.registry.assets()
        if not assets:
            return [], MSG_NO_ASSETS

        specs: List[SegmentSpec] = []
        for asset in assets:
            asset_ranges = ranges if ranges is not None else self.source.highlights_for(asset)
            specs.extend(highlight_specs(asset.id, asset_ranges))

        created = self.store.add_many(specs)
        if not created:
            return [], ""
        return created, f"AutoCut: {len(created)} segment(s) from {len(assets)} video(s)"
