from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .model import Asset, new_id, normalize_kind

log = logging.getLogger("duocut.ingest")


class AssetRegistry:
    """
    Registered media for one track kind.

    Assets are never removed; only their duration changes, once the media
    metadata arrives.
    """

    def __init__(self, kind: str) -> None:
        self.kind = normalize_kind(kind)
        self._assets: Dict[str, Asset] = {}

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self._assets

    def register(self, name: str, media_handle: Any) -> Asset:
        asset = Asset(id=new_id(), name=str(name), media_handle=media_handle, kind=self.kind)
        self._assets[asset.id] = asset
        return asset

    def register_files(self, paths: Iterable[str]) -> List[Asset]:
        """Register one asset per picked file, named after its basename."""
        out: List[Asset] = []
        for p in paths or []:
            raw = str(p or "").strip()
            if not raw:
                continue
            out.append(self.register(Path(raw).name, raw))
        return out

    def set_duration(self, asset_id: str, seconds: float) -> bool:
        asset = self._assets.get(asset_id)
        if asset is None:
            log.debug("set_duration: unknown asset %s", asset_id)
            return False
        self._assets[asset_id] = asset.with_duration(seconds)
        return True

    # Notification name used by the UI when a media element reports metadata.
    on_metadata_loaded = set_duration

    def lookup(self, asset_id: Optional[str]) -> Optional[Asset]:
        if asset_id is None:
            return None
        return self._assets.get(asset_id)

    def assets(self) -> List[Asset]:
        return list(self._assets.values())
