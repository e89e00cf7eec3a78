from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

from .geometry import ASPECT_HORIZONTAL, ASPECT_VERTICAL, PIXELS_PER_SECOND

ENV_AUDIO_PREVIEW = "DUOCUT_AUDIO_PREVIEW"


def _clamped_float(raw: Any, default: float, lo: float, hi: float) -> float:
    try:
        v = float(raw)
    except Exception:
        v = default
    if v != v:  # NaN
        v = default
    return max(lo, min(hi, v))


class ConfigStore:
    """
    Simple JSON config store.

    Default location: ~/.duocut/config.json
    """

    def __init__(self, root_dir: Path) -> None:
        self.root_dir = Path(root_dir)
        self.path = self.root_dir / "config.json"

    @staticmethod
    def default() -> "ConfigStore":
        return ConfigStore(Path.home() / ".duocut")

    def load(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                return data
        except FileNotFoundError:
            return self.default_config()
        except Exception:
            # Corrupted file; don't crash the app.
            return self.default_config()
        return self.default_config()

    def save(self, data: Dict[str, Any]) -> None:
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def default_config(self) -> Dict[str, Any]:
        return {
            "pixels_per_second": PIXELS_PER_SECOND,
            "default_segment_sec": 10.0,
            "progress_interval_ms": 250,
            "preview_aspect": ASPECT_VERTICAL,
            "audio_preview": True,
        }

    def pixels_per_second(self) -> float:
        return _clamped_float(self.load().get("pixels_per_second"), PIXELS_PER_SECOND, 10.0, 400.0)

    def default_segment_sec(self) -> float:
        """Duration given to "add to timeline" while the asset duration is unknown."""
        return _clamped_float(self.load().get("default_segment_sec"), 10.0, 0.1, 3600.0)

    def progress_interval_ms(self) -> int:
        return int(_clamped_float(self.load().get("progress_interval_ms"), 250.0, 30.0, 2000.0))

    def preview_aspect(self) -> str:
        raw = str(self.load().get("preview_aspect") or "").strip().lower()
        return raw if raw in (ASPECT_VERTICAL, ASPECT_HORIZONTAL) else ASPECT_VERTICAL

    def set_preview_aspect(self, aspect: str) -> None:
        a = str(aspect or "").strip().lower()
        if a not in (ASPECT_VERTICAL, ASPECT_HORIZONTAL):
            return
        cfg = self.load()
        cfg["preview_aspect"] = a
        self.save(cfg)

    def audio_preview_enabled(self) -> bool:
        # Desktop builds without the flet-audio extension show "Unknown control: Audio";
        # the env var lets those opt out.
        if os.environ.get(ENV_AUDIO_PREVIEW, "").strip() == "0":
            return False
        return bool(self.load().get("audio_preview", True))
