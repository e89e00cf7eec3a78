from __future__ import annotations

from typing import Optional, Tuple

from .model import Segment

# Timeline scale: how many horizontal pixels one second of media occupies.
PIXELS_PER_SECOND = 80.0

ASPECT_VERTICAL = "vertical"
ASPECT_HORIZONTAL = "horizontal"

_PREVIEW_SIZES = {
    ASPECT_VERTICAL: (270, 480),  # 9:16
    ASPECT_HORIZONTAL: (480, 270),  # 16:9
}


def time_to_pixels(seconds: float, px_per_sec: Optional[float] = None) -> float:
    scale = PIXELS_PER_SECOND if px_per_sec is None else float(px_per_sec)
    return float(seconds) * scale


def pixels_to_time(pixels: float, px_per_sec: Optional[float] = None) -> float:
    scale = PIXELS_PER_SECOND if px_per_sec is None else float(px_per_sec)
    return float(pixels) / scale


def segment_rect(segment: Segment, px_per_sec: Optional[float] = None) -> Tuple[float, float]:
    """(left_px, width_px) of a segment on its track row."""
    return (
        time_to_pixels(segment.timeline_start, px_per_sec),
        time_to_pixels(segment.duration, px_per_sec),
    )


def timeline_width_px(end_sec: float, px_per_sec: Optional[float] = None, min_sec: float = 30.0) -> float:
    """Width of the scrollable timeline strip; keeps some room after the last segment."""
    return time_to_pixels(max(float(min_sec), float(end_sec) + 5.0), px_per_sec)


def preview_size(aspect: str) -> Tuple[int, int]:
    """(width, height) of the preview frame for an aspect option."""
    return _PREVIEW_SIZES.get(str(aspect or "").strip().lower(), _PREVIEW_SIZES[ASPECT_VERTICAL])
