import unittest

from core.geometry import (
    PIXELS_PER_SECOND,
    pixels_to_time,
    preview_size,
    segment_rect,
    time_to_pixels,
    timeline_width_px,
)
from core.model import Segment


class TestGeometry(unittest.TestCase):
    def test_default_scale(self):
        self.assertEqual(PIXELS_PER_SECOND, 80)
        self.assertAlmostEqual(time_to_pixels(2.5), 200.0)
        self.assertAlmostEqual(pixels_to_time(40), 0.5)
        self.assertAlmostEqual(pixels_to_time(-80), -1.0)

    def test_explicit_scale(self):
        self.assertAlmostEqual(time_to_pixels(2, px_per_sec=50), 100.0)
        self.assertAlmostEqual(pixels_to_time(100, px_per_sec=50), 2.0)

    def test_conversions_are_inverse(self):
        for sec in (0.0, 0.1, 3.75, 120.0):
            self.assertAlmostEqual(pixels_to_time(time_to_pixels(sec)), sec)

    def test_segment_rect(self):
        s = Segment(id="s", asset_id="a", source_start=4.0, duration=1.5, timeline_start=2.0)
        self.assertEqual(segment_rect(s), (160.0, 120.0))

    def test_timeline_width_has_minimum(self):
        self.assertAlmostEqual(timeline_width_px(0.0), 30 * 80)
        self.assertAlmostEqual(timeline_width_px(100.0), 105 * 80)

    def test_preview_size(self):
        self.assertEqual(preview_size("vertical"), (270, 480))
        self.assertEqual(preview_size("horizontal"), (480, 270))
        self.assertEqual(preview_size("weird"), (270, 480))


if __name__ == "__main__":
    unittest.main()
