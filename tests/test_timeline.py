import unittest

from core.model import Segment
from core.timeline import (
    append_segments,
    delete_segment,
    next_segment,
    overlapping_pairs,
    previous_segment,
    sort_by_timeline_start,
    timeline_end,
    update_segment,
)


def seg(id_, timeline_start, duration=1.0, source_start=0.0):
    return Segment(id=id_, asset_id="a", source_start=source_start, duration=duration, timeline_start=timeline_start)


class TestTimeline(unittest.TestCase):
    def test_append_returns_new_tuple(self):
        before = (seg("a", 0),)
        after = append_segments(before, [seg("b", 1)])
        self.assertEqual([s.id for s in before], ["a"])
        self.assertEqual([s.id for s in after], ["a", "b"])

    def test_update_merges_and_coerces(self):
        out, changed = update_segment([seg("a", 0)], "a", {"timeline_start": "2.5", "duration": 4})
        self.assertTrue(changed)
        self.assertAlmostEqual(out[0].timeline_start, 2.5)
        self.assertAlmostEqual(out[0].duration, 4.0)

    def test_update_ignores_unknown_fields_and_ids(self):
        clips = (seg("a", 0),)
        out, changed = update_segment(clips, "a", {"id": "zzz", "color": "red"})
        self.assertFalse(changed)
        self.assertEqual(out, clips)
        out, changed = update_segment(clips, "missing", {"duration": 2})
        self.assertFalse(changed)
        self.assertEqual(out[0].duration, 1.0)

    def test_update_trusts_out_of_range_values(self):
        out, changed = update_segment([seg("a", 0)], "a", {"duration": -3, "timeline_start": -1})
        self.assertTrue(changed)
        self.assertAlmostEqual(out[0].duration, -3.0)
        self.assertAlmostEqual(out[0].timeline_start, -1.0)

    def test_delete(self):
        out, changed = delete_segment([seg("a", 0), seg("b", 1)], "a")
        self.assertTrue(changed)
        self.assertEqual([s.id for s in out], ["b"])
        _out, changed = delete_segment(out, "a")
        self.assertFalse(changed)

    def test_sort_is_stable_on_ties(self):
        clips = [seg("a", 5), seg("b", 0), seg("c", 5), seg("d", 2)]
        self.assertEqual([s.id for s in sort_by_timeline_start(clips)], ["b", "d", "a", "c"])

    def test_sort_independent_of_insertion_order_for_distinct_starts(self):
        a, b, c = seg("a", 3), seg("b", 1), seg("c", 2)
        self.assertEqual(sort_by_timeline_start([a, b, c]), sort_by_timeline_start([c, a, b]))

    def test_next_and_previous(self):
        clips = [seg("a", 5), seg("b", 0), seg("c", 2)]
        self.assertEqual(next_segment(clips, "b").id, "c")
        self.assertEqual(next_segment(clips, "c").id, "a")
        self.assertIsNone(next_segment(clips, "a"))
        self.assertIsNone(next_segment(clips, "missing"))
        self.assertEqual(previous_segment(clips, "a").id, "c")
        self.assertIsNone(previous_segment(clips, "b"))

    def test_timeline_end(self):
        self.assertEqual(timeline_end([]), 0.0)
        self.assertAlmostEqual(timeline_end([seg("a", 0, 3), seg("b", 5, 2), seg("c", 1, 1)]), 7.0)

    def test_overlapping_pairs(self):
        clips = [seg("a", 0, 3), seg("b", 2, 2), seg("c", 5, 1)]
        self.assertEqual(overlapping_pairs(clips), (("a", "b"),))


if __name__ == "__main__":
    unittest.main()
