import unittest

from core.assets import AssetRegistry
from core.autocut import MSG_NO_ASSETS, AutoCutAdapter, HighlightRange, StubHighlightSource, highlight_specs
from core.segments import EVENT_ADD, SegmentStore


class TestAutoCut(unittest.TestCase):
    def setUp(self):
        self.registry = AssetRegistry("video")
        self.store = SegmentStore("video")
        self.adapter = AutoCutAdapter(self.store, self.registry)
        self.events = []
        self.store.subscribe(lambda store, event: self.events.append(event))

    def test_highlights_become_segments_at_origin(self):
        asset = self.registry.register("raw.mp4", "raw.mp4")
        self.registry.set_duration(asset.id, 12.0)
        created, msg = self.adapter.apply_highlights(asset.id, [(2, 4), (6, 7), (9, 10)])
        self.assertEqual(len(created), 3)
        self.assertEqual(
            [(s.source_start, s.duration) for s in self.store.segments],
            [(2.0, 2.0), (6.0, 1.0), (9.0, 1.0)],
        )
        self.assertTrue(all(s.timeline_start == 0.0 for s in self.store.segments))
        self.assertTrue(all(s.asset_id == asset.id for s in self.store.segments))
        self.assertEqual(self.store.selected.source_start, 2.0)
        self.assertIn("3 segment", msg)

    def test_default_ranges_come_from_stub(self):
        asset = self.registry.register("raw.mp4", "raw.mp4")
        created, _msg = self.adapter.apply_highlights(asset.id)
        self.assertEqual([(s.source_start, s.duration) for s in created], [(2.0, 2.0), (6.0, 1.0), (9.0, 1.0)])

    def test_empty_ranges_change_nothing(self):
        asset = self.registry.register("raw.mp4", "raw.mp4")
        existing = self.store.add(asset.id, 0, 5, 0)
        self.events.clear()
        created, msg = self.adapter.apply_highlights(asset.id, [])
        self.assertEqual(created, [])
        self.assertEqual(msg, "")
        self.assertEqual(len(self.store), 1)
        self.assertEqual(self.store.selected_id, existing.id)
        self.assertEqual(self.events, [])

    def test_unknown_asset_is_noop(self):
        created, _msg = self.adapter.apply_highlights("missing", [(1, 2)])
        self.assertEqual(created, [])
        self.assertEqual(len(self.store), 0)

    def test_inverted_ranges_are_skipped(self):
        asset = self.registry.register("raw.mp4", "raw.mp4")
        with self.assertLogs("duocut.autocut", level="WARNING"):
            created, _msg = self.adapter.apply_highlights(asset.id, [(5, 5), (3, 4), (8, 2)])
        self.assertEqual([(s.source_start, s.duration) for s in created], [(3.0, 1.0)])

    def test_apply_all_without_assets_reports_notice(self):
        created, msg = self.adapter.apply_all()
        self.assertEqual(created, [])
        self.assertEqual(msg, MSG_NO_ASSETS)

    def test_apply_all_single_append_and_selection(self):
        a = self.registry.register("a.mp4", "a.mp4")
        b = self.registry.register("b.mp4", "b.mp4")
        created, msg = self.adapter.apply_all()
        self.assertEqual(len(created), 6)
        self.assertEqual([s.asset_id for s in created], [a.id] * 3 + [b.id] * 3)
        self.assertEqual(self.store.selected_id, created[0].id)
        self.assertEqual(self.events, [EVENT_ADD])
        self.assertIn("2 video", msg)

    def test_custom_source(self):
        class OneRange:
            def highlights_for(self, asset):
                return [HighlightRange(0.5, 1.5)]

        adapter = AutoCutAdapter(self.store, self.registry, OneRange())
        asset = self.registry.register("a.mp4", "a.mp4")
        created, _msg = adapter.apply_highlights(asset.id)
        self.assertEqual([(s.source_start, s.duration) for s in created], [(0.5, 1.0)])


class TestHighlightHelpers(unittest.TestCase):
    def test_coerce(self):
        self.assertEqual(HighlightRange.coerce({"start": 1, "end": 2}), HighlightRange(1.0, 2.0))
        self.assertEqual(HighlightRange.coerce((3, 4)), HighlightRange(3.0, 4.0))

    def test_specs(self):
        self.assertEqual(highlight_specs("x", [(2, 4)]), [("x", 2.0, 2.0, 0.0)])

    def test_stub_is_fixed(self):
        ranges = StubHighlightSource().highlights_for(None)
        self.assertEqual([(r.start, r.end) for r in ranges], [(2.0, 4.0), (6.0, 7.0), (9.0, 10.0)])


if __name__ == "__main__":
    unittest.main()
