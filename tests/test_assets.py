import unittest

from core.assets import AssetRegistry


class TestAssetRegistry(unittest.TestCase):
    def test_register_leaves_duration_unset(self):
        reg = AssetRegistry("video")
        a = reg.register("clip.mp4", "/media/clip.mp4")
        self.assertIsNone(a.duration)
        self.assertEqual(a.kind, "video")
        self.assertIs(reg.lookup(a.id), a)
        self.assertEqual(len(reg), 1)

    def test_set_duration_is_idempotent_and_overwrites(self):
        reg = AssetRegistry("audio")
        a = reg.register("song.mp3", "song.mp3")
        self.assertTrue(reg.set_duration(a.id, 30.0))
        self.assertTrue(reg.set_duration(a.id, 30.0))
        self.assertAlmostEqual(reg.lookup(a.id).duration, 30.0)
        self.assertTrue(reg.on_metadata_loaded(a.id, 31.5))
        self.assertAlmostEqual(reg.lookup(a.id).duration, 31.5)

    def test_missing_asset(self):
        reg = AssetRegistry("video")
        self.assertIsNone(reg.lookup("missing"))
        self.assertIsNone(reg.lookup(None))
        self.assertFalse(reg.set_duration("missing", 1.0))

    def test_register_files_uses_basename(self):
        reg = AssetRegistry("video")
        assets = reg.register_files(["/tmp/x/first.mp4", "", "  ", "second.mov"])
        self.assertEqual([a.name for a in assets], ["first.mp4", "second.mov"])
        self.assertEqual(assets[0].media_handle, "/tmp/x/first.mp4")
        self.assertEqual([a.id for a in reg.assets()], [a.id for a in assets])

    def test_register_files_empty(self):
        reg = AssetRegistry("video")
        self.assertEqual(reg.register_files([]), [])
        self.assertEqual(reg.register_files(None), [])
        self.assertEqual(len(reg), 0)

    def test_invalid_kind(self):
        with self.assertRaises(ValueError):
            AssetRegistry("image")


if __name__ == "__main__":
    unittest.main()
