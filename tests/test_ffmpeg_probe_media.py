import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from core.ffmpeg import FFmpegNotFound, probe_media, resolve_ffprobe


class TestProbeMedia(unittest.TestCase):
    @patch("core.ffmpeg.subprocess.run")
    def test_probe_media_duration_and_streams(self, run: Mock):
        run.return_value = Mock(
            stdout=json.dumps(
                {
                    "format": {"duration": "12.34"},
                    "streams": [{"codec_type": "video"}, {"codec_type": "audio"}],
                }
            )
        )

        info = probe_media("ffprobe", "x.mp4")
        self.assertAlmostEqual(info.duration, 12.34)
        self.assertTrue(info.has_video)
        self.assertTrue(info.has_audio)
        self.assertEqual(run.call_args[0][0][-1], "x.mp4")

    @patch("core.ffmpeg.subprocess.run")
    def test_probe_media_audio_only(self, run: Mock):
        run.return_value = Mock(stdout=json.dumps({"format": {}, "streams": [{"codec_type": "audio"}]}))
        info = probe_media("ffprobe", "song.mp3")
        self.assertAlmostEqual(info.duration, 0.0)
        self.assertFalse(info.has_video)
        self.assertTrue(info.has_audio)

    @patch("core.ffmpeg.shutil.which", return_value=None)
    def test_resolve_ffprobe_missing(self, _which: Mock):
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(FFmpegNotFound):
                resolve_ffprobe(Path(td))

    @patch("core.ffmpeg.shutil.which", return_value="/usr/bin/ffprobe")
    def test_resolve_ffprobe_from_path(self, _which: Mock):
        with tempfile.TemporaryDirectory() as td:
            self.assertEqual(resolve_ffprobe(Path(td)), "/usr/bin/ffprobe")


if __name__ == "__main__":
    unittest.main()
