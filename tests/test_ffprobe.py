"""Tests for ffprobe duration detection"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import ffmpeg

from vodpack.exceptions import ProbeDegraded
from vodpack.ffprobe import MetadataError, ffprobe_query, get_duration, probe_duration

class TestDurationProbe(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.source = Path(self.tmp.name) / "clip.mp4"
        self.source.write_bytes(b"\x00" * 16)

    def tearDown(self):
        self.tmp.cleanup()

    @patch("vodpack.ffprobe.exec.ffmpeg.probe")
    def test_rounds_down(self, mock_probe):
        mock_probe.return_value = {"format": {"duration": "125.97"}, "streams": []}
        result = probe_duration(self.source)
        self.assertEqual(result.duration_seconds, 125)
        self.assertIsNone(result.degraded)

    @patch("vodpack.ffprobe.exec.ffmpeg.probe")
    def test_falls_back_to_video_stream(self, mock_probe):
        mock_probe.return_value = {
            "format": {"duration": "N/A"},
            "streams": [
                {"codec_type": "audio", "duration": "99.0"},
                {"codec_type": "video", "duration": "12.7"},
            ],
        }
        self.assertAlmostEqual(get_duration(self.source), 12.7)
        self.assertEqual(probe_duration(self.source).duration_seconds, 12)

    @patch("vodpack.ffprobe.exec.ffmpeg.probe")
    def test_degrades_on_ffprobe_error(self, mock_probe):
        mock_probe.side_effect = ffmpeg.Error("ffprobe", b"", b"moov atom not found")
        result = probe_duration(self.source)
        self.assertEqual(result.duration_seconds, 0)
        self.assertIsInstance(result.degraded, ProbeDegraded)
        self.assertIn("moov atom not found", str(result.degraded))

    @patch("vodpack.ffprobe.exec.ffmpeg.probe")
    def test_degrades_without_duration(self, mock_probe):
        mock_probe.return_value = {"format": {}, "streams": [{"codec_type": "video"}]}
        result = probe_duration(self.source)
        self.assertEqual(result.duration_seconds, 0)
        self.assertIsNotNone(result.degraded)

    @patch("vodpack.ffprobe.exec.ffmpeg.probe")
    def test_missing_file(self, mock_probe):
        missing = Path(self.tmp.name) / "nope.mp4"
        with self.assertRaises(MetadataError):
            ffprobe_query(missing)
        result = probe_duration(missing)
        self.assertEqual(result.duration_seconds, 0)
        mock_probe.assert_not_called()

    @patch("vodpack.ffprobe.exec.ffmpeg.probe")
    def test_os_error_is_metadata_error(self, mock_probe):
        mock_probe.side_effect = FileNotFoundError("ffprobe")
        with self.assertRaises(MetadataError):
            ffprobe_query(self.source)

if __name__ == "__main__":
    unittest.main()
