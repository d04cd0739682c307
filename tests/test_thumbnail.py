"""Tests for poster thumbnail extraction"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from vodpack.exceptions import CommandExecutionError, ThumbnailFailed
from vodpack.models import StageStatus
from vodpack.video.thumbnail import extract_thumbnail

class TestExtractThumbnail(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.output = Path(self.tmp.name) / "thumb-clip.jpg"

    def tearDown(self):
        self.tmp.cleanup()

    @patch("vodpack.video.thumbnail.run_cmd_with_progress")
    def test_success(self, mock_run):
        mock_run.side_effect = lambda cmd, **kwargs: self.output.write_bytes(b"\xff\xd8")
        result = extract_thumbnail(Path("clip.mp4"), self.output, 1.0)
        self.assertEqual(result.status, StageStatus.SUCCEEDED)
        self.assertEqual(result.path, self.output)
        self.assertEqual(result.offset_seconds, 1.0)

    @patch("vodpack.video.thumbnail.run_cmd_with_progress")
    def test_offset_past_end(self, mock_run):
        mock_run.return_value = ""
        result = extract_thumbnail(Path("clip.mp4"), self.output, 1.0)
        self.assertEqual(result.status, StageStatus.FAILED)
        self.assertIsInstance(result.error, ThumbnailFailed)
        self.assertIsNone(result.path)

    @patch("vodpack.video.thumbnail.run_cmd_with_progress")
    def test_stale_file_is_not_reported(self, mock_run):
        self.output.write_bytes(b"old")
        mock_run.return_value = ""
        result = extract_thumbnail(Path("clip.mp4"), self.output, 1.0)
        self.assertEqual(result.status, StageStatus.FAILED)
        self.assertFalse(self.output.exists())

    @patch("vodpack.video.thumbnail.run_cmd_with_progress")
    def test_ffmpeg_failure(self, mock_run):
        mock_run.side_effect = CommandExecutionError("ffmpeg exited with code 1", 1, "decode error")
        result = extract_thumbnail(Path("clip.mp4"), self.output)
        self.assertEqual(result.status, StageStatus.FAILED)
        self.assertEqual(result.error.cause, "decode error")

    @patch("vodpack.video.thumbnail.run_cmd_with_progress")
    def test_negative_offset(self, mock_run):
        result = extract_thumbnail(Path("clip.mp4"), self.output, -1)
        self.assertEqual(result.status, StageStatus.FAILED)
        mock_run.assert_not_called()

if __name__ == "__main__":
    unittest.main()
