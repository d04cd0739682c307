"""Tests for single tier encoding"""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from vodpack.cancel import CancellationToken
from vodpack.exceptions import CommandExecutionError, EncodeFailed, JobCancelled
from vodpack.models import StageStatus
from vodpack.process import ProgressStream
from vodpack.tiers import QualityTier
from vodpack.video.rendition import encode_rendition, remove_stale_outputs

class TestEncodeRendition(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.out = Path(self.tmp.name)
        self.source = self.out / "clip.mp4"
        self.source.write_bytes(b"\x00")

    def tearDown(self):
        self.tmp.cleanup()

    def _write_outputs(self, cmd, total_duration=None, progress=None, cancel_token=None):
        (self.out / "clip-720p.m3u8").write_text("#EXTM3U\n")
        (self.out / "clip-720p_000.ts").write_bytes(b"\x47")
        progress.publish(50)
        return ""

    @patch("vodpack.video.rendition.run_cmd_with_progress")
    def test_success(self, mock_run):
        mock_run.side_effect = self._write_outputs
        progress = ProgressStream()
        result = encode_rendition(
            self.source, self.out, "clip", QualityTier.P720,
            segment_key_prefix="videos/u1/clip-720p_", duration_seconds=10, progress=progress
        )
        self.assertEqual(result.status, StageStatus.SUCCEEDED)
        self.assertEqual(result.manifest_path, self.out / "clip-720p.m3u8")
        self.assertEqual(result.segment_key_prefix, "videos/u1/clip-720p_")
        self.assertEqual(list(progress), [50.0, 100.0])
        cmd, duration = mock_run.call_args[0][:2]
        self.assertEqual(duration, 10)
        self.assertIn("scale=-2:720", cmd)

    @patch("vodpack.video.rendition.run_cmd_with_progress")
    def test_ffmpeg_failure(self, mock_run):
        mock_run.side_effect = CommandExecutionError("ffmpeg exited with code 1", 1, "Invalid data found")
        progress = ProgressStream()
        result = encode_rendition(self.source, self.out, "clip", QualityTier.P720, progress=progress)
        self.assertEqual(result.status, StageStatus.FAILED)
        self.assertIsInstance(result.error, EncodeFailed)
        self.assertIs(result.error.tier, QualityTier.P720)
        self.assertIn("Invalid data found", result.error.cause)
        self.assertNotIn(100.0, list(progress))

    @patch("vodpack.video.rendition.run_cmd_with_progress")
    def test_missing_manifest(self, mock_run):
        mock_run.return_value = ""
        result = encode_rendition(self.source, self.out, "clip", QualityTier.P1080)
        self.assertEqual(result.status, StageStatus.FAILED)
        self.assertIn("clip-1080p.m3u8", str(result.error))

    @patch("vodpack.video.rendition.run_cmd_with_progress")
    def test_cancelled(self, mock_run):
        token = CancellationToken()
        token.cancel("user request")
        result = encode_rendition(self.source, self.out, "clip", QualityTier.P720, cancel_token=token)
        self.assertEqual(result.status, StageStatus.FAILED)
        self.assertIsInstance(result.error, JobCancelled)
        mock_run.assert_not_called()

    def test_remove_stale_outputs(self):
        (self.out / "clip-720p.m3u8").write_text("old")
        (self.out / "clip-720p_000.ts").write_bytes(b"old")
        (self.out / "clip-720p_001.ts").write_bytes(b"old")
        (self.out / "clip-1080p.m3u8").write_text("keep")
        self.assertEqual(remove_stale_outputs(self.out, "clip", QualityTier.P720), 3)
        self.assertTrue((self.out / "clip-1080p.m3u8").exists())
        self.assertTrue(self.source.exists())

    def test_remove_stale_outputs_keeps_other_videos(self):
        other = ["clip-720p_cut-720p.m3u8", "clip-720p_cut-720p_000.ts", "clip-720p_000.ts.tmp"]
        for name in other:
            (self.out / name).write_bytes(b"keep")
        (self.out / "clip-720p_004.ts").write_bytes(b"old")
        self.assertEqual(remove_stale_outputs(self.out, "clip", QualityTier.P720), 1)
        for name in other:
            self.assertTrue((self.out / name).exists(), name)

    def test_remove_stale_outputs_with_glob_characters(self):
        (self.out / "clip[1]-720p.m3u8").write_text("old")
        (self.out / "clip[1]-720p_000.ts").write_bytes(b"old")
        (self.out / "clip1-720p_000.ts").write_bytes(b"keep")
        self.assertEqual(remove_stale_outputs(self.out, "clip[1]", QualityTier.P720), 2)
        self.assertFalse((self.out / "clip[1]-720p_000.ts").exists())
        self.assertTrue((self.out / "clip1-720p_000.ts").exists())

if __name__ == "__main__":
    unittest.main()
