"""Tests for the job data model"""

import unittest
from pathlib import Path

from vodpack.exceptions import EncodeFailed, JobFailed, StateError
from vodpack.locator import OutputLocation, locate, thumbnail_location
from vodpack.models import (
    JobStatus, RenditionOutput, SourceAsset, StageStatus, Thumbnail,
    TranscodeJob, failed_rendition
)
from vodpack.tiers import QualityTier

def _succeeded(tier, location=None):
    return RenditionOutput(
        tier=tier,
        manifest_path=Path(f"/out/clip-{tier.label}.m3u8"),
        segment_key_prefix=f"videos/u1/clip-{tier.label}_",
        status=StageStatus.SUCCEEDED,
        location=location,
    )

class TestJobStateMachine(unittest.TestCase):
    def setUp(self):
        self.job = TranscodeJob(
            source=SourceAsset("clip.mp4", "u1", "clip"),
            requested_tiers=[QualityTier.P720, QualityTier.P1080],
        )

    def test_source_path_is_coerced(self):
        self.assertEqual(self.job.source.path, Path("clip.mp4"))

    def test_legal_transitions(self):
        self.assertEqual(self.job.status, JobStatus.PENDING)
        self.job.transition(JobStatus.RUNNING)
        self.assertIsNotNone(self.job.started_at)
        self.job.transition(JobStatus.PARTIALLY_SUCCEEDED)
        self.assertTrue(self.job.status.is_terminal)
        self.assertIsNotNone(self.job.finished_at)

    def test_pending_can_fail_directly(self):
        self.job.transition(JobStatus.FAILED)
        self.assertEqual(self.job.status, JobStatus.FAILED)

    def test_illegal_transitions(self):
        with self.assertRaises(StateError):
            self.job.transition(JobStatus.SUCCEEDED)
        self.job.transition(JobStatus.RUNNING)
        self.job.transition(JobStatus.SUCCEEDED)
        for status in JobStatus:
            with self.subTest(status=status):
                with self.assertRaises(StateError):
                    self.job.transition(status)

    def test_results_are_recorded_once_in_request_order(self):
        self.job.transition(JobStatus.RUNNING)
        self.job.record_rendition(1, _succeeded(QualityTier.P1080))
        self.job.record_rendition(0, _succeeded(QualityTier.P720))
        self.assertEqual([r.tier for r in self.job.renditions], [QualityTier.P720, QualityTier.P1080])
        with self.assertRaises(StateError):
            self.job.record_rendition(0, _succeeded(QualityTier.P720))

    def test_result_must_match_slot(self):
        with self.assertRaises(StateError):
            self.job.record_rendition(0, _succeeded(QualityTier.P1080))

    def test_no_recording_after_finalization(self):
        self.job.transition(JobStatus.RUNNING)
        self.job.transition(JobStatus.FAILED)
        with self.assertRaises(StateError):
            self.job.record_rendition(0, _succeeded(QualityTier.P720))

    def test_replace_keeps_status(self):
        self.job.record_rendition(0, _succeeded(QualityTier.P720))
        failed = failed_rendition(QualityTier.P720, Path("x"), "p", EncodeFailed(QualityTier.P720, "x"))
        with self.assertRaises(StateError):
            self.job.replace_rendition(0, failed)
        with self.assertRaises(StateError):
            self.job.replace_rendition(1, _succeeded(QualityTier.P1080))

    def test_raise_for_status(self):
        self.job.transition(JobStatus.RUNNING)
        error = EncodeFailed(QualityTier.P720, "bad input")
        self.job.record_rendition(0, failed_rendition(QualityTier.P720, Path("x"), "p", error))
        self.job.transition(JobStatus.FAILED)
        with self.assertRaises(JobFailed) as ctx:
            self.job.raise_for_status()
        self.assertEqual(ctx.exception.errors, [error])

class TestOutputContract(unittest.TestCase):
    def test_partial_job(self):
        job = TranscodeJob(
            source=SourceAsset("clip.mp4", "u1", "clip"),
            requested_tiers=[QualityTier.P720, QualityTier.P1080],
            duration_seconds=42,
        )
        job.transition(JobStatus.RUNNING)
        location = locate("u1", "clip", QualityTier.P720, "/uploads")
        job.record_rendition(0, _succeeded(QualityTier.P720, location))
        job.record_rendition(1, failed_rendition(
            QualityTier.P1080, Path("x"), "p", EncodeFailed(QualityTier.P1080, "oom")
        ))
        job.thumbnail = Thumbnail(
            path=Path("/out/thumb-clip.jpg"), offset_seconds=1.0, status=StageStatus.SUCCEEDED,
            location=thumbnail_location("u1", "clip", "/uploads"),
        )
        job.transition(JobStatus.PARTIALLY_SUCCEEDED)
        job.raise_for_status()

        self.assertEqual(job.to_output_contract(), {
            "tier720": {
                "manifestUrl": "/uploads/videos/u1/clip-720p.m3u8",
                "storageKey": "videos/u1/clip-720p.m3u8",
            },
            "tier1080": None,
            "thumbnailUrl": "/uploads/videos/u1/thumb-clip.jpg",
            "durationSeconds": 42,
            "overallStatus": "PartiallySucceeded",
        })

    def test_unrequested_tier_is_null(self):
        job = TranscodeJob(source=SourceAsset("a.mp4", "u1", "a"), requested_tiers=[QualityTier.P1080])
        job.record_rendition(0, _succeeded(QualityTier.P1080, OutputLocation("/u/x", "x")))
        record = job.to_output_contract()
        self.assertIsNone(record["tier720"])
        self.assertEqual(record["tier1080"]["storageKey"], "x")
        self.assertIsNone(record["thumbnailUrl"])
        self.assertEqual(record["overallStatus"], "Pending")

if __name__ == "__main__":
    unittest.main()
