"""Unit tests for upload DTOs."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from media_uplink.application.dtos.upload import UploadJob, UploadOutcome
from media_uplink.domain.models.records import RecordKind


class TestUploadJob:
    """Tests for the push-to-s3 payload."""

    def test_parse_camel_case(self):
        job = UploadJob.model_validate(
            {
                "recordId": "r1",
                "localPath": "/uploads/a.mp4",
                "thumbnailPath": "/uploads/a.jpg",
            }
        )
        assert job.record_id == "r1"
        assert job.local_path == Path("/uploads/a.mp4")
        assert job.thumbnail_path == Path("/uploads/a.jpg")

    def test_legacy_content_id(self):
        job = UploadJob.model_validate({"contentId": "c1", "localPath": "/u/a.mp4"})
        assert job.record_id == "c1"
        assert job.thumbnail_path is None

    def test_payload_omits_missing_thumbnail(self):
        job = UploadJob(record_id="r1", local_path=Path("/u/a.mp4"))
        assert job.to_payload() == {"recordId": "r1", "localPath": "/u/a.mp4"}

    def test_payload_round_trip(self):
        job = UploadJob(
            record_id="r1",
            local_path=Path("/u/a.mp4"),
            thumbnail_path=Path("/u/a.png"),
        )
        assert UploadJob.model_validate(job.to_payload()) == job

    def test_local_path_required(self):
        with pytest.raises(ValidationError):
            UploadJob.model_validate({"recordId": "r1"})

    def test_empty_record_id_rejected(self):
        with pytest.raises(ValidationError):
            UploadJob.model_validate({"recordId": "", "localPath": "/u/a.mp4"})


class TestUploadOutcome:
    """Tests for UploadOutcome."""

    def test_json_dump(self):
        outcome = UploadOutcome(
            record_id="r1",
            kind=RecordKind.REELS,
            bucket="media",
            key="videos/r1.mp4",
            checksum_sha256="0" * 64,
            file_size_bytes=0,
        )
        data = outcome.model_dump(mode="json")
        assert data["kind"] == "reels"
        assert data["thumbnail_key"] is None

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            UploadOutcome(
                record_id="r1",
                kind=RecordKind.CONTENT,
                bucket="media",
                key="k",
                checksum_sha256="0" * 64,
                file_size_bytes=-1,
            )
