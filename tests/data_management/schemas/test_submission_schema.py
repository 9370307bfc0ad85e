"""Tests for Submission, Evidence and kind-detail models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from conftest import make_complaint, make_plantation
from mangrove_system.data_management.schemas import (
    Evidence,
    GeoPoint,
    MediaItem,
    Submission,
    SubmissionKind,
    SubmissionStatus,
    VerificationResult,
)


class TestSubmissionConstruction:
    def test_defaults(self) -> None:
        submission = make_complaint()
        assert submission.status == SubmissionStatus.PENDING
        assert submission.result is None
        assert submission.attempts == 0
        assert submission.id

    def test_ids_unique(self) -> None:
        assert make_complaint().id != make_complaint().id

    def test_complaint_requires_details(self) -> None:
        with pytest.raises(ValidationError):
            Submission(kind=SubmissionKind.COMPLAINT)

    def test_plantation_requires_details(self) -> None:
        with pytest.raises(ValidationError):
            Submission(kind=SubmissionKind.PLANTATION)

    def test_decided_status_requires_result(self) -> None:
        with pytest.raises(ValidationError):
            make_complaint(status=SubmissionStatus.VERIFIED)

    def test_pending_cannot_carry_result(self) -> None:
        submission = make_complaint()
        result = VerificationResult(
            submission_id=submission.id,
            kind=SubmissionKind.COMPLAINT,
            final_status=SubmissionStatus.REJECTED,
            overall_score=0,
            overall_confidence=0,
        )
        with pytest.raises(ValidationError):
            make_complaint(result=result)

    def test_survival_rate_bounds(self) -> None:
        base = make_plantation().plantation
        with pytest.raises(ValidationError):
            base.model_validate({**base.model_dump(), "survival_rate": 120})

    def test_json_round_trip_from_plain_lists(self) -> None:
        raw = make_plantation().model_dump(mode="json")
        assert isinstance(raw["evidence"]["media"], list)
        restored = Submission.model_validate(raw)
        assert restored.plantation.species == ("rhizophora", "avicennia")
        assert restored.evidence.media[0].url == "https://media.example/p1.jpg"


class TestEvidence:
    def test_frozen(self) -> None:
        evidence = Evidence(text="hello")
        with pytest.raises(ValidationError):
            evidence.text = "changed"  # type: ignore[misc]

    def test_geo_bounds(self) -> None:
        with pytest.raises(ValidationError):
            GeoPoint(latitude=91, longitude=0)

    def test_geo_display_prefers_address(self) -> None:
        assert GeoPoint(latitude=1, longitude=2, address="Creek").display() == "Creek"
        assert GeoPoint(latitude=1, longitude=2).display() == "1.0, 2.0"

    def test_media_type_restricted(self) -> None:
        with pytest.raises(ValidationError):
            MediaItem(url="https://x", media_type="audio")


class TestClaimable:
    def test_pending_is_claimable(self) -> None:
        assert make_complaint().is_claimable(datetime.now(timezone.utc))

    def test_backoff_deadline(self) -> None:
        now = datetime.now(timezone.utc)
        submission = make_complaint(next_attempt_at=now + timedelta(seconds=30))
        assert not submission.is_claimable(now)
        assert submission.is_claimable(now + timedelta(seconds=31))

    def test_in_progress_not_claimable(self) -> None:
        submission = make_complaint(status=SubmissionStatus.IN_PROGRESS)
        assert not submission.is_claimable(datetime.now(timezone.utc))
