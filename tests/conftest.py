"""Shared fixtures: a scripted content analyzer and submission factories."""

import json
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

import pytest

from mangrove_system.data_management.schemas import (
    CheckResult,
    ComplaintCategory,
    ComplaintDetails,
    DocumentRef,
    Evidence,
    Facet,
    GeoPoint,
    MediaItem,
    PlantationDetails,
    Submission,
    SubmissionKind,
)

# First-line role markers of each prompt template
COMPLAINT_ROLES = {
    "image": "Image Analysis Agent",
    "geo": "Geo-Validation Agent",
    "text": "Text Analysis Agent",
    "synthesis": "Complaint Synthesis Agent",
}
PLANTATION_ROLES = {
    "data": "Data Validation Agent",
    "image": "Image Verification Agent",
    "document": "Document Verification Agent",
    "location": "Location Verification Agent",
    "synthesis": "Plantation Synthesis Agent",
}


class ScriptedAnalyzer:
    """Content analyzer returning canned replies keyed by prompt role.

    A reply may be a dict (sent as JSON), a string (sent verbatim), an
    exception instance (raised) or an async callable taking the prompt.
    """

    def __init__(self, replies: Optional[dict[str, Any]] = None) -> None:
        self.replies = replies or {}
        self.prompts: list[str] = []

    async def generate_content(self, prompt: str, temperature: float = 0.1) -> str:
        self.prompts.append(prompt)
        first_line = prompt.strip().splitlines()[0]
        for role, reply in self.replies.items():
            if role in first_line:
                if isinstance(reply, BaseException):
                    raise reply
                if callable(reply):
                    reply = await reply(prompt)
                if isinstance(reply, dict):
                    return json.dumps(reply)
                return reply
        raise RuntimeError(f"no scripted reply for prompt: {first_line}")

    def calls_for(self, role: str) -> int:
        return sum(1 for p in self.prompts if role in p.strip().splitlines()[0])


def complaint_replies(
    image: Any = None,
    geo: Any = None,
    text: Any = None,
    synthesis: Any = None,
) -> dict[str, Any]:
    """Replies for a complaint run; None keeps a passing default."""
    return {
        COMPLAINT_ROLES["image"]: image
        if image is not None
        else {"imageCheck": True, "confidence": 0.8, "score": 80, "detectedIssues": ["stumps"]},
        COMPLAINT_ROLES["geo"]: geo
        if geo is not None
        else {"geoCheck": True, "isInMangroveZone": True, "confidence": 0.9, "score": 90},
        COMPLAINT_ROLES["text"]: text
        if text is not None
        else {"textCheck": True, "confidence": 0.7, "score": 70, "severityKeywords": ["cutting"]},
        COMPLAINT_ROLES["synthesis"]: synthesis
        if synthesis is not None
        else {"verificationSummary": "Evidence is consistent.", "recommendations": []},
    }


def plantation_replies(
    data: Any = None,
    image: Any = None,
    document: Any = None,
    location: Any = None,
    synthesis: Any = None,
) -> dict[str, Any]:
    """Replies for a plantation run; None keeps the 90/85/80/95 defaults."""
    return {
        PLANTATION_ROLES["data"]: data
        if data is not None
        else {"dataCheck": True, "confidence": 0.9, "score": 90},
        PLANTATION_ROLES["image"]: image
        if image is not None
        else {"imageCheck": True, "vegetationDetected": True, "confidence": 0.85, "score": 85},
        PLANTATION_ROLES["document"]: document
        if document is not None
        else {"documentCheck": True, "certificatesValid": True, "confidence": 0.8, "score": 80},
        PLANTATION_ROLES["location"]: location
        if location is not None
        else {"locationCheck": True, "mangroveRegion": True, "confidence": 0.95, "score": 95},
        PLANTATION_ROLES["synthesis"]: synthesis
        if synthesis is not None
        else {"verificationSummary": "Strong plantation evidence.", "recommendations": []},
    }


def make_complaint(**overrides: Any) -> Submission:
    fields: dict[str, Any] = {
        "kind": SubmissionKind.COMPLAINT,
        "owner_id": "user-1",
        "evidence": Evidence(
            media=(MediaItem(url="https://media.example/c1.jpg"),),
            location=GeoPoint(latitude=19.07, longitude=72.87, address="Mahim creek"),
            text="Mangroves being cut near the creek at night.",
        ),
        "complaint": ComplaintDetails(
            category=ComplaintCategory.CUTTING,
            incident_date=datetime(2024, 5, 1, tzinfo=timezone.utc),
        ),
    }
    fields.update(overrides)
    return Submission(**fields)


def make_plantation(**overrides: Any) -> Submission:
    fields: dict[str, Any] = {
        "kind": SubmissionKind.PLANTATION,
        "owner_id": "user-2",
        "evidence": Evidence(
            media=(MediaItem(url="https://media.example/p1.jpg"),),
            location=GeoPoint(latitude=21.94, longitude=88.89, address="Sundarbans"),
            documents=(DocumentRef(name="soil_certificate", url="https://docs.example/soil.pdf"),),
        ),
        "plantation": PlantationDetails(
            name="Creek restoration",
            area_hectares=5,
            species=("rhizophora", "avicennia"),
            planting_date=date(2024, 6, 1),
            survival_rate=95,
        ),
    }
    fields.update(overrides)
    return Submission(**fields)


def make_check(
    facet: Facet,
    passed: bool = True,
    confidence: float = 0.8,
    score: float = 80.0,
    **details: Any,
) -> CheckResult:
    return CheckResult(
        facet=facet, passed=passed, confidence=confidence, score=score, details=details
    )


@pytest.fixture
def scripted_analyzer() -> Callable[..., ScriptedAnalyzer]:
    return ScriptedAnalyzer


@pytest.fixture
def complaint_factory() -> Callable[..., Submission]:
    return make_complaint


@pytest.fixture
def plantation_factory() -> Callable[..., Submission]:
    return make_plantation
