"""Submission schema: the unit of work for the verification pipeline.

A Submission bundles immutable evidence (media, coordinates, free text,
documents) with kind-specific details and mutable lifecycle state. Evidence
models are frozen; lifecycle changes are made by the SubmissionStore through
model_copy() so a caller's reference never changes underneath it.

Usage:
    from mangrove_system.data_management.schemas import (
        Evidence, GeoPoint, PlantationDetails, Submission, SubmissionKind,
    )

    submission = Submission(
        kind=SubmissionKind.PLANTATION,
        owner_id="user-42",
        evidence=Evidence(location=GeoPoint(latitude=19.07, longitude=72.87)),
        plantation=PlantationDetails(
            name="Creek restoration",
            area_hectares=5,
            species=["rhizophora"],
            planting_date=date(2024, 6, 1),
            survival_rate=95,
        ),
    )
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from mangrove_system.data_management.schemas.lifecycle_schema import (
    DECIDED_STATUSES,
    SubmissionKind,
    SubmissionStatus,
)
from mangrove_system.data_management.schemas.verification_schema import (
    VerificationResult,
)


class ComplaintCategory(str, Enum):
    """Reported incident category."""

    CUTTING = "cutting"
    DUMPING = "dumping"
    POLLUTION = "pollution"
    FIRE = "fire"
    OTHER = "other"


class MarketplaceStatus(str, Enum):
    """Carbon-credit marketplace listing state for plantations."""

    NOT_LISTED = "not_listed"
    LISTED = "listed"


class MediaItem(BaseModel):
    """Uploaded photo or video reference."""

    url: str = Field(..., min_length=1, description="Stored media URL")
    media_type: Literal["photo", "video"] = Field(default="photo")

    model_config = {"frozen": True}


class GeoPoint(BaseModel):
    """Coordinate with optional human-readable address."""

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    address: Optional[str] = Field(default=None)

    model_config = {"frozen": True}

    def display(self) -> str:
        return self.address or f"{self.latitude}, {self.longitude}"


class DocumentRef(BaseModel):
    """Supporting document (certificate, report) reference."""

    name: str = Field(..., description="e.g. soil_certificate, plant_certificate")
    url: str = Field(..., min_length=1)

    model_config = {"frozen": True}


class Evidence(BaseModel):
    """Facet-keyed evidence bag. Immutable once the submission is created."""

    media: tuple[MediaItem, ...] = Field(default=())
    location: Optional[GeoPoint] = Field(default=None)
    text: str = Field(default="", description="Free-form description")
    documents: tuple[DocumentRef, ...] = Field(default=())

    model_config = {"frozen": True}


class ComplaintDetails(BaseModel):
    """Incident complaint metadata."""

    category: ComplaintCategory = Field(...)
    incident_date: Optional[datetime] = Field(default=None)
    landmark: Optional[str] = Field(default=None)
    damage_estimate: Literal["small", "medium", "large"] = Field(default="small")

    model_config = {"frozen": True}


class PlantationDetails(BaseModel):
    """Plantation restoration claim metadata."""

    name: str = Field(..., min_length=1)
    area_hectares: float = Field(..., ge=0.0)
    species: tuple[str, ...] = Field(default=())
    planting_date: date = Field(...)
    survival_rate: float = Field(default=0.0, ge=0.0, le=100.0)
    expected_carbon_credit: Optional[float] = Field(default=None, ge=0.0)

    model_config = {"frozen": True}


class Submission(BaseModel):
    """A complaint or plantation claim moving through verification.

    Invariants (checked on construction):
    - complaint submissions carry `complaint`, plantation submissions `plantation`
    - result is set iff status is verified / needs_review / rejected
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: SubmissionKind = Field(...)
    owner_id: Optional[str] = Field(
        default=None, description="Ledger user credited on verification"
    )
    evidence: Evidence = Field(default_factory=Evidence)
    complaint: Optional[ComplaintDetails] = Field(default=None)
    plantation: Optional[PlantationDetails] = Field(default=None)

    status: SubmissionStatus = Field(default=SubmissionStatus.PENDING)
    result: Optional[VerificationResult] = Field(default=None)
    attempts: int = Field(default=0, ge=0, description="Times claimed by a tick")
    last_error: Optional[str] = Field(default=None)
    next_attempt_at: Optional[datetime] = Field(
        default=None, description="Not claimable before this time (retry backoff)"
    )
    marketplace_status: MarketplaceStatus = Field(default=MarketplaceStatus.NOT_LISTED)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    verified_at: Optional[datetime] = Field(default=None)

    @model_validator(mode="after")
    def check_consistency(self) -> "Submission":
        if self.kind == SubmissionKind.COMPLAINT and self.complaint is None:
            raise ValueError("complaint submissions require complaint details")
        if self.kind == SubmissionKind.PLANTATION and self.plantation is None:
            raise ValueError("plantation submissions require plantation details")
        decided = self.status in DECIDED_STATUSES
        if decided and self.result is None:
            raise ValueError(f"status {self.status.value} requires a verification result")
        if not decided and self.result is not None:
            raise ValueError(f"status {self.status.value} cannot carry a verification result")
        return self

    def is_claimable(self, now: datetime) -> bool:
        """True if a tick may claim this submission at `now`."""
        if self.status != SubmissionStatus.PENDING:
            return False
        return self.next_attempt_at is None or self.next_attempt_at <= now
