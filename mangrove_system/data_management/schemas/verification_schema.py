"""Verification schemas: per-facet CheckResult and the aggregated VerificationResult.

A CheckResult is produced for every facet of every run, including facets
that could not be analysed (capability error, timeout, missing evidence).
Those carry the all-false fallback: passed=False, confidence=0, score=0 and
an `error` explaining why.

A VerificationResult is created once per successful aggregation and is not
revised afterwards; a resubmission creates a new Submission.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from mangrove_system.data_management.schemas.lifecycle_schema import (
    DECIDED_STATUSES,
    Facet,
    Severity,
    SubmissionKind,
    SubmissionStatus,
)

SYSTEM_ERROR_FLAG = "system_error"


class CheckResult(BaseModel):
    """Verdict for a single evidence facet.

    `score` is a facet-local quality score independent of `passed`: the
    plantation policy weights scores, the complaint policy counts passes.
    `details` is passed through to the audit trail untouched.
    """

    facet: Facet = Field(..., description="Evidence dimension analysed")
    passed: bool = Field(..., description="Whether the facet supports the claim")
    confidence: float = Field(
        ..., ge=0.0, le=1.0, description="Analyser confidence (0.0-1.0)"
    )
    score: float = Field(
        ..., ge=0.0, le=100.0, description="Facet quality score (0-100)"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured findings returned by the analyser",
    )
    error: Optional[str] = Field(
        default=None,
        description="Why the facet could not be analysed (fallback results only)",
    )

    @classmethod
    def fallback(cls, facet: Facet, reason: str) -> "CheckResult":
        """Build the all-false result used when a facet cannot be analysed."""
        return cls(
            facet=facet,
            passed=False,
            confidence=0.0,
            score=0.0,
            details={},
            error=reason,
        )

    @property
    def is_fallback(self) -> bool:
        return self.error is not None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "facet": "image",
                    "passed": True,
                    "confidence": 0.86,
                    "score": 82,
                    "details": {
                        "imageCheck": True,
                        "detectedIssues": ["fresh stumps", "cleared strip"],
                    },
                    "error": None,
                }
            ]
        }
    }


class VerificationResult(BaseModel):
    """Aggregated outcome for one submission.

    Invariants:
    - final_status is one of verified / needs_review / rejected
    - reward_quantity and points are zero unless final_status is verified
    - per_facet_results holds every facet of the kind (audit trail)
    """

    submission_id: str = Field(..., description="Submission this result belongs to")
    kind: SubmissionKind = Field(..., description="Submission kind")
    final_status: SubmissionStatus = Field(..., description="Decided status")
    overall_score: float = Field(
        ..., ge=0.0, le=100.0, description="Aggregated score (0-100)"
    )
    overall_confidence: float = Field(
        ..., ge=0.0, le=1.0, description="Aggregated confidence (0.0-1.0)"
    )
    severity: Optional[Severity] = Field(
        default=None, description="Complaint severity (complaints only)"
    )
    reward_quantity: float = Field(
        default=0.0, ge=0.0, description="Credits granted (0 unless verified)"
    )
    points: int = Field(
        default=0, ge=0, description="Gamification points (0 unless verified)"
    )
    flags: list[str] = Field(
        default_factory=list, description="Advisory flags for human reviewers"
    )
    per_facet_results: list[CheckResult] = Field(
        default_factory=list, description="Every facet's CheckResult"
    )
    summary: str = Field(default="", description="Deterministic one-line summary")
    narrative: Optional[str] = Field(
        default=None,
        description="Synthesised explanation; informational, never authoritative",
    )
    verified_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When aggregation completed",
    )

    @model_validator(mode="after")
    def check_decision(self) -> "VerificationResult":
        """Reject undecided statuses and rewards on non-verified outcomes."""
        if self.final_status not in DECIDED_STATUSES:
            raise ValueError(
                f"final_status must be one of {sorted(s.value for s in DECIDED_STATUSES)}, "
                f"got {self.final_status.value}"
            )
        if self.final_status != SubmissionStatus.VERIFIED and (
            self.reward_quantity > 0 or self.points > 0
        ):
            raise ValueError("reward is only granted to verified submissions")
        return self

    @classmethod
    def system_error(
        cls,
        submission_id: str,
        kind: SubmissionKind,
        per_facet_results: list[CheckResult],
        error: str,
    ) -> "VerificationResult":
        """Rejected result surfaced when aggregation itself raised."""
        return cls(
            submission_id=submission_id,
            kind=kind,
            final_status=SubmissionStatus.REJECTED,
            overall_score=0.0,
            overall_confidence=0.0,
            reward_quantity=0.0,
            flags=[SYSTEM_ERROR_FLAG],
            per_facet_results=per_facet_results,
            summary=f"Verification failed due to system error: {error}",
        )

    def facet_result(self, facet: Facet) -> Optional[CheckResult]:
        """Return the CheckResult for a facet, if present."""
        for result in self.per_facet_results:
            if result.facet == facet:
                return result
        return None

    @property
    def passed_checks(self) -> int:
        return sum(1 for r in self.per_facet_results if r.passed)
