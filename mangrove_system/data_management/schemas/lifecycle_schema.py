"""Submission lifecycle enums shared by submission and verification schemas.

State machine:
    pending -> in_progress -> verified | needs_review | rejected
    in_progress -> pending   (failure, retry after backoff)
    in_progress -> failed    (failure with attempts exhausted)
"""

from enum import Enum


class SubmissionKind(str, Enum):
    """Kinds of environmental claims handled by the pipeline.

    COMPLAINT: Incident report (cutting, dumping, pollution, fire).
    PLANTATION: Restoration claim requesting carbon credits.
    """

    COMPLAINT = "complaint"
    PLANTATION = "plantation"


class SubmissionStatus(str, Enum):
    """Lifecycle status of a submission.

    PENDING: Waiting to be claimed by a scheduler tick.
    IN_PROGRESS: Claimed; the pipeline is running.
    VERIFIED: Evidence accepted; reward granted.
    NEEDS_REVIEW: Borderline score; routed to a human decision.
    REJECTED: Evidence insufficient.
    FAILED: Processing raised on every allowed attempt.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    VERIFIED = "verified"
    NEEDS_REVIEW = "needs_review"
    REJECTED = "rejected"
    FAILED = "failed"


class Facet(str, Enum):
    """One evidence dimension analysed by a single task."""

    IMAGE = "image"
    GEO = "geo"
    TEXT = "text"
    DATA = "data"
    DOCUMENT = "document"
    LOCATION = "location"


class Severity(str, Enum):
    """Complaint severity label."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Statuses that carry a VerificationResult
DECIDED_STATUSES = frozenset(
    {SubmissionStatus.VERIFIED, SubmissionStatus.NEEDS_REVIEW, SubmissionStatus.REJECTED}
)
