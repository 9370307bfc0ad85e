"""Schema package for submissions, verification results and the reward ledger.

Primary exports:
- Submission: the unit of work (evidence + lifecycle state)
- CheckResult: one facet's verdict
- VerificationResult: the aggregated decision persisted with a submission
- RewardLedgerEntry: per-user credit and point totals

Usage:
    from mangrove_system.data_management.schemas import Submission, SubmissionKind
    from mangrove_system.data_management.schemas import CheckResult, Facet
    fallback = CheckResult.fallback(Facet.IMAGE, "no media supplied")
"""

from mangrove_system.data_management.schemas.lifecycle_schema import (
    DECIDED_STATUSES,
    Facet,
    Severity,
    SubmissionKind,
    SubmissionStatus,
)
from mangrove_system.data_management.schemas.verification_schema import (
    SYSTEM_ERROR_FLAG,
    CheckResult,
    VerificationResult,
)
from mangrove_system.data_management.schemas.submission_schema import (
    ComplaintCategory,
    ComplaintDetails,
    DocumentRef,
    Evidence,
    GeoPoint,
    MarketplaceStatus,
    MediaItem,
    PlantationDetails,
    Submission,
)
from mangrove_system.data_management.schemas.ledger_schema import RewardLedgerEntry

__all__ = [
    # Lifecycle
    "DECIDED_STATUSES",
    "Facet",
    "Severity",
    "SubmissionKind",
    "SubmissionStatus",
    # Verification
    "SYSTEM_ERROR_FLAG",
    "CheckResult",
    "VerificationResult",
    # Submission
    "ComplaintCategory",
    "ComplaintDetails",
    "DocumentRef",
    "Evidence",
    "GeoPoint",
    "MarketplaceStatus",
    "MediaItem",
    "PlantationDetails",
    "Submission",
    # Ledger
    "RewardLedgerEntry",
]
