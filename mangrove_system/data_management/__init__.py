"""Persistence layer: submission lifecycle store and reward ledger."""

from mangrove_system.data_management.ledger_store import LedgerStore
from mangrove_system.data_management.submission_store import (
    InvalidTransitionError,
    SubmissionNotFoundError,
    SubmissionStore,
)

__all__ = [
    "InvalidTransitionError",
    "LedgerStore",
    "SubmissionNotFoundError",
    "SubmissionStore",
]
