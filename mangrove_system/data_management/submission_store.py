"""Submission storage with lifecycle transitions and optional JSON persistence.

Follows the same patterns as LedgerStore:
- O(1) lookup by submission id
- Every transition is a single-document update under one asyncio lock
- Optional JSON persistence (written after every change, loaded on start)
- A failed write rolls the in-memory change back before re-raising

Claiming flips pending submissions to in_progress inside the lock, so two
overlapping ticks can never claim the same submission.

Usage:
    from mangrove_system.data_management.submission_store import SubmissionStore

    store = SubmissionStore()
    await store.add(submission)
    batch = await store.claim_pending(SubmissionKind.COMPLAINT, limit=10)
    await store.complete(batch[0].id, verification_result)
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from mangrove_system.data_management.schemas import (
    MarketplaceStatus,
    Submission,
    SubmissionKind,
    SubmissionStatus,
    VerificationResult,
)


class SubmissionNotFoundError(KeyError):
    """Raised when a transition targets an unknown submission id."""


class InvalidTransitionError(ValueError):
    """Raised when a transition does not start from the required status."""


class SubmissionStore:
    """Storage for submissions keyed by id.

    Data structure:
    {
        submission_id: Submission,
        ...
    }
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize SubmissionStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._submissions: dict[str, Submission] = {}
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="SubmissionStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def add(self, submission: Submission) -> Submission:
        """Store a new submission.

        Args:
            submission: Submission to store.

        Returns:
            The stored submission.

        Raises:
            ValueError: If a submission with the same id already exists.
        """
        async with self._lock:
            if submission.id in self._submissions:
                raise ValueError(f"submission {submission.id} already exists")
            self._commit({submission.id: submission})
            self._logger.debug(
                "submission_added",
                submission_id=submission.id,
                kind=submission.kind.value,
                status=submission.status.value,
            )
            return submission

    async def get(self, submission_id: str) -> Optional[Submission]:
        """Get a submission by id, or None."""
        async with self._lock:
            return self._submissions.get(submission_id)

    async def list_by_status(
        self,
        status: SubmissionStatus,
        kind: Optional[SubmissionKind] = None,
    ) -> list[Submission]:
        """List submissions in a status, oldest first.

        Args:
            status: Status to filter by.
            kind: Optional kind filter.

        Returns:
            Matching submissions ordered by created_at.
        """
        async with self._lock:
            matches = [
                s
                for s in self._submissions.values()
                if s.status == status and (kind is None or s.kind == kind)
            ]
        return sorted(matches, key=lambda s: s.created_at)

    async def claim_pending(
        self,
        kind: SubmissionKind,
        limit: int,
        now: Optional[datetime] = None,
    ) -> list[Submission]:
        """Atomically claim up to `limit` claimable submissions, oldest first.

        Claimed submissions move to in_progress and their attempt counter is
        incremented before the lock is released.

        Args:
            kind: Submission kind to claim.
            limit: Maximum number to claim.
            now: Clock override for backoff checks.

        Returns:
            Claimed submissions (already in_progress).
        """
        now = now or datetime.now(timezone.utc)
        async with self._lock:
            candidates = sorted(
                (
                    s
                    for s in self._submissions.values()
                    if s.kind == kind and s.is_claimable(now)
                ),
                key=lambda s: s.created_at,
            )[:limit]

            claimed = [
                submission.model_copy(
                    update={
                        "status": SubmissionStatus.IN_PROGRESS,
                        "attempts": submission.attempts + 1,
                        "next_attempt_at": None,
                        "updated_at": now,
                    }
                )
                for submission in candidates
            ]

            if claimed:
                self._commit({s.id: s for s in claimed})
                self._logger.info(
                    "submissions_claimed",
                    kind=kind.value,
                    count=len(claimed),
                    submission_ids=[s.id for s in claimed],
                )
            return claimed

    async def complete(
        self,
        submission_id: str,
        result: VerificationResult,
    ) -> Submission:
        """Persist the pipeline outcome and terminal status.

        Verified plantations that generated credits are listed on the
        marketplace in the same write.

        Args:
            submission_id: Submission being completed.
            result: Aggregated verification result.

        Returns:
            The updated submission.

        Raises:
            SubmissionNotFoundError: Unknown id.
            InvalidTransitionError: Submission is not in_progress.
        """
        async with self._lock:
            submission = self._require(submission_id, SubmissionStatus.IN_PROGRESS)
            now = datetime.now(timezone.utc)

            marketplace_status = submission.marketplace_status
            if (
                submission.kind == SubmissionKind.PLANTATION
                and result.final_status == SubmissionStatus.VERIFIED
                and result.reward_quantity > 0
            ):
                marketplace_status = MarketplaceStatus.LISTED

            updated = submission.model_copy(
                update={
                    "status": result.final_status,
                    "result": result,
                    "last_error": None,
                    "marketplace_status": marketplace_status,
                    "verified_at": result.verified_at,
                    "updated_at": now,
                }
            )
            self._commit({submission_id: updated})
            self._logger.info(
                "submission_completed",
                submission_id=submission_id,
                status=result.final_status.value,
                overall_score=result.overall_score,
                reward_quantity=result.reward_quantity,
            )
            return updated

    async def release(
        self,
        submission_id: str,
        error: str,
        max_attempts: int,
        backoff_seconds: float = 0.0,
        backoff_max_seconds: float = 3600.0,
    ) -> Submission:
        """Return a failed in_progress submission to pending, or mark it failed.

        The retry delay doubles per attempt: backoff_seconds * 2**(attempts-1),
        capped at backoff_max_seconds. The result field is left untouched.

        Args:
            submission_id: Submission to release.
            error: Error message recorded as last_error.
            max_attempts: Attempts after which the submission becomes failed.
            backoff_seconds: Base retry delay.
            backoff_max_seconds: Maximum retry delay.

        Returns:
            The updated submission (pending or failed).
        """
        async with self._lock:
            submission = self._require(submission_id, SubmissionStatus.IN_PROGRESS)
            now = datetime.now(timezone.utc)

            if submission.attempts >= max_attempts:
                updated = submission.model_copy(
                    update={
                        "status": SubmissionStatus.FAILED,
                        "last_error": error,
                        "next_attempt_at": None,
                        "updated_at": now,
                    }
                )
                self._commit({submission_id: updated})
                self._logger.error(
                    "submission_failed",
                    submission_id=submission_id,
                    attempts=submission.attempts,
                    error=error,
                )
            else:
                delay = min(
                    backoff_seconds * (2 ** max(submission.attempts - 1, 0)),
                    backoff_max_seconds,
                )
                updated = submission.model_copy(
                    update={
                        "status": SubmissionStatus.PENDING,
                        "last_error": error,
                        "next_attempt_at": now + timedelta(seconds=delay) if delay > 0 else None,
                        "updated_at": now,
                    }
                )
                self._commit({submission_id: updated})
                self._logger.warning(
                    "submission_released",
                    submission_id=submission_id,
                    attempts=submission.attempts,
                    retry_in_seconds=delay,
                    error=error,
                )
            return updated

    async def recover_stale(
        self,
        max_age_seconds: float,
        now: Optional[datetime] = None,
    ) -> list[str]:
        """Return in_progress submissions older than max_age_seconds to pending.

        Covers claims orphaned by a process crash mid-tick.

        Args:
            max_age_seconds: Age of the last update beyond which a claim is stale.
            now: Clock override.

        Returns:
            Ids of recovered submissions.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=max_age_seconds)
        async with self._lock:
            updates = {
                submission_id: submission.model_copy(
                    update={
                        "status": SubmissionStatus.PENDING,
                        "last_error": "claim abandoned",
                        "updated_at": now,
                    }
                )
                for submission_id, submission in self._submissions.items()
                if submission.status == SubmissionStatus.IN_PROGRESS
                and submission.updated_at <= cutoff
            }
            recovered = list(updates)

            if recovered:
                self._commit(updates)
                self._logger.warning(
                    "stale_claims_recovered",
                    count=len(recovered),
                    submission_ids=recovered,
                )
            return recovered

    async def get_stats(self, kind: Optional[SubmissionKind] = None) -> dict[str, Any]:
        """Get submission counts by status.

        Args:
            kind: Optional kind filter.

        Returns:
            Stats dict with total and per-status counts.
        """
        async with self._lock:
            status_counts: dict[str, int] = {}
            total = 0
            for submission in self._submissions.values():
                if kind is not None and submission.kind != kind:
                    continue
                total += 1
                key = submission.status.value
                status_counts[key] = status_counts.get(key, 0) + 1

            return {
                "kind": kind.value if kind else "all",
                "total": total,
                "status_counts": status_counts,
            }

    def _require(self, submission_id: str, status: SubmissionStatus) -> Submission:
        """Fetch a submission and check its current status (lock held)."""
        submission = self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        if submission.status != status:
            raise InvalidTransitionError(
                f"submission {submission_id} is {submission.status.value}, "
                f"expected {status.value}"
            )
        return submission

    def _commit(self, updates: dict[str, Submission]) -> None:
        """Apply updates and persist them (lock held).

        If the write fails the previous entries are restored before the error
        propagates, so memory never holds a state the file does not.
        """
        previous = {sid: self._submissions.get(sid) for sid in updates}
        self._submissions.update(updates)
        try:
            self._persist()
        except Exception:
            for sid, submission in previous.items():
                if submission is None:
                    del self._submissions[sid]
                else:
                    self._submissions[sid] = submission
            raise

    def _persist(self) -> None:
        """Save to JSON file if persistence is enabled (lock held)."""
        if self._persistence_path:
            self._save_to_file()

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                sid: submission.model_dump(mode="json")
                for sid, submission in self._submissions.items()
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))
            raise

    def _load_from_file(self) -> None:
        """Load submissions from the JSON file (synchronous, at construction)."""
        with open(self._persistence_path) as f:
            data = json.load(f)
        self._submissions = {
            sid: Submission.model_validate(raw) for sid, raw in data.items()
        }
        self._logger.info(
            "submissions_loaded",
            path=str(self._persistence_path),
            count=len(self._submissions),
        )
