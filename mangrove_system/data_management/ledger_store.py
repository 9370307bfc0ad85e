"""Reward ledger storage: per-user credit and point accumulators.

Follows same patterns as SubmissionStore:
- User-keyed organization (user_id as primary key)
- Thread-safe operations with asyncio locks
- Optional JSON persistence

Each entry records which submissions it has already been credited for, so
apply_reward() is idempotent per submission id. The scheduler relies on this
to repair a crash between the terminal status write and the credit.

Usage:
    from mangrove_system.data_management.ledger_store import LedgerStore

    ledger = LedgerStore()
    applied = await ledger.apply_reward("sub-001", "user-42", credits=5.55, points=50)
    entry = await ledger.get_entry("user-42")
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from mangrove_system.data_management.schemas import RewardLedgerEntry


class LedgerStore:
    """Storage for reward ledger entries keyed by user id.

    Data structure:
    {
        user_id: RewardLedgerEntry,
        ...
    }
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize LedgerStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._entries: dict[str, RewardLedgerEntry] = {}
        self._applied: set[str] = set()
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="LedgerStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def apply_reward(
        self,
        submission_id: str,
        user_id: str,
        credits: float,
        points: int,
    ) -> bool:
        """Credit a user for a verified submission, at most once.

        Args:
            submission_id: Submission the reward belongs to.
            user_id: Ledger owner.
            credits: Carbon credits to add.
            points: Gamification points to add.

        Returns:
            True if applied, False if this submission was already credited.
        """
        async with self._lock:
            if submission_id in self._applied:
                self._logger.debug(
                    "reward_already_applied",
                    submission_id=submission_id,
                    user_id=user_id,
                )
                return False

            previous = self._entries.get(user_id)
            entry = previous or RewardLedgerEntry(user_id=user_id)
            self._entries[user_id] = entry.model_copy(
                update={
                    "credits_earned": round(entry.credits_earned + credits, 2),
                    "points": entry.points + points,
                    "applied_submissions": [*entry.applied_submissions, submission_id],
                    "updated_at": datetime.now(timezone.utc),
                }
            )
            self._applied.add(submission_id)

            if self._persistence_path:
                try:
                    self._save_to_file()
                except Exception:
                    # Unwritten credit must stay retryable
                    self._applied.discard(submission_id)
                    if previous is None:
                        del self._entries[user_id]
                    else:
                        self._entries[user_id] = previous
                    raise

            self._logger.info(
                "reward_applied",
                submission_id=submission_id,
                user_id=user_id,
                credits=credits,
                points=points,
            )
            return True

    async def has_applied(self, submission_id: str) -> bool:
        """Check whether a submission has already been credited."""
        async with self._lock:
            return submission_id in self._applied

    async def get_entry(self, user_id: str) -> Optional[RewardLedgerEntry]:
        """Get a user's ledger entry, or None if never credited."""
        async with self._lock:
            return self._entries.get(user_id)

    async def leaderboard(self, limit: int = 10) -> list[RewardLedgerEntry]:
        """Top users by points, then credits.

        Args:
            limit: Maximum entries to return.

        Returns:
            Entries sorted descending.
        """
        async with self._lock:
            ranked = sorted(
                self._entries.values(),
                key=lambda e: (e.points, e.credits_earned),
                reverse=True,
            )
        return ranked[:limit]

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                user_id: entry.model_dump(mode="json")
                for user_id, entry in self._entries.items()
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))
            raise

    def _load_from_file(self) -> None:
        """Load ledger entries from the JSON file (synchronous, at construction)."""
        with open(self._persistence_path) as f:
            data = json.load(f)
        self._entries = {
            user_id: RewardLedgerEntry.model_validate(raw)
            for user_id, raw in data.items()
        }
        self._applied = {
            sid for entry in self._entries.values() for sid in entry.applied_submissions
        }
        self._logger.info(
            "ledger_loaded",
            path=str(self._persistence_path),
            users=len(self._entries),
        )
