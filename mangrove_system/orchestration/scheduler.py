"""Recurring verification scheduler, one instance per submission kind.

Each tick:
1. Reconciles verified submissions whose reward never reached the ledger
2. Atomically claims up to batch_size pending submissions, oldest first
3. Verifies them one at a time through the pipeline
4. Persists the decision; credits the ledger for verified submissions
5. On exception, releases the submission for retry (or marks it failed)

Ticks run on a fixed interval. A tick that overruns its slot causes the
missed slots to be skipped, and a tick requested while another is still
running is skipped rather than queued.

Usage:
    from mangrove_system.orchestration.scheduler import VerificationScheduler

    scheduler = VerificationScheduler(
        SubmissionKind.PLANTATION, pipeline, submission_store, ledger_store,
        interval_seconds=30, batch_size=5,
    )
    await scheduler.start()
    ...
    await scheduler.stop()
"""

import asyncio
import time
from dataclasses import asdict, dataclass
from typing import Any, Optional

import structlog

from mangrove_system.config.settings import settings
from mangrove_system.data_management.ledger_store import LedgerStore
from mangrove_system.data_management.schemas import (
    Submission,
    SubmissionKind,
    SubmissionStatus,
)
from mangrove_system.data_management.submission_store import SubmissionStore
from mangrove_system.pipeline.verification_pipeline import VerificationPipeline
from mangrove_system.utils.logging import (
    bind_submission_context,
    clear_submission_context,
    get_correlation_id,
)


@dataclass
class TickStats:
    """Outcome counts for one tick."""

    kind: str
    skipped: bool = False
    claimed: int = 0
    verified: int = 0
    needs_review: int = 0
    rejected: int = 0
    released: int = 0
    failed: int = 0
    rewards_applied: int = 0
    rewards_reconciled: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class VerificationScheduler:
    """Claims and verifies pending submissions of one kind on a fixed cadence."""

    def __init__(
        self,
        kind: SubmissionKind,
        pipeline: VerificationPipeline,
        submission_store: SubmissionStore,
        ledger_store: LedgerStore,
        interval_seconds: Optional[float] = None,
        batch_size: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
        retry_backoff_max_seconds: Optional[float] = None,
    ) -> None:
        """Initialize VerificationScheduler.

        Args:
            kind: Submission kind this scheduler claims.
            pipeline: Verification pipeline.
            submission_store: Submission lifecycle store.
            ledger_store: Reward ledger.
            interval_seconds: Tick cadence (defaults to the kind's setting).
            batch_size: Submissions claimed per tick (defaults to the kind's setting).
            max_attempts: Claims before a submission is marked failed.
            retry_backoff_seconds: Base retry delay after a failure.
            retry_backoff_max_seconds: Cap on the retry delay.
        """
        if kind == SubmissionKind.COMPLAINT:
            default_interval = settings.complaint_interval_seconds
            default_batch = settings.complaint_batch_size
        else:
            default_interval = settings.plantation_interval_seconds
            default_batch = settings.plantation_batch_size

        self.kind = kind
        self.pipeline = pipeline
        self.submission_store = submission_store
        self.ledger_store = ledger_store
        self.interval_seconds = interval_seconds or default_interval
        self.batch_size = batch_size or default_batch
        self.max_attempts = max_attempts or settings.max_attempts
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.retry_backoff_seconds
        )
        self.retry_backoff_max_seconds = (
            retry_backoff_max_seconds
            if retry_backoff_max_seconds is not None
            else settings.retry_backoff_max_seconds
        )

        # Full verified scan once per process, then only ids whose credit failed
        self._needs_full_reconcile = True
        self._uncredited: set[str] = set()

        self._tick_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._logger = structlog.get_logger().bind(
            component="VerificationScheduler", kind=kind.value
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background tick loop (first tick runs immediately)."""
        if self.is_running:
            self._logger.warning("scheduler_already_running")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop())
        self._logger.info(
            "scheduler_started",
            interval_seconds=self.interval_seconds,
            batch_size=self.batch_size,
        )

    async def stop(self, timeout_seconds: float = 30.0) -> None:
        """Stop the loop, letting an in-flight tick finish within the timeout.

        Args:
            timeout_seconds: Grace period before the loop task is cancelled.
        """
        if not self.is_running:
            return
        self._stop_event.set()
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            self._logger.warning("scheduler_stop_timeout", timeout_seconds=timeout_seconds)
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._logger.info("scheduler_stopped")

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        while not self._stop_event.is_set():
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._logger.error("tick_error", error=str(e), exc_info=True)

            now = loop.time()
            next_run += self.interval_seconds
            if next_run <= now:
                missed = int((now - next_run) // self.interval_seconds) + 1
                next_run += missed * self.interval_seconds
                self._logger.warning("tick_overrun", missed_slots=missed)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=next_run - now)
            except asyncio.TimeoutError:
                pass

    async def tick(self) -> TickStats:
        """Run one claim-verify-persist cycle.

        Returns:
            TickStats; `skipped` is True if another tick was already running.
        """
        if self._tick_lock.locked():
            self._logger.info("tick_skipped", reason="previous tick still running")
            return TickStats(kind=self.kind.value, skipped=True)

        async with self._tick_lock:
            start = time.perf_counter()
            stats = TickStats(kind=self.kind.value)
            correlation_id = get_correlation_id()

            stats.rewards_reconciled = await self.reconcile_rewards()

            try:
                batch = await self.submission_store.claim_pending(self.kind, self.batch_size)
            except Exception as e:
                # The store rolled the claim back; the batch stays pending
                self._logger.error("claim_failed", error=str(e), exc_info=True)
                batch = []
            stats.claimed = len(batch)

            for submission in batch:
                await self.process_submission(submission, stats, correlation_id)

            stats.duration_seconds = round(time.perf_counter() - start, 3)
            if stats.claimed or stats.rewards_reconciled:
                self._logger.info("tick_complete", correlation_id=correlation_id, **{
                    k: v for k, v in stats.to_dict().items() if k not in ("kind", "skipped")
                })
            return stats

    async def process_submission(
        self,
        submission: Submission,
        stats: Optional[TickStats] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Verify one claimed submission and persist the outcome.

        Args:
            submission: Submission already claimed (in_progress).
            stats: Tick counters to update.
            correlation_id: Tick correlation id for log context.
        """
        stats = stats or TickStats(kind=self.kind.value)
        bind_submission_context(submission.id, submission.kind.value, correlation_id)
        try:
            try:
                result = await self.pipeline.verify(submission)
                updated = await self.submission_store.complete(submission.id, result)
            except Exception as e:
                self._logger.error(
                    "submission_processing_failed",
                    submission_id=submission.id,
                    attempts=submission.attempts,
                    error=str(e),
                    exc_info=True,
                )
                await self._release(submission, e, stats)
                return

            if updated.status == SubmissionStatus.VERIFIED:
                stats.verified += 1
                if await self._credit(updated):
                    stats.rewards_applied += 1
            elif updated.status == SubmissionStatus.NEEDS_REVIEW:
                stats.needs_review += 1
            else:
                stats.rejected += 1
        finally:
            clear_submission_context()

    async def _release(
        self,
        submission: Submission,
        error: Exception,
        stats: TickStats,
    ) -> None:
        try:
            released = await self.submission_store.release(
                submission.id,
                f"{type(error).__name__}: {error}",
                max_attempts=self.max_attempts,
                backoff_seconds=self.retry_backoff_seconds,
                backoff_max_seconds=self.retry_backoff_max_seconds,
            )
        except Exception as e:
            self._logger.error(
                "submission_release_failed",
                submission_id=submission.id,
                error=str(e),
            )
            return

        if released.status == SubmissionStatus.FAILED:
            stats.failed += 1
        else:
            stats.released += 1

    async def _credit(self, submission: Submission) -> bool:
        """Apply a verified submission's reward to its owner's ledger entry.

        Failures are logged and left for reconcile_rewards() on a later tick.

        Returns:
            True if the ledger changed.
        """
        result = submission.result
        if submission.owner_id is None:
            self._logger.debug("reward_skipped_anonymous", submission_id=submission.id)
            return False
        if result.reward_quantity <= 0 and result.points <= 0:
            return False
        try:
            applied = await self.ledger_store.apply_reward(
                submission.id,
                submission.owner_id,
                credits=result.reward_quantity,
                points=result.points,
            )
        except Exception as e:
            self._uncredited.add(submission.id)
            self._logger.error(
                "reward_credit_failed",
                submission_id=submission.id,
                user_id=submission.owner_id,
                error=str(e),
            )
            return False
        self._uncredited.discard(submission.id)
        return applied

    async def reconcile_rewards(self) -> int:
        """Credit verified submissions whose reward was never applied.

        The first call scans every verified submission of this kind, which
        repairs credits lost to a crash before the process started. Later
        calls only retry submissions whose credit failed in this process.

        Returns:
            Number of rewards applied.
        """
        if self._needs_full_reconcile:
            candidates = await self.submission_store.list_by_status(
                SubmissionStatus.VERIFIED, self.kind
            )
        else:
            candidates = []
            for submission_id in sorted(self._uncredited):
                submission = await self.submission_store.get(submission_id)
                if submission is None or submission.status != SubmissionStatus.VERIFIED:
                    self._uncredited.discard(submission_id)
                    continue
                candidates.append(submission)

        applied = 0
        for submission in candidates:
            if submission.owner_id is None:
                continue
            if await self.ledger_store.has_applied(submission.id):
                self._uncredited.discard(submission.id)
                continue
            if await self._credit(submission):
                applied += 1
                self._logger.warning("reward_reconciled", submission_id=submission.id)

        self._needs_full_reconcile = False
        return applied
