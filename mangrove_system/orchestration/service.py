"""Verification service: owns the stores, the pipeline and one scheduler per kind.

Usage:
    from mangrove_system.orchestration.service import VerificationService

    service = VerificationService()
    await service.start()      # recovers stale claims, starts both schedulers
    ...
    await service.stop()

    # Or a single pass of each kind (CLI run-once, tests):
    stats = await service.run_once()
"""

from typing import Any, Optional

import structlog

from mangrove_system.config.settings import settings
from mangrove_system.data_management.ledger_store import LedgerStore
from mangrove_system.data_management.schemas import SubmissionKind
from mangrove_system.data_management.submission_store import SubmissionStore
from mangrove_system.orchestration.scheduler import TickStats, VerificationScheduler
from mangrove_system.pipeline.verification_pipeline import VerificationPipeline


class VerificationService:
    """Process-level owner of the verification schedulers."""

    def __init__(
        self,
        pipeline: Optional[VerificationPipeline] = None,
        submission_store: Optional[SubmissionStore] = None,
        ledger_store: Optional[LedgerStore] = None,
        stale_claim_seconds: Optional[float] = None,
        **scheduler_overrides: Any,
    ) -> None:
        """Initialize VerificationService.

        Args:
            pipeline: Shared pipeline (default Gemini-backed if None).
            submission_store: Shared submission store (from settings path if None).
            ledger_store: Shared ledger (from settings path if None).
            stale_claim_seconds: Age at which in_progress claims are recovered on start.
            **scheduler_overrides: Passed to both schedulers (e.g. max_attempts).
        """
        self.pipeline = pipeline or VerificationPipeline()
        self.submission_store = submission_store or SubmissionStore(
            settings.submission_store_path
        )
        self.ledger_store = ledger_store or LedgerStore(settings.ledger_store_path)
        self.stale_claim_seconds = stale_claim_seconds or settings.stale_claim_seconds

        self.schedulers: dict[SubmissionKind, VerificationScheduler] = {
            kind: VerificationScheduler(
                kind,
                self.pipeline,
                self.submission_store,
                self.ledger_store,
                **scheduler_overrides,
            )
            for kind in (SubmissionKind.COMPLAINT, SubmissionKind.PLANTATION)
        }
        self._logger = structlog.get_logger().bind(component="VerificationService")

    @property
    def is_running(self) -> bool:
        return any(s.is_running for s in self.schedulers.values())

    async def start(self) -> None:
        """Recover stale claims, then start every scheduler."""
        recovered = await self.submission_store.recover_stale(self.stale_claim_seconds)
        for scheduler in self.schedulers.values():
            await scheduler.start()
        self._logger.info("service_started", recovered_claims=len(recovered))

    async def stop(self) -> None:
        """Stop every scheduler."""
        for scheduler in self.schedulers.values():
            await scheduler.stop()
        self._logger.info("service_stopped")

    async def run_once(self) -> dict[str, TickStats]:
        """Run one tick of each scheduler, complaints first.

        Returns:
            TickStats keyed by kind value.
        """
        results: dict[str, TickStats] = {}
        for kind, scheduler in self.schedulers.items():
            results[kind.value] = await scheduler.tick()
        return results
