"""Submission -> decision verification pipeline.

Fans a submission out to one AnalysisTask per facet of its kind, runs them
concurrently, joins every CheckResult and hands them to the Aggregator.
Optionally attaches a synthesised narrative. The pipeline persists nothing;
the scheduler owns all store writes.

Usage:
    from mangrove_system.pipeline import VerificationPipeline

    pipeline = VerificationPipeline()
    result = await pipeline.verify(submission)
"""

import asyncio
from typing import Optional

import structlog

from mangrove_system.agents.verification.aggregator import Aggregator
from mangrove_system.agents.verification.analysis_task import AnalysisTask
from mangrove_system.agents.verification.facets import facets_for
from mangrove_system.agents.verification.synthesizer import Synthesizer
from mangrove_system.config.settings import settings
from mangrove_system.data_management.schemas import (
    CheckResult,
    Submission,
    SubmissionKind,
    VerificationResult,
)
from mangrove_system.llm.gemini_client import ContentAnalyzer, get_client
from mangrove_system.orchestration.events import (
    WORKFLOW_COMPLETE,
    WORKFLOW_START,
    ProgressObserver,
    safe_emit,
)


class VerificationPipeline:
    """Runs the facet fan-out and aggregation for one submission.

    - One task per facet, all started concurrently
    - Facet failures become fallback CheckResults, never exceptions
    - Aggregation failure becomes a rejected result flagged system_error
    """

    def __init__(
        self,
        analyzer: Optional[ContentAnalyzer] = None,
        aggregator: Optional[Aggregator] = None,
        synthesizer: Optional[Synthesizer] = None,
        observer: Optional[ProgressObserver] = None,
        task_timeout_seconds: Optional[float] = None,
        synthesis_enabled: Optional[bool] = None,
    ) -> None:
        """Initialize VerificationPipeline.

        Args:
            analyzer: Content-analysis capability. Lazy-initialized Gemini client if None.
            aggregator: Decision function (default policies if None).
            synthesizer: Narrative writer. Built from the analyzer if None.
            observer: Optional progress observer.
            task_timeout_seconds: Per-facet timeout (defaults to settings).
            synthesis_enabled: Whether to request a narrative (defaults to settings).
        """
        self._analyzer = analyzer
        self.aggregator = aggregator or Aggregator()
        self._synthesizer = synthesizer
        self.observer = observer
        self.task_timeout_seconds = task_timeout_seconds or settings.analysis_timeout_seconds
        self.synthesis_enabled = (
            synthesis_enabled if synthesis_enabled is not None else settings.synthesis_enabled
        )
        self._logger = structlog.get_logger().bind(component="VerificationPipeline")

    def _get_analyzer(self) -> ContentAnalyzer:
        """Lazy-init the shared Gemini client."""
        if self._analyzer is None:
            self._analyzer = get_client()
        return self._analyzer

    def _get_synthesizer(self) -> Synthesizer:
        if self._synthesizer is None:
            self._synthesizer = Synthesizer(
                self._get_analyzer(),
                observer=self.observer,
                timeout_seconds=self.task_timeout_seconds,
            )
        return self._synthesizer

    def tasks_for(self, kind: SubmissionKind) -> list[AnalysisTask]:
        """Build one AnalysisTask per facet of a kind."""
        analyzer = self._get_analyzer()
        return [
            AnalysisTask(
                spec,
                analyzer,
                observer=self.observer,
                timeout_seconds=self.task_timeout_seconds,
            )
            for spec in facets_for(kind)
        ]

    async def verify(self, submission: Submission) -> VerificationResult:
        """Verify a submission.

        Args:
            submission: Submission to verify (any status; nothing is written).

        Returns:
            VerificationResult with every facet's CheckResult attached.
        """
        safe_emit(
            self.observer,
            WORKFLOW_START,
            {"submission_id": submission.id, "kind": submission.kind.value},
        )
        self._logger.info(
            "verification_started",
            submission_id=submission.id,
            kind=submission.kind.value,
        )

        tasks = self.tasks_for(submission.kind)
        raw_results = await asyncio.gather(
            *[task.run(submission) for task in tasks],
            return_exceptions=True,
        )

        check_results: list[CheckResult] = []
        for task, raw in zip(tasks, raw_results):
            if isinstance(raw, CheckResult):
                check_results.append(raw)
            else:
                self._logger.error(
                    "task_exception",
                    submission_id=submission.id,
                    facet=task.facet.value,
                    error=str(raw),
                )
                check_results.append(
                    CheckResult.fallback(task.facet, f"{type(raw).__name__}: {raw}")
                )

        try:
            result = self.aggregator.aggregate(check_results, submission)
        except Exception as e:
            self._logger.error(
                "aggregation_failed",
                submission_id=submission.id,
                error=str(e),
                exc_info=True,
            )
            result = VerificationResult.system_error(
                submission.id, submission.kind, check_results, str(e)
            )

        if self.synthesis_enabled:
            narrative = await self._get_synthesizer().narrate(submission, result)
            if narrative:
                result = result.model_copy(update={"narrative": narrative})

        safe_emit(
            self.observer,
            WORKFLOW_COMPLETE,
            {
                "submission_id": submission.id,
                "kind": submission.kind.value,
                "final_status": result.final_status.value,
                "overall_score": result.overall_score,
                "reward_quantity": result.reward_quantity,
            },
        )
        self._logger.info(
            "verification_complete",
            submission_id=submission.id,
            final_status=result.final_status.value,
            overall_score=result.overall_score,
            reward_quantity=result.reward_quantity,
        )
        return result
