"""Single-facet analysis task.

An AnalysisTask asks the content-analysis capability about one evidence
facet of one submission and turns the reply into a CheckResult. It is total:
missing evidence, timeouts, transport errors and unparseable replies all
produce the fallback CheckResult (passed=False, confidence=0, score=0) with
the reason recorded in `error`. Nothing is raised to the pipeline.

Usage:
    from mangrove_system.agents.verification.analysis_task import AnalysisTask
    from mangrove_system.agents.verification.facets import facets_for

    tasks = [AnalysisTask(spec, analyzer) for spec in facets_for(submission.kind)]
    results = await asyncio.gather(*(task.run(submission) for task in tasks))
"""

import asyncio
import time
from typing import Any, Optional

import structlog

from mangrove_system.agents.verification.facets import FacetSpec
from mangrove_system.config.settings import settings
from mangrove_system.data_management.schemas import CheckResult, Submission
from mangrove_system.llm.gemini_client import ContentAnalyzer
from mangrove_system.llm.response_parsing import extract_json_object
from mangrove_system.orchestration.events import (
    ProgressObserver,
    analysis_event,
    safe_emit,
)

_TRUE_STRINGS = {"true", "yes", "pass", "passed", "1"}


def coerce_bool(value: Any) -> bool:
    """Interpret a model-supplied verdict; strings like "true"/"yes" count."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def coerce_number(value: Any) -> Optional[float]:
    """Parse a numeric field, returning None when absent or invalid."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return number


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class AnalysisTask:
    """Runs one facet analysis for a submission."""

    def __init__(
        self,
        spec: FacetSpec,
        analyzer: ContentAnalyzer,
        observer: Optional[ProgressObserver] = None,
        timeout_seconds: Optional[float] = None,
        temperature: Optional[float] = None,
    ) -> None:
        """Initialize AnalysisTask.

        Args:
            spec: Facet to analyse.
            analyzer: Content-analysis capability.
            observer: Optional progress observer.
            timeout_seconds: Per-call timeout (defaults to settings).
            temperature: Sampling temperature (defaults to settings).
        """
        self.spec = spec
        self.analyzer = analyzer
        self.observer = observer
        self.timeout_seconds = timeout_seconds or settings.analysis_timeout_seconds
        self.temperature = (
            temperature if temperature is not None else settings.analysis_temperature
        )
        self._logger = structlog.get_logger().bind(
            component="AnalysisTask", facet=spec.facet.value
        )

    @property
    def facet(self):
        return self.spec.facet

    async def run(self, submission: Submission) -> CheckResult:
        """Analyse the facet. Never raises.

        Args:
            submission: Submission whose evidence is analysed.

        Returns:
            Parsed CheckResult, or the fallback when analysis was impossible.
        """
        start = time.perf_counter()
        result = await self._analyse(submission)
        elapsed_ms = round((time.perf_counter() - start) * 1000, 1)

        if result.is_fallback:
            self._logger.warning(
                "facet_fallback",
                submission_id=submission.id,
                reason=result.error,
                elapsed_ms=elapsed_ms,
            )
        else:
            self._logger.info(
                "facet_analysed",
                submission_id=submission.id,
                passed=result.passed,
                confidence=result.confidence,
                score=result.score,
                elapsed_ms=elapsed_ms,
            )

        safe_emit(
            self.observer,
            analysis_event(self.spec.facet.value),
            {
                "submission_id": submission.id,
                "facet": self.spec.facet.value,
                "passed": result.passed,
                "confidence": result.confidence,
                "score": result.score,
                "error": result.error,
            },
        )
        return result

    async def _analyse(self, submission: Submission) -> CheckResult:
        if not self.spec.has_evidence(submission):
            return CheckResult.fallback(self.spec.facet, self.spec.missing_reason)

        try:
            prompt = self.spec.build_prompt(submission)
            response_text = await asyncio.wait_for(
                self.analyzer.generate_content(prompt, temperature=self.temperature),
                timeout=self.timeout_seconds,
            )
            payload = extract_json_object(response_text)
            return self.parse_payload(payload)
        except asyncio.TimeoutError:
            return CheckResult.fallback(
                self.spec.facet, f"analysis timed out after {self.timeout_seconds}s"
            )
        except Exception as e:
            return CheckResult.fallback(
                self.spec.facet, f"{type(e).__name__}: {e}"
            )

    def parse_payload(self, payload: dict[str, Any]) -> CheckResult:
        """Convert a reply object into a CheckResult.

        Args:
            payload: JSON object returned by the capability.

        Returns:
            CheckResult with clamped confidence and score.

        Raises:
            ValueError: If the facet's pass key is missing.
        """
        if self.spec.check_key not in payload:
            raise ValueError(f"response missing '{self.spec.check_key}'")

        passed = coerce_bool(payload[self.spec.check_key])
        confidence = _clamp(coerce_number(payload.get("confidence")) or 0.0, 0.0, 1.0)

        score = coerce_number(payload.get("score"))
        if score is None:
            score = confidence * 100
        score = _clamp(score, 0.0, 100.0)

        return CheckResult(
            facet=self.spec.facet,
            passed=passed,
            confidence=confidence,
            score=score,
            details=payload,
        )
