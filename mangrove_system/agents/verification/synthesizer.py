"""Narrative synthesis for an already-decided verification.

After the aggregator decides, one more capability call explains the decision
for human reviewers. The narrative is informational only: it never changes
status, score or reward, and any failure simply leaves it empty.
"""

import asyncio
import json
from typing import Optional

import structlog

from mangrove_system.config.prompts import (
    COMPLAINT_SYNTHESIS_PROMPT,
    PLANTATION_SYNTHESIS_PROMPT,
)
from mangrove_system.config.settings import settings
from mangrove_system.data_management.schemas import (
    Submission,
    SubmissionKind,
    VerificationResult,
)
from mangrove_system.llm.gemini_client import ContentAnalyzer
from mangrove_system.llm.response_parsing import extract_json_object
from mangrove_system.orchestration.events import SYNTHESIS, ProgressObserver, safe_emit


def _facet_lines(result: VerificationResult) -> str:
    lines = []
    for check in result.per_facet_results:
        status = "PASS" if check.passed else "FAIL"
        line = (
            f"- {check.facet.value}: {status} "
            f"(confidence {check.confidence:.2f}, score {check.score:.0f})"
        )
        if check.error:
            line += f" unavailable: {check.error}"
        else:
            findings = {k: v for k, v in check.details.items() if k not in ("confidence", "score")}
            line += f" {json.dumps(findings, default=str)[:500]}"
        lines.append(line)
    return "\n".join(lines)


class Synthesizer:
    """Requests a reviewer-facing narrative for a decision."""

    def __init__(
        self,
        analyzer: ContentAnalyzer,
        observer: Optional[ProgressObserver] = None,
        timeout_seconds: Optional[float] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self.analyzer = analyzer
        self.observer = observer
        self.timeout_seconds = timeout_seconds or settings.analysis_timeout_seconds
        self.temperature = (
            temperature if temperature is not None else settings.synthesis_temperature
        )
        self._logger = structlog.get_logger().bind(component="Synthesizer")

    def build_prompt(self, submission: Submission, result: VerificationResult) -> str:
        flags = ", ".join(result.flags) or "none"
        if submission.kind == SubmissionKind.COMPLAINT:
            return COMPLAINT_SYNTHESIS_PROMPT.format(
                category=submission.complaint.category.value,
                final_status=result.final_status.value,
                severity=result.severity.value if result.severity else "n/a",
                overall_score=result.overall_score,
                flags=flags,
                facet_results=_facet_lines(result),
            )
        details = submission.plantation
        return PLANTATION_SYNTHESIS_PROMPT.format(
            plantation_name=details.name,
            area=details.area_hectares,
            species=", ".join(details.species) or "Not provided",
            final_status=result.final_status.value,
            overall_score=result.overall_score,
            reward_quantity=result.reward_quantity,
            flags=flags,
            facet_results=_facet_lines(result),
        )

    async def narrate(
        self,
        submission: Submission,
        result: VerificationResult,
    ) -> Optional[str]:
        """Produce narrative text for a decision. Never raises.

        Args:
            submission: Decided submission.
            result: Aggregated decision to explain.

        Returns:
            Narrative text, or None if synthesis failed.
        """
        narrative: Optional[str] = None
        error: Optional[str] = None
        try:
            response_text = await asyncio.wait_for(
                self.analyzer.generate_content(
                    self.build_prompt(submission, result),
                    temperature=self.temperature,
                ),
                timeout=self.timeout_seconds,
            )
            payload = extract_json_object(response_text)
            summary = str(payload.get("verificationSummary") or "").strip()
            raw_recommendations = payload.get("recommendations")
            if not isinstance(raw_recommendations, list):
                raw_recommendations = []
            recommendations = [str(r).strip() for r in raw_recommendations if str(r).strip()]
            if summary:
                narrative = summary
                if recommendations:
                    narrative += "\nRecommendations:\n" + "\n".join(
                        f"- {r}" for r in recommendations
                    )
            else:
                error = "response missing 'verificationSummary'"
        except asyncio.TimeoutError:
            error = f"synthesis timed out after {self.timeout_seconds}s"
        except Exception as e:
            error = f"{type(e).__name__}: {e}"

        if error:
            self._logger.warning(
                "synthesis_failed", submission_id=submission.id, error=error
            )

        safe_emit(
            self.observer,
            SYNTHESIS,
            {
                "submission_id": submission.id,
                "has_narrative": narrative is not None,
                "error": error,
            },
        )
        return narrative
