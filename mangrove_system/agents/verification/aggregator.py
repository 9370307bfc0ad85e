"""Deterministic aggregation of facet CheckResults into a verification decision.

The aggregator is the source of truth for status, score and reward. It
dispatches to a ScoringPolicy by submission kind:

Complaint policy (image, geo, text):
- Verified iff at least 2 of 3 facets passed, else rejected
- Severity from three indicators: strong image evidence (passed with
  confidence >= 0.7), protected zone (geo passed inside a mangrove zone),
  severity keywords (text passed with non-empty severityKeywords).
  All three -> high, at least one -> medium, none -> low
- Credits and points per severity, granted only when verified

Plantation policy (data, image, document, location):
- overall = 0.25*data + 0.35*image + 0.25*document + 0.15*location
- >= 80 verified, >= 60 needs_review, otherwise rejected
- Credits when verified: area * survival/100 * species multiplier * overall/100

Usage:
    from mangrove_system.agents.verification.aggregator import Aggregator

    aggregator = Aggregator()
    result = aggregator.aggregate(check_results, submission)
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

import structlog

from mangrove_system.agents.verification.facets import facets_for
from mangrove_system.config.scoring import (
    COMPLAINT_MIN_PASSING,
    LOW_CONFIDENCE_THRESHOLD,
    PLANTATION_AREA_BONUS,
    PLANTATION_FACET_WEIGHTS,
    PLANTATION_SCORE_POINTS,
    REVIEW_THRESHOLD,
    SPECIES_MULTIPLIERS,
    UNKNOWN_SPECIES_MULTIPLIER,
    VERIFIED_THRESHOLD,
)
from mangrove_system.config.settings import settings
from mangrove_system.data_management.schemas import (
    CheckResult,
    Facet,
    Severity,
    Submission,
    SubmissionKind,
    SubmissionStatus,
    VerificationResult,
)

NEEDS_HUMAN_REVIEW_FLAG = "needs_human_review"
LOW_CONFIDENCE_FLAG = "low_confidence"


def species_multiplier(species: Iterable[str]) -> float:
    """Mean sequestration multiplier for a species mix.

    Names match case-insensitively; binomial names ("Rhizophora mucronata")
    match on the genus. Unknown species count as UNKNOWN_SPECIES_MULTIPLIER,
    and an empty list yields it too.
    """
    multipliers = []
    for name in species:
        normalized = name.strip().lower()
        if not normalized:
            continue
        multiplier = SPECIES_MULTIPLIERS.get(normalized)
        if multiplier is None:
            multiplier = SPECIES_MULTIPLIERS.get(
                normalized.split()[0], UNKNOWN_SPECIES_MULTIPLIER
            )
        multipliers.append(multiplier)

    if not multipliers:
        return UNKNOWN_SPECIES_MULTIPLIER
    return sum(multipliers) / len(multipliers)


def calculate_carbon_credits(
    area_hectares: float,
    survival_rate: float,
    species: Iterable[str],
    overall_score: float,
) -> float:
    """Carbon credits for a verified plantation, rounded to 2 decimals.

    Args:
        area_hectares: Planted area.
        survival_rate: Survival percentage (0-100).
        species: Planted species names.
        overall_score: Aggregated verification score (0-100).

    Returns:
        Credit quantity; 0 when area or survival is zero.
    """
    if area_hectares <= 0 or survival_rate <= 0:
        return 0.0
    credits = (
        area_hectares
        * (survival_rate / 100)
        * species_multiplier(species)
        * (overall_score / 100)
    )
    return round(credits, 2)


def plantation_points(overall_score: float, area_hectares: float) -> int:
    """Gamification points for a verified plantation (score band + area bonus)."""
    points = 0
    for threshold, band_points in PLANTATION_SCORE_POINTS:
        if overall_score >= threshold:
            points = band_points
            break
    for threshold, bonus in PLANTATION_AREA_BONUS:
        if area_hectares >= threshold:
            points += bonus
            break
    return points


def advisory_flags(results: Sequence[CheckResult], overall_confidence: float) -> list[str]:
    """Flags shared by both policies: unavailable and failed facets, low confidence."""
    flags: list[str] = []
    for result in results:
        if result.is_fallback:
            flags.append(f"{result.facet.value}_unavailable")
        elif not result.passed:
            flags.append(f"{result.facet.value}_check_failed")
    if overall_confidence < LOW_CONFIDENCE_THRESHOLD:
        flags.append(LOW_CONFIDENCE_FLAG)
    return flags


class ScoringPolicy(ABC):
    """Turns a complete, ordered set of CheckResults into a decision."""

    kind: SubmissionKind

    @abstractmethod
    def decide(
        self,
        results: Sequence[CheckResult],
        submission: Submission,
    ) -> VerificationResult:
        ...


class ComplaintPolicy(ScoringPolicy):
    """Majority rule over image, geo and text with a severity label."""

    kind = SubmissionKind.COMPLAINT

    def __init__(
        self,
        severity_credits: Optional[dict[str, float]] = None,
        severity_points: Optional[dict[str, int]] = None,
        strong_image_confidence: Optional[float] = None,
    ) -> None:
        self.severity_credits = severity_credits or settings.complaint_severity_credits
        self.severity_points = severity_points or settings.complaint_severity_points
        self.strong_image_confidence = (
            strong_image_confidence
            if strong_image_confidence is not None
            else settings.strong_image_confidence
        )

    def severity(self, by_facet: dict[Facet, CheckResult]) -> Severity:
        """Severity label from the three indicators."""
        image = by_facet[Facet.IMAGE]
        geo = by_facet[Facet.GEO]
        text = by_facet[Facet.TEXT]

        indicators = [
            image.passed and image.confidence >= self.strong_image_confidence,
            geo.passed and bool(geo.details.get("isInMangroveZone")),
            text.passed and bool(text.details.get("severityKeywords")),
        ]
        if all(indicators):
            return Severity.HIGH
        if any(indicators):
            return Severity.MEDIUM
        return Severity.LOW

    def decide(
        self,
        results: Sequence[CheckResult],
        submission: Submission,
    ) -> VerificationResult:
        by_facet = {r.facet: r for r in results}
        passed = sum(1 for r in results if r.passed)
        status = (
            SubmissionStatus.VERIFIED
            if passed >= COMPLAINT_MIN_PASSING
            else SubmissionStatus.REJECTED
        )
        severity = self.severity(by_facet)

        overall_score = round(sum(r.score for r in results) / len(results), 2)
        overall_confidence = round(sum(r.confidence for r in results) / len(results), 4)

        reward = 0.0
        points = 0
        if status == SubmissionStatus.VERIFIED:
            reward = float(self.severity_credits.get(severity.value, 0.0))
            points = int(self.severity_points.get(severity.value, 0))

        summary = (
            f"Complaint {status.value}: {passed}/{len(results)} checks passed, "
            f"severity {severity.value}, score {overall_score:.2f}"
        )

        return VerificationResult(
            submission_id=submission.id,
            kind=self.kind,
            final_status=status,
            overall_score=overall_score,
            overall_confidence=overall_confidence,
            severity=severity,
            reward_quantity=reward,
            points=points,
            flags=advisory_flags(results, overall_confidence),
            per_facet_results=list(results),
            summary=summary,
            verified_at=datetime.now(timezone.utc),
        )


class PlantationPolicy(ScoringPolicy):
    """Weighted score with verified / needs_review / rejected bands."""

    kind = SubmissionKind.PLANTATION

    def __init__(self, weights: Optional[dict[str, float]] = None) -> None:
        self.weights = weights or PLANTATION_FACET_WEIGHTS

    def band(self, overall_score: float) -> SubmissionStatus:
        if overall_score >= VERIFIED_THRESHOLD:
            return SubmissionStatus.VERIFIED
        if overall_score >= REVIEW_THRESHOLD:
            return SubmissionStatus.NEEDS_REVIEW
        return SubmissionStatus.REJECTED

    def decide(
        self,
        results: Sequence[CheckResult],
        submission: Submission,
    ) -> VerificationResult:
        details = submission.plantation

        overall_score = round(
            sum(self.weights[r.facet.value] * r.score for r in results), 2
        )
        overall_confidence = round(
            sum(self.weights[r.facet.value] * r.confidence for r in results), 4
        )
        status = self.band(overall_score)

        reward = 0.0
        points = 0
        if status == SubmissionStatus.VERIFIED:
            reward = calculate_carbon_credits(
                details.area_hectares,
                details.survival_rate,
                details.species,
                overall_score,
            )
            points = plantation_points(overall_score, details.area_hectares)

        flags = advisory_flags(results, overall_confidence)
        if status == SubmissionStatus.NEEDS_REVIEW:
            flags.append(NEEDS_HUMAN_REVIEW_FLAG)

        passed = sum(1 for r in results if r.passed)
        summary = (
            f"Plantation {status.value}: score {overall_score:.2f}, "
            f"{passed}/{len(results)} checks passed, {reward:.2f} credits"
        )

        return VerificationResult(
            submission_id=submission.id,
            kind=self.kind,
            final_status=status,
            overall_score=overall_score,
            overall_confidence=overall_confidence,
            reward_quantity=reward,
            points=points,
            flags=flags,
            per_facet_results=list(results),
            summary=summary,
            verified_at=datetime.now(timezone.utc),
        )


class Aggregator:
    """Dispatches CheckResults to the scoring policy for the submission kind."""

    def __init__(self, policies: Optional[Iterable[ScoringPolicy]] = None) -> None:
        """Initialize Aggregator.

        Args:
            policies: Scoring policies (defaults: complaint and plantation).
        """
        if policies is None:
            policies = [ComplaintPolicy(), PlantationPolicy()]
        self.policies: dict[SubmissionKind, ScoringPolicy] = {p.kind: p for p in policies}
        self._logger = structlog.get_logger().bind(component="Aggregator")

    def aggregate(
        self,
        check_results: Iterable[CheckResult],
        submission: Submission,
    ) -> VerificationResult:
        """Combine facet results into a decision.

        Facets missing from check_results are filled with fallbacks, so the
        returned per_facet_results always holds every facet of the kind in
        registry order. Results for facets the kind does not use are ignored.

        Args:
            check_results: Results produced by the analysis tasks.
            submission: Submission being decided.

        Returns:
            VerificationResult.

        Raises:
            KeyError: If no policy is registered for the submission kind.
        """
        policy = self.policies[submission.kind]

        received: dict[Facet, CheckResult] = {}
        for result in check_results:
            received.setdefault(result.facet, result)

        complete = [
            received.get(spec.facet)
            or CheckResult.fallback(spec.facet, "no result produced")
            for spec in facets_for(submission.kind)
        ]

        result = policy.decide(complete, submission)
        self._logger.info(
            "submission_aggregated",
            submission_id=submission.id,
            kind=submission.kind.value,
            final_status=result.final_status.value,
            overall_score=result.overall_score,
            reward_quantity=result.reward_quantity,
            flags=result.flags,
        )
        return result
