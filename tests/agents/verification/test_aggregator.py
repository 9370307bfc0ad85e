"""Comprehensive tests for the deterministic Aggregator.

Tests cover:
- Complaint majority rule over every pass/fail combination
- Complaint severity indicators and per-severity rewards
- Plantation weighted score, status bands and monotonicity
- Carbon credit formula, species multipliers and points
- Advisory flags, missing-facet filling, all-fallback rejection
"""

import itertools

import pytest

from conftest import make_check, make_complaint, make_plantation
from mangrove_system.agents.verification.aggregator import (
    Aggregator,
    ComplaintPolicy,
    PlantationPolicy,
    calculate_carbon_credits,
    plantation_points,
    species_multiplier,
)
from mangrove_system.data_management.schemas import (
    CheckResult,
    Facet,
    PlantationDetails,
    Severity,
    SubmissionStatus,
)

COMPLAINT_FACETS = (Facet.IMAGE, Facet.GEO, Facet.TEXT)
PLANTATION_FACETS = (Facet.DATA, Facet.IMAGE, Facet.DOCUMENT, Facet.LOCATION)

SEVERITY_CREDITS = {"low": 0.5, "medium": 1.0, "high": 2.0}
SEVERITY_POINTS = {"low": 10, "medium": 20, "high": 30}


@pytest.fixture
def aggregator() -> Aggregator:
    return Aggregator(
        [
            ComplaintPolicy(
                severity_credits=SEVERITY_CREDITS,
                severity_points=SEVERITY_POINTS,
                strong_image_confidence=0.7,
            ),
            PlantationPolicy(),
        ]
    )


def _plantation_checks(data: float, image: float, document: float, location: float) -> list[CheckResult]:
    scores = dict(zip(PLANTATION_FACETS, (data, image, document, location)))
    return [make_check(f, passed=s >= 50, confidence=s / 100, score=s) for f, s in scores.items()]


# ── Complaint policy ─────────────────────────────────────────────────────


class TestComplaintMajority:
    @pytest.mark.parametrize("outcomes", list(itertools.product([True, False], repeat=3)))
    def test_majority_rule(self, aggregator: Aggregator, outcomes: tuple[bool, ...]) -> None:
        checks = [
            make_check(facet, passed=passed, confidence=0.6, score=60)
            for facet, passed in zip(COMPLAINT_FACETS, outcomes)
        ]
        result = aggregator.aggregate(checks, make_complaint())

        expected = SubmissionStatus.VERIFIED if sum(outcomes) >= 2 else SubmissionStatus.REJECTED
        assert result.final_status == expected
        if expected == SubmissionStatus.REJECTED:
            assert result.reward_quantity == 0
            assert result.points == 0

    def test_all_fallback_rejected(self, aggregator: Aggregator) -> None:
        checks = [CheckResult.fallback(f, "capability down") for f in COMPLAINT_FACETS]
        result = aggregator.aggregate(checks, make_complaint())
        assert result.final_status == SubmissionStatus.REJECTED
        assert result.reward_quantity == 0
        assert result.overall_score == 0
        assert result.severity == Severity.LOW
        assert "image_unavailable" in result.flags
        assert "low_confidence" in result.flags

    def test_scores_are_means(self, aggregator: Aggregator) -> None:
        checks = [
            make_check(Facet.IMAGE, confidence=0.9, score=90),
            make_check(Facet.GEO, confidence=0.6, score=60),
            make_check(Facet.TEXT, passed=False, confidence=0.3, score=30),
        ]
        result = aggregator.aggregate(checks, make_complaint())
        assert result.overall_score == 60.0
        assert result.overall_confidence == pytest.approx(0.6)
        assert "text_check_failed" in result.flags


class TestComplaintSeverity:
    def _checks(self, image_conf=0.8, in_zone=True, keywords=("felling",), text_passed=True):
        return [
            make_check(Facet.IMAGE, confidence=image_conf, score=image_conf * 100),
            make_check(Facet.GEO, isInMangroveZone=in_zone),
            make_check(Facet.TEXT, passed=text_passed, severityKeywords=list(keywords)),
        ]

    def test_high_with_all_indicators(self, aggregator: Aggregator) -> None:
        result = aggregator.aggregate(self._checks(), make_complaint())
        assert result.severity == Severity.HIGH
        assert result.reward_quantity == 2.0
        assert result.points == 30

    def test_medium_with_one_indicator(self, aggregator: Aggregator) -> None:
        result = aggregator.aggregate(
            self._checks(image_conf=0.5, in_zone=False), make_complaint()
        )
        assert result.final_status == SubmissionStatus.VERIFIED
        assert result.severity == Severity.MEDIUM
        assert result.reward_quantity == 1.0

    def test_low_without_indicators(self, aggregator: Aggregator) -> None:
        result = aggregator.aggregate(
            self._checks(image_conf=0.5, in_zone=False, keywords=()), make_complaint()
        )
        assert result.severity == Severity.LOW
        assert result.reward_quantity == 0.5
        assert result.points == 10

    def test_failed_text_keywords_do_not_count(self, aggregator: Aggregator) -> None:
        result = aggregator.aggregate(
            self._checks(image_conf=0.5, in_zone=False, text_passed=False), make_complaint()
        )
        assert result.severity == Severity.LOW

    def test_rejected_complaint_keeps_severity_without_reward(self, aggregator: Aggregator) -> None:
        checks = [
            make_check(Facet.IMAGE, confidence=0.9),
            make_check(Facet.GEO, passed=False, isInMangroveZone=True),
            make_check(Facet.TEXT, passed=False),
        ]
        result = aggregator.aggregate(checks, make_complaint())
        assert result.final_status == SubmissionStatus.REJECTED
        assert result.severity == Severity.MEDIUM
        assert result.reward_quantity == 0


# ── Plantation policy ────────────────────────────────────────────────────


class TestPlantationScoring:
    def test_weighted_score_and_credits(self, aggregator: Aggregator) -> None:
        result = aggregator.aggregate(_plantation_checks(90, 85, 80, 95), make_plantation())
        assert result.overall_score == 86.5
        assert result.final_status == SubmissionStatus.VERIFIED
        assert result.reward_quantity == 5.55
        assert result.points == 50
        assert result.severity is None

    @pytest.mark.parametrize(
        "score,expected",
        [
            (80.0, SubmissionStatus.VERIFIED),
            (79.99, SubmissionStatus.NEEDS_REVIEW),
            (60.0, SubmissionStatus.NEEDS_REVIEW),
            (59.99, SubmissionStatus.REJECTED),
        ],
    )
    def test_band_boundaries(self, aggregator: Aggregator, score: float, expected) -> None:
        result = aggregator.aggregate(_plantation_checks(score, score, score, score), make_plantation())
        assert result.overall_score == score
        assert result.final_status == expected

    def test_needs_review_flag_and_no_reward(self, aggregator: Aggregator) -> None:
        result = aggregator.aggregate(_plantation_checks(70, 70, 70, 70), make_plantation())
        assert result.final_status == SubmissionStatus.NEEDS_REVIEW
        assert "needs_human_review" in result.flags
        assert result.reward_quantity == 0
        assert result.points == 0

    @pytest.mark.parametrize("facet_index", range(4))
    def test_monotonic_in_each_facet(self, aggregator: Aggregator, facet_index: int) -> None:
        previous = -1.0
        for score in (0, 20, 40, 60, 80, 100):
            scores = [50.0] * 4
            scores[facet_index] = score
            result = aggregator.aggregate(_plantation_checks(*scores), make_plantation())
            assert result.overall_score >= previous
            previous = result.overall_score

    def test_all_fallback_rejected(self, aggregator: Aggregator) -> None:
        checks = [CheckResult.fallback(f, "capability down") for f in PLANTATION_FACETS]
        result = aggregator.aggregate(checks, make_plantation())
        assert result.final_status == SubmissionStatus.REJECTED
        assert result.overall_score == 0
        assert result.reward_quantity == 0

    def test_missing_facets_filled_with_fallbacks(self, aggregator: Aggregator) -> None:
        checks = [make_check(Facet.IMAGE, score=100, confidence=1.0)]
        result = aggregator.aggregate(checks, make_plantation())

        assert [r.facet for r in result.per_facet_results] == list(PLANTATION_FACETS)
        assert result.overall_score == 35.0
        assert result.facet_result(Facet.DATA).is_fallback
        assert "document_unavailable" in result.flags

    def test_foreign_facets_ignored(self, aggregator: Aggregator) -> None:
        checks = _plantation_checks(90, 85, 80, 95) + [make_check(Facet.GEO, score=0)]
        result = aggregator.aggregate(checks, make_plantation())
        assert result.overall_score == 86.5
        assert result.facet_result(Facet.GEO) is None

    def test_zero_survival_gives_zero_credits(self, aggregator: Aggregator) -> None:
        submission = make_plantation(
            plantation=PlantationDetails(
                name="Dry plot",
                area_hectares=4,
                species=("rhizophora",),
                planting_date="2024-01-01",
                survival_rate=0,
            )
        )
        result = aggregator.aggregate(_plantation_checks(90, 90, 90, 90), submission)
        assert result.final_status == SubmissionStatus.VERIFIED
        assert result.reward_quantity == 0


# ── Reward helpers ───────────────────────────────────────────────────────


class TestRewardHelpers:
    def test_reward_determinism(self) -> None:
        assert calculate_carbon_credits(2.0, 80, ["rhizophora"], 90) == 2.16

    def test_zero_area(self) -> None:
        assert calculate_carbon_credits(0, 90, ["rhizophora"], 90) == 0.0

    @pytest.mark.parametrize(
        "species,expected",
        [
            (["rhizophora", "avicennia"], 1.35),
            (["Rhizophora mucronata"], 1.5),
            (["  AVICENNIA  "], 1.2),
            (["unknown tree"], 0.8),
            ([], 0.8),
            (["birch", "pine"], 0.55),
        ],
    )
    def test_species_multiplier(self, species: list[str], expected: float) -> None:
        assert species_multiplier(species) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "score,area,expected",
        [
            (95, 1, 50),
            (90, 5, 70),
            (85, 2, 40),
            (80, 1.9, 30),
            (75, 0.5, 20),
            (65, 3, 20),
        ],
    )
    def test_plantation_points(self, score: float, area: float, expected: int) -> None:
        assert plantation_points(score, area) == expected
