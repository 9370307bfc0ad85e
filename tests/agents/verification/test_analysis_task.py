"""Tests for AnalysisTask: reply parsing and fallback totality.

Tests cover:
- Successful parsing (pass key, clamping, score derived from confidence)
- Missing evidence short-circuit (capability never called)
- Fallback on timeout, transport error, non-JSON and malformed replies
- Progress event emission and observer failure isolation
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import COMPLAINT_ROLES, PLANTATION_ROLES, ScriptedAnalyzer, make_complaint, make_plantation
from mangrove_system.agents.verification.analysis_task import (
    AnalysisTask,
    coerce_bool,
    coerce_number,
)
from mangrove_system.agents.verification.facets import COMPLAINT_FACETS, PLANTATION_FACETS
from mangrove_system.data_management.schemas import Evidence, Facet

IMAGE_SPEC, GEO_SPEC, TEXT_SPEC = COMPLAINT_FACETS
DATA_SPEC, _, DOCUMENT_SPEC, LOCATION_SPEC = PLANTATION_FACETS


def _task(spec, reply, **kwargs) -> tuple[AnalysisTask, ScriptedAnalyzer]:
    roles = COMPLAINT_ROLES if spec in COMPLAINT_FACETS else PLANTATION_ROLES
    analyzer = ScriptedAnalyzer({roles[spec.facet.value]: reply})
    return AnalysisTask(spec, analyzer, timeout_seconds=kwargs.pop("timeout", 5), **kwargs), analyzer


# ── Parsing ──────────────────────────────────────────────────────────────


class TestParsing:
    @pytest.mark.asyncio
    async def test_successful_analysis(self) -> None:
        task, analyzer = _task(
            IMAGE_SPEC,
            {"imageCheck": True, "confidence": 0.86, "score": 82, "detectedIssues": ["stumps"]},
        )
        result = await task.run(make_complaint())

        assert result.facet == Facet.IMAGE
        assert result.passed is True
        assert result.confidence == 0.86
        assert result.score == 82
        assert result.details["detectedIssues"] == ["stumps"]
        assert result.error is None
        assert analyzer.calls_for("Image Analysis Agent") == 1

    @pytest.mark.asyncio
    async def test_score_derived_from_confidence(self) -> None:
        task, _ = _task(GEO_SPEC, {"geoCheck": True, "confidence": 0.65})
        result = await task.run(make_complaint())
        assert result.score == pytest.approx(65.0)

    @pytest.mark.asyncio
    async def test_values_clamped(self) -> None:
        task, _ = _task(TEXT_SPEC, {"textCheck": "yes", "confidence": 1.7, "score": 140})
        result = await task.run(make_complaint())
        assert result.passed is True
        assert result.confidence == 1.0
        assert result.score == 100.0

    @pytest.mark.asyncio
    async def test_fenced_reply(self) -> None:
        task, _ = _task(
            DATA_SPEC, '```json\n{"dataCheck": false, "confidence": 0.4, "score": 35}\n```'
        )
        result = await task.run(make_plantation())
        assert result.passed is False
        assert result.score == 35
        assert not result.is_fallback

    @pytest.mark.asyncio
    async def test_prompt_contains_submission_fields(self) -> None:
        task, analyzer = _task(LOCATION_SPEC, {"locationCheck": True, "confidence": 0.9})
        await task.run(make_plantation())
        prompt = analyzer.prompts[0]
        assert "21.94" in prompt
        assert "Sundarbans" in prompt
        assert "rhizophora, avicennia" in prompt


# ── Fallback totality ────────────────────────────────────────────────────


class TestFallback:
    @pytest.mark.asyncio
    async def test_missing_evidence_skips_capability(self) -> None:
        task, analyzer = _task(IMAGE_SPEC, {"imageCheck": True, "confidence": 1})
        submission = make_complaint(evidence=Evidence(text="only text"))

        result = await task.run(submission)
        assert result.is_fallback
        assert result.error == "no media supplied"
        assert analyzer.prompts == []

    @pytest.mark.asyncio
    async def test_missing_documents(self) -> None:
        task, analyzer = _task(DOCUMENT_SPEC, {"documentCheck": True})
        result = await task.run(make_plantation(evidence=Evidence()))
        assert result.is_fallback
        assert analyzer.prompts == []

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        async def slow(prompt: str) -> str:
            await asyncio.sleep(5)
            return '{"geoCheck": true}'

        task, _ = _task(GEO_SPEC, slow, timeout=0.01)
        result = await task.run(make_complaint())
        assert result.is_fallback
        assert "timed out" in result.error

    @pytest.mark.parametrize(
        "reply",
        [
            ConnectionError("capability unreachable"),
            "I cannot analyse this image.",
            '{"confidence": 0.9, "score": 90}',
            "[true]",
        ],
        ids=["transport", "non_json", "missing_pass_key", "not_an_object"],
    )
    @pytest.mark.asyncio
    async def test_errors_become_fallback(self, reply) -> None:
        task, _ = _task(IMAGE_SPEC, reply)
        result = await task.run(make_complaint())
        assert result.passed is False
        assert result.confidence == 0.0
        assert result.score == 0.0
        assert result.error


# ── Progress events ──────────────────────────────────────────────────────


class TestProgressEvents:
    @pytest.mark.asyncio
    async def test_emits_facet_event(self) -> None:
        observer = MagicMock()
        task, _ = _task(TEXT_SPEC, {"textCheck": True, "confidence": 0.7}, observer=observer)
        submission = make_complaint()
        await task.run(submission)

        observer.emit.assert_called_once()
        event, payload = observer.emit.call_args.args
        assert event == "text-analysis"
        assert payload["submission_id"] == submission.id
        assert payload["passed"] is True

    @pytest.mark.asyncio
    async def test_observer_failure_ignored(self) -> None:
        observer = MagicMock()
        observer.emit.side_effect = RuntimeError("observer down")
        task, _ = _task(TEXT_SPEC, {"textCheck": True, "confidence": 0.7}, observer=observer)
        result = await task.run(make_complaint())
        assert result.passed is True

    @pytest.mark.asyncio
    async def test_async_analyzer_mock(self) -> None:
        analyzer = AsyncMock()
        analyzer.generate_content.return_value = '{"imageCheck": false, "confidence": 0.3}'
        task = AnalysisTask(IMAGE_SPEC, analyzer, timeout_seconds=5, temperature=0.0)
        result = await task.run(make_complaint())

        assert result.passed is False
        assert result.score == pytest.approx(30.0)
        assert analyzer.generate_content.await_args.kwargs["temperature"] == 0.0


# ── Coercion helpers ─────────────────────────────────────────────────────


class TestCoercion:
    @pytest.mark.parametrize(
        "value,expected",
        [(True, True), (False, False), ("true", True), ("No", False), (1, True), (0, False), (None, False)],
    )
    def test_coerce_bool(self, value, expected) -> None:
        assert coerce_bool(value) is expected

    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 0.5), ("0.7", 0.7), (None, None), ("high", None), (True, None), (float("nan"), None)],
    )
    def test_coerce_number(self, value, expected) -> None:
        assert coerce_number(value) == expected
