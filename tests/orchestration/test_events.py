"""Tests for progress observers and fire-and-forget emission."""

from unittest.mock import MagicMock

import pytest

from mangrove_system.orchestration.events import (
    HubProgressObserver,
    LoggingProgressObserver,
    NullProgressObserver,
    analysis_event,
    build_observer,
    safe_emit,
)


class TestObservers:
    def test_analysis_event_name(self) -> None:
        assert analysis_event("geo") == "geo-analysis"

    def test_null_observer(self) -> None:
        assert NullProgressObserver().emit("workflow-start", {"submission_id": "s"}) is None

    def test_logging_observer(self) -> None:
        LoggingProgressObserver().emit("workflow-start", {"submission_id": "s"})

    def test_hub_observer_publishes_wrapped_message(self) -> None:
        hub = MagicMock()
        HubProgressObserver(hub).emit("image-analysis", {"submission_id": "s", "passed": True})

        hub.publish.assert_called_once()
        _, message = hub.publish.call_args.args
        assert message["event"] == "image-analysis"
        assert message["payload"] == {"submission_id": "s", "passed": True}
        assert message["id"]
        assert message["timestamp"]

    def test_hub_observer_with_real_hub(self) -> None:
        HubProgressObserver().emit("workflow-complete", {"submission_id": "s"})


class TestSafeEmit:
    def test_none_observer(self) -> None:
        safe_emit(None, "workflow-start", {})

    def test_failure_swallowed(self) -> None:
        observer = MagicMock()
        observer.emit.side_effect = RuntimeError("boom")
        safe_emit(observer, "workflow-start", {"submission_id": "s"})
        observer.emit.assert_called_once()


class TestBuildObserver:
    def test_none_channel(self) -> None:
        assert build_observer("none") is None

    def test_log_channel(self) -> None:
        assert isinstance(build_observer("log"), LoggingProgressObserver)

    def test_hub_channel_uses_given_hub(self) -> None:
        hub = MagicMock()
        observer = build_observer("hub", hub)
        assert isinstance(observer, HubProgressObserver)
        assert observer.hub is hub

    def test_unknown_channel(self) -> None:
        with pytest.raises(ValueError, match="unknown progress channel"):
            build_observer("kafka")
