"""Progress observers for verification workflow events.

The pipeline reports progress through an injected observer. Events are named
`workflow-start`, `<facet>-analysis`, `synthesis` and `workflow-complete`;
each payload carries at least the submission id.

Emission is fire-and-forget: `emit()` is synchronous, never awaited, and a
failing observer is logged and ignored so it cannot affect a verification.

Usage:
    from aiopubsub import Hub
    from mangrove_system.orchestration.events import HubProgressObserver

    hub = Hub()
    pipeline = VerificationPipeline(observer=HubProgressObserver(hub))

    # Or by channel name (settings.progress_events, CLI --events):
    pipeline = VerificationPipeline(observer=build_observer("log"))
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import structlog
from aiopubsub import Hub, Key

_logger = structlog.get_logger().bind(component="ProgressEvents")

WORKFLOW_START = "workflow-start"
WORKFLOW_COMPLETE = "workflow-complete"
SYNTHESIS = "synthesis"


def analysis_event(facet: str) -> str:
    """Event name for one facet's analysis, e.g. `image-analysis`."""
    return f"{facet}-analysis"


class ProgressObserver(Protocol):
    """Receives workflow progress events."""

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        ...


class NullProgressObserver:
    """Default observer: drops every event."""

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        return None


class LoggingProgressObserver:
    """Writes every event as a structlog line."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger().bind(component="ProgressObserver")

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self._logger.info("progress_event", progress_event=event, **payload)


class HubProgressObserver:
    """Publishes events on an aiopubsub hub under ("verification", <event>).

    Subscribers register on Key("verification", "*") for all events or on a
    specific event name.
    """

    def __init__(self, hub: Optional[Hub] = None, namespace: str = "verification") -> None:
        self.hub = hub or Hub()
        self.namespace = namespace

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        message = {
            "id": str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "payload": payload,
        }
        self.hub.publish(Key(self.namespace, event), message)


def build_observer(mode: str, hub: Optional[Hub] = None) -> Optional[ProgressObserver]:
    """Build the observer for a progress channel name.

    Args:
        mode: "none", "log" or "hub".
        hub: Hub for the "hub" channel (a new one if None).

    Returns:
        The observer, or None for "none".

    Raises:
        ValueError: Unknown channel name.
    """
    if mode == "none":
        return None
    if mode == "log":
        return LoggingProgressObserver()
    if mode == "hub":
        return HubProgressObserver(hub)
    raise ValueError(f"unknown progress channel: {mode!r} (expected none, log or hub)")


def safe_emit(
    observer: Optional[ProgressObserver],
    event: str,
    payload: dict[str, Any],
) -> None:
    """Emit an event, logging and swallowing any observer failure."""
    if observer is None:
        return
    try:
        observer.emit(event, payload)
    except Exception as e:
        _logger.warning("progress_emit_failed", progress_event=event, error=str(e))
