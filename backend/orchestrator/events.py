"""
Turn notifications for presentation collaborators.

Rules:
- Notifications describe facts that have occurred within a turn.
- Notifications carry data only (no behavior).
- Delivery is synchronous, in emission order, fire-and-forget.
- A failing listener never affects the turn's outcome.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from observability.logger import log_event
from orchestrator.enums.stage import Stage


# =============================================================================
# Notification Type Enumeration
# =============================================================================

class NotificationType(str, Enum):
    """Canonical notification types emitted by the pipeline."""

    STAGE_CHANGED = "STAGE_CHANGED"
    TRANSCRIPTION_COMPLETED = "TRANSCRIPTION_COMPLETED"
    RESPONSE_RECEIVED = "RESPONSE_RECEIVED"
    AUDIO_GENERATED = "AUDIO_GENERATED"
    PIPELINE_ERROR = "PIPELINE_ERROR"


# =============================================================================
# Notifications
# =============================================================================

@dataclass(frozen=True)
class Notification:
    """
    Base notification.

    event_type: discriminant
    ts_ms: wall-clock time of emission
    """
    event_type: NotificationType
    ts_ms: int


@dataclass(frozen=True)
class StageChanged(Notification):
    stage: Stage


@dataclass(frozen=True)
class TranscriptionCompleted(Notification):
    text: str


@dataclass(frozen=True)
class ResponseReceived(Notification):
    text: str


@dataclass(frozen=True)
class AudioGenerated(Notification):
    audio: bytes


@dataclass(frozen=True)
class PipelineError(Notification):
    message: str


Listener = Callable[[Notification], None]


def now_ms() -> int:
    return int(time.time() * 1000)


# =============================================================================
# Event bus
# =============================================================================

class EventBus:
    """
    Registered-listener list invoked synchronously in emission order.

    Listeners may unsubscribe (even from inside a callback); delivery of the
    current notification uses the listener snapshot taken at publish time.
    """

    def __init__(self, *, session_id: str | None = None) -> None:
        self._session_id = session_id
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, notification: Notification) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(notification)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "LISTENER_ERROR",
                    "session_id": self._session_id,
                    "notification": notification.event_type.value,
                    "error": f"{type(exc).__name__}: {exc}",
                }, level="WARNING")
