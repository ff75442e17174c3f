"""
Tutor session container.

Responsibilities:
- Own one conversation history and the pipeline that drives it
- Refuse overlapping turns (one turn in flight per session)
- Cache behavior instances per mode (puzzle state lives on the behavior)
- Export / import / reset history on request

Non-responsibilities:
- Turn sequencing (orchestrator.pipeline)
- Backend selection (session.backends)
- Transport (server.routes)
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Mapping, TYPE_CHECKING
from uuid import uuid4

from behaviors.base import ResponseBehavior
from behaviors.catalog import BehaviorMode, build_behavior, parse_mode
from context.conversation import ConversationHistory
from context.serialization import export_from_dict, export_to_dict
from learning.progress import VocabularyTracker
from observability.logger import log_event
from orchestrator.cancellation import CancelToken
from orchestrator.events import EventBus
from orchestrator.executor import ActionExecutor
from orchestrator.pipeline import TurnPipeline, TurnResult
from orchestrator.retry import RetryPolicy, Sleeper
from session.backends import BackendFactory

if TYPE_CHECKING:
    from config import AppConfig


def new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


class SessionBusyError(RuntimeError):
    """Raised when a turn is requested while another one is still running."""


# ---------------------------------------------------------------------
# TutorSession
# ---------------------------------------------------------------------


class TutorSession:
    """Mutable runtime container for a single tutoring session."""

    def __init__(
        self,
        *,
        session_id: str,
        config: AppConfig,
        pipeline: TurnPipeline,
        tracker: VocabularyTracker | None = None,
    ) -> None:
        self.session_id = session_id
        self.created_at = time.time()
        self._config = config
        self._pipeline = pipeline
        self._tracker = tracker
        self._behaviors: dict[BehaviorMode, ResponseBehavior] = {}
        self._processing = False
        self._cancel: CancelToken | None = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def pipeline(self) -> TurnPipeline:
        return self._pipeline

    @property
    def history(self) -> ConversationHistory:
        return self._pipeline.history

    @property
    def bus(self) -> EventBus:
        return self._pipeline.bus

    @property
    def is_processing(self) -> bool:
        return self._processing

    def log_context(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "is_processing": self._processing,
            "stage": self._pipeline.stage.value,
            "history_len": len(self.history),
        }

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def behavior_for(self, mode: str | BehaviorMode | None = None) -> ResponseBehavior:
        """
        Return the session's behavior for `mode` (default: config.default_behavior).

        Raises:
            ValueError for an unknown mode.
        """
        resolved = parse_mode(mode or self._config.default_behavior)
        behavior = self._behaviors.get(resolved)
        if behavior is None:
            behavior = build_behavior(resolved, self._config, tracker=self._tracker)
            self._behaviors[resolved] = behavior
        return behavior

    async def run_turn(
        self,
        audio: bytes,
        mode: str | BehaviorMode | None = None,
        *,
        system_prompt: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> TurnResult:
        """
        Run one full turn.

        Raises:
            SessionBusyError if a turn is already in flight.
            ValueError for an unknown mode.
        """
        if self._processing:
            raise SessionBusyError(f"session {self.session_id} is already processing a turn")

        behavior = self.behavior_for(mode)

        self._processing = True
        self._cancel = CancelToken()
        try:
            return await self._pipeline.execute_turn(
                audio,
                behavior,
                system_prompt=system_prompt,
                parameters=parameters,
                cancel=self._cancel,
            )
        finally:
            self._processing = False
            self._cancel = None

    def cancel_turn(self, reason: str = "cancelled by client") -> bool:
        """Request cancellation of the in-flight turn. Returns False when idle."""
        if self._cancel is None:
            return False
        self._cancel.cancel(reason)
        return True

    # ------------------------------------------------------------------
    # History management
    # ------------------------------------------------------------------

    def reset(self) -> None:
        if self._processing:
            raise SessionBusyError(f"session {self.session_id} is processing a turn")
        self._pipeline.reset_conversation()
        log_event({"event_type": "SESSION_RESET", "session_id": self.session_id})

    def export_history(self) -> dict[str, Any]:
        return export_to_dict(self.history.export())

    def import_history(self, payload: Mapping[str, Any]) -> None:
        """
        Replace the history with a previously exported one.

        Raises:
            ValueError on a malformed payload.
            SessionBusyError if a turn is in flight.
        """
        if self._processing:
            raise SessionBusyError(f"session {self.session_id} is processing a turn")
        self.history.import_export(export_from_dict(payload))

    def set_speech_speed(self, multiplier: float) -> float:
        """Set the synthesis speed (clamped). Returns the applied value."""
        self._pipeline.tts.set_speed(multiplier)
        applied = self._pipeline.tts.speed
        log_event({
            "event_type": "SPEECH_SPEED_SET",
            "session_id": self.session_id,
            "requested": multiplier,
            "applied": applied,
        }, level="DEBUG")
        return applied


# ---------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------


def create_session(
    config: AppConfig,
    backends: BackendFactory,
    *,
    session_id: str | None = None,
    tracker: VocabularyTracker | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> TutorSession:
    """Wire history, executor and pipeline for one new session."""
    session_id = session_id or new_session_id()

    history = ConversationHistory(
        capacity=config.history_capacity,
        summarize=config.history_summarize,
        session_id=session_id,
    )
    executor = ActionExecutor(
        backends.generation(),
        RetryPolicy(max_retries=config.max_retries, retry_delay_s=config.retry_delay_s),
        sleep=sleep,
        session_id=session_id,
    )
    pipeline = TurnPipeline(
        stt=backends.transcription(),
        tts=backends.synthesis(),
        executor=executor,
        history=history,
        bus=EventBus(session_id=session_id),
        recent_history_count=config.recent_history_count,
        target_language=config.target_language,
        proficiency_level=config.proficiency_level,
        session_id=session_id,
    )
    return TutorSession(
        session_id=session_id,
        config=config,
        pipeline=pipeline,
        tracker=tracker,
    )


# ---------------------------------------------------------------------
# SessionStore
# ---------------------------------------------------------------------


class SessionStore:
    """
    In-memory registry of live sessions.

    `factory` receives a fresh session id and returns the wired session.
    """

    def __init__(self, factory: Callable[[str], TutorSession]) -> None:
        self._factory = factory
        self._sessions: dict[str, TutorSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self) -> TutorSession:
        session = self._factory(new_session_id())
        self._sessions[session.session_id] = session
        log_event({"event_type": "SESSION_CREATED", "session_id": session.session_id})
        return session

    def get(self, session_id: str) -> TutorSession:
        """
        Raises:
            KeyError if no such session exists.
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(session_id) from None

    def remove(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        log_event({"event_type": "SESSION_ENDED", "session_id": session_id})
        return True
