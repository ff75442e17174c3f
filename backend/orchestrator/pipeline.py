"""
Turn pipeline.

Responsibilities:
- Drive one turn: transcribe -> generate (via executor) -> synthesize
- Append exactly the User transcript and the Assistant reply to history
- Publish stage and data notifications on the event bus
- Convert every failure into a TurnResult (never raise to the caller)

Non-responsibilities:
- Audio capture and playback
- Prompt construction (behaviors)
- Retry semantics (executor)
- Overlapping-turn protection (session)

Stage flow for a successful turn:
    TRANSCRIBING -> GENERATING -> SYNTHESIZING -> COMPLETE
Any failure ends the turn in ERROR.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from adapters.asr.base import TranscriptionBackend
from adapters.tts.base import SynthesisBackend
from behaviors.base import ActionContext, ResponseBehavior, has_text
from constants import RECENT_HISTORY_COUNT
from context.conversation import ConversationHistory, Message, Role
from observability.logger import log_event
from observability.metrics import timed
from orchestrator.cancellation import CancelToken, is_cancelled
from orchestrator.enums.stage import Stage
from orchestrator.events import (
    AudioGenerated,
    EventBus,
    NotificationType,
    PipelineError,
    ResponseReceived,
    StageChanged,
    TranscriptionCompleted,
    now_ms,
)
from orchestrator.executor import ActionExecutor


@dataclass
class TurnResult:
    """Outcome of one turn. Fields are filled as far as the turn progressed."""
    success: bool
    transcribed_text: str | None = None
    generated_text: str | None = None
    synthesized_audio: bytes | None = None
    error_message: str | None = None


class TurnFailed(Exception):
    """
    Internal signal that ends a turn.

    message: user-facing error placed on the TurnResult
    notice: text published on the PipelineError notification
    """

    def __init__(self, message: str, notice: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.notice = notice or message


class TurnPipeline:
    """
    Sequences one conversational turn.

    Not re-entrant: callers must not start a turn while one is in flight.
    """

    def __init__(
        self,
        *,
        stt: TranscriptionBackend,
        tts: SynthesisBackend,
        executor: ActionExecutor,
        history: ConversationHistory,
        bus: EventBus | None = None,
        recent_history_count: int = RECENT_HISTORY_COUNT,
        target_language: str | None = None,
        proficiency_level: str | None = None,
        session_id: str | None = None,
    ) -> None:
        self._stt = stt
        self._tts = tts
        self._executor = executor
        self._history = history
        self._bus = bus or EventBus(session_id=session_id)
        self._recent_history_count = recent_history_count
        self._target_language = target_language
        self._proficiency_level = proficiency_level
        self._session_id = session_id
        self._stage = Stage.IDLE

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def history(self) -> ConversationHistory:
        return self._history

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def tts(self) -> SynthesisBackend:
        return self._tts

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    # -------------------------------------------------------------------------
    # Full turn
    # -------------------------------------------------------------------------

    async def execute_turn(
        self,
        audio: bytes,
        behavior: ResponseBehavior,
        *,
        system_prompt: str | None = None,
        parameters: dict[str, Any] | None = None,
        cancel: CancelToken | None = None,
    ) -> TurnResult:
        result = TurnResult(success=False)
        log_event({
            "event_type": "TURN_STARTED",
            "session_id": self._session_id,
            "behavior": getattr(behavior, "name", None),
            "audio_bytes": len(audio) if audio else 0,
        })

        try:
            await self._run_turn(
                result,
                audio,
                behavior,
                system_prompt=system_prompt,
                parameters=parameters,
                cancel=cancel,
            )
        except asyncio.CancelledError:
            raise
        except TurnFailed as failure:
            self._fail(result, failure.message, failure.notice)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "TURN_EXCEPTION",
                "session_id": self._session_id,
                "stage": self._stage.value,
                "error": f"{type(exc).__name__}: {exc}",
            }, level="ERROR")
            self._fail(result, f"Pipeline error: {exc}", f"Pipeline error: {exc}")

        log_event({
            "event_type": "TURN_FINISHED",
            "session_id": self._session_id,
            "success": result.success,
            "stage": self._stage.value,
            "error": result.error_message,
        })
        return result

    async def _run_turn(
        self,
        result: TurnResult,
        audio: bytes,
        behavior: ResponseBehavior,
        *,
        system_prompt: str | None,
        parameters: dict[str, Any] | None,
        cancel: CancelToken | None,
    ) -> None:
        # --- Transcription ----------------------------------------------------
        self._set_stage(Stage.TRANSCRIBING)
        with timed("stt_latency", session_id=self._session_id, stage=Stage.TRANSCRIBING.value):
            transcript = await self._stt.transcribe(audio)

        if not has_text(transcript):
            raise TurnFailed("Could not understand speech", "Transcription resulted in empty text")

        result.transcribed_text = transcript
        self._history.add_user(transcript)
        self._bus.publish(TranscriptionCompleted(
            event_type=NotificationType.TRANSCRIPTION_COMPLETED,
            ts_ms=now_ms(),
            text=transcript,
        ))
        self._check_cancelled(cancel)

        # --- Generation -------------------------------------------------------
        self._set_stage(Stage.GENERATING)
        context = self._build_context(transcript, system_prompt, parameters)
        action = await self._executor.execute(behavior, context, cancel=cancel)

        if not action.success or not has_text(action.response_text):
            message = action.error_message or "Empty response"
            raise TurnFailed(message, f"LLM generation failed: {message}")

        reply = str(action.response_text)
        result.generated_text = reply
        self._history.add_assistant(reply)
        self._bus.publish(ResponseReceived(
            event_type=NotificationType.RESPONSE_RECEIVED,
            ts_ms=now_ms(),
            text=reply,
        ))
        self._check_cancelled(cancel)

        # --- Synthesis --------------------------------------------------------
        self._set_stage(Stage.SYNTHESIZING)
        with timed("tts_latency", session_id=self._session_id, stage=Stage.SYNTHESIZING.value):
            speech = await self._tts.synthesize(reply)

        if not speech:
            raise TurnFailed("Failed to generate speech", "TTS generation failed")

        result.synthesized_audio = speech
        result.success = True
        self._bus.publish(AudioGenerated(
            event_type=NotificationType.AUDIO_GENERATED,
            ts_ms=now_ms(),
            audio=speech,
        ))
        self._set_stage(Stage.COMPLETE)

    # -------------------------------------------------------------------------
    # Partial helpers
    # -------------------------------------------------------------------------

    async def transcribe_only(self, audio: bytes) -> str | None:
        """Transcribe without generating. History is not touched."""
        self._set_stage(Stage.TRANSCRIBING)
        try:
            with timed("stt_latency", session_id=self._session_id, stage=Stage.TRANSCRIBING.value):
                text = await self._stt.transcribe(audio)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._publish_error(f"Transcription failed: {exc}")
            return None
        finally:
            self._set_stage(Stage.IDLE)

        self._bus.publish(TranscriptionCompleted(
            event_type=NotificationType.TRANSCRIPTION_COMPLETED,
            ts_ms=now_ms(),
            text=text,
        ))
        return text

    async def synthesize_only(self, text: str) -> bytes | None:
        """Synthesize without touching history."""
        self._set_stage(Stage.SYNTHESIZING)
        try:
            with timed("tts_latency", session_id=self._session_id, stage=Stage.SYNTHESIZING.value):
                speech = await self._tts.synthesize(text)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._publish_error(f"Speech synthesis failed: {exc}")
            return None
        finally:
            self._set_stage(Stage.IDLE)

        if not speech:
            self._publish_error("TTS generation failed")
            return None

        self._bus.publish(AudioGenerated(
            event_type=NotificationType.AUDIO_GENERATED,
            ts_ms=now_ms(),
            audio=speech,
        ))
        return speech

    def reset_conversation(self) -> None:
        self._history.clear()
        self._set_stage(Stage.IDLE)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _build_context(
        self,
        transcript: str,
        system_prompt: str | None,
        parameters: dict[str, Any] | None,
    ) -> ActionContext:
        recent: list[Message] = [
            message
            for message in self._history.get_recent(self._recent_history_count)
            if message.role is not Role.SYSTEM
        ]
        return ActionContext(
            user_input=transcript,
            history=recent,
            system_prompt=system_prompt,
            parameters=dict(parameters or {}),
            target_language=self._target_language,
            proficiency_level=self._proficiency_level,
        )

    def _check_cancelled(self, cancel: CancelToken | None) -> None:
        if is_cancelled(cancel):
            raise TurnFailed("Turn cancelled")

    def _set_stage(self, stage: Stage) -> None:
        if stage == self._stage:
            return
        self._stage = stage
        log_event({
            "event_type": "STAGE_CHANGED",
            "session_id": self._session_id,
            "stage": stage.value,
        }, level="DEBUG")
        self._bus.publish(StageChanged(
            event_type=NotificationType.STAGE_CHANGED,
            ts_ms=now_ms(),
            stage=stage,
        ))

    def _publish_error(self, message: str) -> None:
        log_event({
            "event_type": "PIPELINE_ERROR",
            "session_id": self._session_id,
            "stage": self._stage.value,
            "error": message,
        }, level="WARNING")
        self._bus.publish(PipelineError(
            event_type=NotificationType.PIPELINE_ERROR,
            ts_ms=now_ms(),
            message=message,
        ))

    def _fail(self, result: TurnResult, message: str, notice: str) -> None:
        result.success = False
        result.error_message = message
        self._publish_error(notice)
        self._set_stage(Stage.ERROR)
