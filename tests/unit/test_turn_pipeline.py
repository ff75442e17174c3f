# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio

from behaviors.base import ActionResult
from behaviors.chat import ChatBehavior
from context.conversation import ConversationHistory, Role
from orchestrator.cancellation import CancelToken
from orchestrator.enums.stage import Stage
from orchestrator.events import (
    AudioGenerated,
    EventBus,
    Notification,
    NotificationType,
    PipelineError,
    ResponseReceived,
    StageChanged,
    TranscriptionCompleted,
)
from orchestrator.executor import ActionExecutor
from orchestrator.pipeline import TurnPipeline
from orchestrator.retry import RetryPolicy

from fakes import (
    FakeGeneration,
    FakeSynthesis,
    FakeTranscription,
    RecordingSleep,
    ScriptedBehavior,
)


def _pipeline(
    *,
    stt: FakeTranscription | None = None,
    tts: FakeSynthesis | None = None,
    backend: FakeGeneration | None = None,
    history: ConversationHistory | None = None,
    max_retries: int = 0,
    recent_history_count: int = 10,
) -> tuple[TurnPipeline, list[Notification]]:
    seen: list[Notification] = []
    bus = EventBus()
    bus.subscribe(seen.append)
    pipeline = TurnPipeline(
        stt=stt or FakeTranscription(),
        tts=tts or FakeSynthesis(),
        executor=ActionExecutor(
            backend or FakeGeneration(["Hi! How are you?"]),
            RetryPolicy(max_retries=max_retries, retry_delay_s=0.0),
            sleep=RecordingSleep(),
        ),
        history=history or ConversationHistory(capacity=20, summarize=False),
        bus=bus,
        recent_history_count=recent_history_count,
        target_language="Spanish",
        proficiency_level="A2",
    )
    return pipeline, seen


def _stages(seen: list[Notification]) -> list[Stage]:
    return [n.stage for n in seen if isinstance(n, StageChanged)]


def test_successful_turn() -> None:
    tts = FakeSynthesis(b"RIFF-audio")
    pipeline, seen = _pipeline(tts=tts)

    result = asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert result.success
    assert result.transcribed_text == "hello there"
    assert result.generated_text == "Hi! How are you?"
    assert result.synthesized_audio == b"RIFF-audio"
    assert result.error_message is None
    assert tts.texts == ["Hi! How are you?"]
    assert pipeline.stage is Stage.COMPLETE

    roles = [m.role for m in pipeline.history.messages]
    assert roles == [Role.USER, Role.ASSISTANT]


def test_successful_turn_notification_order() -> None:
    pipeline, seen = _pipeline()

    asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert [n.event_type for n in seen] == [
        NotificationType.STAGE_CHANGED,
        NotificationType.TRANSCRIPTION_COMPLETED,
        NotificationType.STAGE_CHANGED,
        NotificationType.RESPONSE_RECEIVED,
        NotificationType.STAGE_CHANGED,
        NotificationType.AUDIO_GENERATED,
        NotificationType.STAGE_CHANGED,
    ]
    assert _stages(seen) == [
        Stage.TRANSCRIBING,
        Stage.GENERATING,
        Stage.SYNTHESIZING,
        Stage.COMPLETE,
    ]
    assert isinstance(seen[1], TranscriptionCompleted) and seen[1].text == "hello there"
    assert isinstance(seen[3], ResponseReceived) and seen[3].text == "Hi! How are you?"
    assert isinstance(seen[5], AudioGenerated)


def test_blank_transcript_short_circuits() -> None:
    stt = FakeTranscription("   ")
    backend = FakeGeneration()
    tts = FakeSynthesis()
    pipeline, seen = _pipeline(stt=stt, backend=backend, tts=tts)

    result = asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert not result.success
    assert result.error_message
    assert backend.calls == []
    assert tts.texts == []
    assert len(pipeline.history) == 0
    assert _stages(seen) == [Stage.TRANSCRIBING, Stage.ERROR]
    assert isinstance(seen[-2], PipelineError)
    assert pipeline.stage is Stage.ERROR


def test_transcription_exception_is_contained() -> None:
    pipeline, seen = _pipeline(stt=FakeTranscription(ConnectionError("no network")))

    result = asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert not result.success
    assert "no network" in result.error_message
    assert len(pipeline.history) == 0
    assert _stages(seen)[-1] is Stage.ERROR


def test_generation_failure_keeps_only_user_message() -> None:
    tts = FakeSynthesis()
    behavior = ScriptedBehavior([ActionResult.failure("model overloaded")] * 3)
    pipeline, seen = _pipeline(tts=tts, max_retries=2)

    result = asyncio.run(pipeline.execute_turn(b"pcm", behavior))

    assert not result.success
    assert result.transcribed_text == "hello there"
    assert result.generated_text is None
    assert result.error_message == "model overloaded"
    assert behavior.calls == 3
    assert tts.texts == []
    assert [m.role for m in pipeline.history.messages] == [Role.USER]
    assert _stages(seen) == [Stage.TRANSCRIBING, Stage.GENERATING, Stage.ERROR]


def test_empty_reply_is_a_failure() -> None:
    pipeline, _ = _pipeline(backend=FakeGeneration(["   "]))

    result = asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert not result.success
    assert [m.role for m in pipeline.history.messages] == [Role.USER]


def test_synthesis_failure_keeps_both_messages() -> None:
    pipeline, seen = _pipeline(tts=FakeSynthesis(None))

    result = asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert not result.success
    assert result.generated_text == "Hi! How are you?"
    assert result.synthesized_audio is None
    assert result.error_message
    assert [m.role for m in pipeline.history.messages] == [Role.USER, Role.ASSISTANT]
    assert _stages(seen)[-2:] == [Stage.SYNTHESIZING, Stage.ERROR]


def test_synthesis_exception_is_contained() -> None:
    pipeline, _ = _pipeline(tts=FakeSynthesis(RuntimeError("tts quota")))

    result = asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert not result.success
    assert "tts quota" in result.error_message


def test_failures_publish_error_before_error_stage() -> None:
    pipeline, seen = _pipeline(stt=FakeTranscription(""))

    asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert isinstance(seen[-2], PipelineError)
    assert isinstance(seen[-1], StageChanged) and seen[-1].stage is Stage.ERROR


def test_context_uses_recent_history_without_system_entries() -> None:
    history = ConversationHistory(capacity=20, summarize=False)
    history.add_system("summary")
    for i in range(6):
        history.add_user(f"u{i}")
        history.add_assistant(f"a{i}")
    backend = FakeGeneration(["ok"])
    pipeline, _ = _pipeline(backend=backend, history=history, recent_history_count=4)

    asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    sent = backend.calls[0]["history"]
    # the current user message is part of the recent window
    assert [m.text for m in sent] == ["a4", "u5", "a5", "hello there"]
    assert all(m.role is not Role.SYSTEM for m in sent)


def test_context_carries_language_settings() -> None:
    seen_contexts = []

    class Capture(ScriptedBehavior):
        async def execute(self, backend, context):  # type: ignore[no-untyped-def]
            seen_contexts.append(context)
            return ActionResult.ok("ok")

    pipeline, _ = _pipeline()
    asyncio.run(
        pipeline.execute_turn(
            b"pcm",
            Capture([]),
            system_prompt="room: kitchen",
            parameters={"scenario": "cooking"},
        )
    )

    context = seen_contexts[0]
    assert context.user_input == "hello there"
    assert context.system_prompt == "room: kitchen"
    assert context.parameters == {"scenario": "cooking"}
    assert context.target_language == "Spanish"
    assert context.proficiency_level == "A2"


def test_failing_listener_does_not_break_turn() -> None:
    pipeline, seen = _pipeline()

    def explode(_: Notification) -> None:
        raise RuntimeError("ui crashed")

    pipeline.bus.subscribe(explode)

    result = asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert result.success
    assert _stages(seen)[-1] is Stage.COMPLETE


def test_cancel_after_transcription_skips_generation() -> None:
    token = CancelToken()
    backend = FakeGeneration()
    pipeline, seen = _pipeline(backend=backend)

    def cancel_on_transcript(notification: Notification) -> None:
        if isinstance(notification, TranscriptionCompleted):
            token.cancel()

    pipeline.bus.subscribe(cancel_on_transcript)

    result = asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior(), cancel=token))

    assert not result.success
    assert result.error_message == "Turn cancelled"
    assert backend.calls == []
    assert _stages(seen)[-1] is Stage.ERROR


def test_consecutive_turns_grow_history() -> None:
    pipeline, seen = _pipeline(backend=FakeGeneration(["one", "two"]))

    asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))
    asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    assert [m.text for m in pipeline.history.messages] == [
        "hello there", "one", "hello there", "two",
    ]
    assert _stages(seen).count(Stage.TRANSCRIBING) == 2


def test_transcribe_only_leaves_history_alone() -> None:
    pipeline, seen = _pipeline()

    text = asyncio.run(pipeline.transcribe_only(b"pcm"))

    assert text == "hello there"
    assert len(pipeline.history) == 0
    assert any(isinstance(n, TranscriptionCompleted) for n in seen)
    assert pipeline.stage is Stage.IDLE


def test_transcribe_only_failure_returns_none() -> None:
    pipeline, seen = _pipeline(stt=FakeTranscription(RuntimeError("bad audio")))

    assert asyncio.run(pipeline.transcribe_only(b"pcm")) is None
    assert any(isinstance(n, PipelineError) for n in seen)


def test_synthesize_only() -> None:
    pipeline, seen = _pipeline(tts=FakeSynthesis(b"wav"))

    assert asyncio.run(pipeline.synthesize_only("hola")) == b"wav"
    assert any(isinstance(n, AudioGenerated) for n in seen)
    assert len(pipeline.history) == 0


def test_synthesize_only_failure_returns_none() -> None:
    pipeline, seen = _pipeline(tts=FakeSynthesis(None))

    assert asyncio.run(pipeline.synthesize_only("hola")) is None
    assert any(isinstance(n, PipelineError) for n in seen)


def test_reset_conversation_clears_history() -> None:
    pipeline, _ = _pipeline()
    asyncio.run(pipeline.execute_turn(b"pcm", ChatBehavior()))

    pipeline.reset_conversation()

    assert len(pipeline.history) == 0
    assert pipeline.stage is Stage.IDLE


def test_unsubscribe_stops_delivery() -> None:
    bus = EventBus()
    received: list[Notification] = []
    unsubscribe = bus.subscribe(received.append)

    bus.publish(PipelineError(event_type=NotificationType.PIPELINE_ERROR, ts_ms=0, message="a"))
    unsubscribe()
    bus.publish(PipelineError(event_type=NotificationType.PIPELINE_ERROR, ts_ms=0, message="b"))

    assert len(received) == 1
