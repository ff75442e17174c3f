# pylint: disable=missing-module-docstring,missing-function-docstring

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

import context.conversation as conversation_mod
from context.conversation import ConversationHistory, Message, Role
from context.serialization import export_from_dict


def _fill(history: ConversationHistory, pairs: int) -> None:
    for i in range(pairs):
        history.add_user(f"u{i}")
        history.add_assistant(f"a{i}")


def test_add_keeps_order_and_roles() -> None:
    history = ConversationHistory(capacity=10, summarize=False)
    history.add_user("hi")
    history.add_assistant("hello")
    history.add_system("note")

    assert [m.role for m in history.messages] == [Role.USER, Role.ASSISTANT, Role.SYSTEM]
    assert [m.text for m in history.messages] == ["hi", "hello", "note"]
    assert len(history) == 3


def test_add_none_is_rejected() -> None:
    history = ConversationHistory()
    with pytest.raises(ValueError):
        history.add(None)


def test_invalid_capacity_is_rejected() -> None:
    with pytest.raises(ValueError):
        ConversationHistory(capacity=0, summarize=False)
    with pytest.raises(ValueError):
        ConversationHistory(capacity=1, summarize=True)

    assert ConversationHistory(capacity=1, summarize=False).capacity == 1


@pytest.mark.parametrize("capacity, added", [(1, 3), (4, 6), (5, 5), (7, 20)])
def test_fifo_eviction_without_summary(capacity: int, added: int) -> None:
    history = ConversationHistory(capacity=capacity, summarize=False)
    for i in range(added):
        history.add_user(f"m{i}")

    kept = min(capacity, added)
    assert len(history) == kept
    assert [m.text for m in history.messages] == [f"m{i}" for i in range(added - kept, added)]
    assert all(m.role is Role.USER for m in history.messages)


def test_summary_replaces_evicted_messages_and_respects_cap() -> None:
    history = ConversationHistory(capacity=4, summarize=True)
    _fill(history, 2)          # u0 a0 u1 a1
    history.add_user("u2")     # overflow by one

    messages = history.messages
    assert len(messages) == 4
    assert messages[0].role is Role.SYSTEM
    # u0 and a0 were evicted to make room for the summary
    assert messages[0].text == (
        "[Previous conversation summary: 1 user messages, 1 assistant responses]"
    )
    assert [m.text for m in messages[1:]] == ["u1", "a1", "u2"]


def test_repeated_eviction_never_exceeds_capacity() -> None:
    history = ConversationHistory(capacity=5, summarize=True)
    for i in range(40):
        history.add_user(f"u{i}")
        assert len(history) <= 5

    assert history.messages[-1].text == "u39"
    assert history.messages[0].role is Role.SYSTEM


def test_get_recent_returns_tail_in_order() -> None:
    history = ConversationHistory(capacity=10, summarize=False)
    for i in range(5):
        history.add_user(f"m{i}")

    assert [m.text for m in history.get_recent(2)] == ["m3", "m4"]
    assert [m.text for m in history.get_recent(50)] == [f"m{i}" for i in range(5)]
    assert history.get_recent(0) == []
    assert history.get_recent(-3) == []


def test_get_by_role_filters() -> None:
    history = ConversationHistory(capacity=10, summarize=False)
    _fill(history, 3)

    assert [m.text for m in history.get_by_role(Role.ASSISTANT)] == ["a0", "a1", "a2"]
    assert history.get_by_role(Role.SYSTEM) == []


def test_summary_of_empty_history_is_zeroed() -> None:
    summary = ConversationHistory().summary()

    assert summary.message_count == 0
    assert summary.user_count == 0
    assert summary.assistant_count == 0
    assert summary.system_count == 0
    assert summary.duration.total_seconds() == 0


def test_summary_counts_roles() -> None:
    history = ConversationHistory(capacity=10, summarize=False)
    _fill(history, 2)
    history.add_system("s")

    summary = history.summary()
    assert summary.message_count == 5
    assert summary.per_role_counts() == {"user": 2, "assistant": 2, "system": 1}
    assert summary.start_time <= summary.end_time


def test_clear_empties_and_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    emitted: list[dict[str, Any]] = []

    def fake_log_event(payload: dict[str, Any], level: str = "INFO") -> None:
        emitted.append(payload)

    monkeypatch.setattr(conversation_mod, "log_event", fake_log_event)

    history = ConversationHistory(session_id="sess_1")
    history.add_user("x")
    history.clear()

    assert len(history) == 0
    assert emitted[-1]["event_type"] == "HISTORY_CLEARED"
    assert emitted[-1]["session_id"] == "sess_1"


def test_export_import_roundtrip_preserves_messages() -> None:
    source = ConversationHistory(capacity=10, summarize=False)
    _fill(source, 2)
    exported = source.export()

    target = ConversationHistory(capacity=10, summarize=False)
    target.add_user("old")
    target.import_export(exported)

    assert target.messages == source.messages
    assert exported.summary.message_count == 4


def test_import_none_is_rejected() -> None:
    with pytest.raises(ValueError):
        ConversationHistory().import_export(None)


def test_import_larger_than_capacity_is_trimmed() -> None:
    source = ConversationHistory(capacity=20, summarize=False)
    _fill(source, 5)

    target = ConversationHistory(capacity=4, summarize=False)
    target.import_export(source.export())

    assert [m.text for m in target.messages] == ["u3", "a3", "u4", "a4"]


def test_messages_snapshot_is_immutable() -> None:
    history = ConversationHistory()
    history.add_user("x")
    snapshot = history.messages

    history.add_user("y")

    assert len(snapshot) == 1
    assert isinstance(snapshot, tuple)


def test_format_history() -> None:
    history = ConversationHistory(capacity=10, summarize=False)
    history.add(Message(role=Role.USER, text="hi"))
    history.add_assistant("hello")

    assert history.format_history() == "User: hi\nAssistant: hello"
    assert history.format_history(include_timestamps=True).startswith("[")


def test_naive_timestamp_is_taken_as_utc() -> None:
    message = Message(role=Role.USER, text="hi", created_at=datetime(2024, 1, 1, 10, 0))
    assert message.created_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_naive_import_then_add_still_summarizes_and_exports() -> None:
    history = ConversationHistory(capacity=10, summarize=False)
    history.import_export(export_from_dict({
        "messages": [{"role": "user", "text": "hi", "timestamp": "2024-01-01T10:00:00"}],
    }))
    history.add_assistant("hello")

    summary = history.summary()
    assert summary.message_count == 2
    assert summary.duration > timedelta(0)
    assert len(history.export().messages) == 2
