# pylint: disable=missing-module-docstring,missing-function-docstring

import json

import pytest

from adapters.llm.base import ContentPart
from context.conversation import ConversationHistory, Message, Role
from context.serialization import export_from_dict, export_to_dict, serialize_for_llm


def test_serialize_orders_system_history_user() -> None:
    history = [
        Message(role=Role.USER, text="hola"),
        Message(role=Role.ASSISTANT, text="hola, que tal"),
    ]

    messages = serialize_for_llm(system_prompt="be nice", history=history, user_content="bien")

    assert messages == [
        {"role": "system", "content": "be nice"},
        {"role": "user", "content": "hola"},
        {"role": "assistant", "content": "hola, que tal"},
        {"role": "user", "content": "bien"},
    ]


def test_serialize_without_system_prompt_or_history() -> None:
    messages = serialize_for_llm(system_prompt=None, history=None, user_content="hi")
    assert messages == [{"role": "user", "content": "hi"}]


def test_serialize_multimodal_parts() -> None:
    parts = [
        ContentPart.text_part("what is this"),
        ContentPart.image_url_part("data:image/jpeg;base64,AAAA"),
    ]

    messages = serialize_for_llm(system_prompt=None, history=[], user_content=parts)

    assert messages[-1] == {
        "role": "user",
        "content": [
            {"type": "text", "text": "what is this"},
            {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,AAAA"}},
        ],
    }


def test_export_dict_is_json_safe_and_restorable() -> None:
    history = ConversationHistory(capacity=10, summarize=False)
    history.add_user("u")
    history.add_assistant("a")

    payload = export_to_dict(history.export())
    decoded = json.loads(json.dumps(payload))

    assert [m["role"] for m in decoded["messages"]] == ["user", "assistant"]
    assert decoded["summary"]["message_count"] == 2
    assert decoded["summary"]["per_role_counts"]["user"] == 1

    restored = export_from_dict(decoded)
    assert restored.messages == history.messages
    assert restored.summary.user_count == 1
    assert restored.summary.assistant_count == 1


def test_export_from_dict_empty_messages() -> None:
    restored = export_from_dict({"messages": []})
    assert restored.messages == ()
    assert restored.summary.message_count == 0


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"messages": "nope"},
        {"messages": [{"role": "user"}]},
        {"messages": [{"role": "robot", "text": "x", "timestamp": "2024-01-01T00:00:00+00:00"}]},
        {"messages": [{"role": "user", "text": "x", "timestamp": "yesterday"}]},
    ],
)
def test_export_from_dict_rejects_malformed(payload: dict) -> None:
    with pytest.raises(ValueError):
        export_from_dict(payload)


def test_export_from_dict_mixes_naive_and_aware_timestamps() -> None:
    restored = export_from_dict({
        "messages": [
            {"role": "user", "text": "hi", "timestamp": "2024-01-01T10:00:00"},
            {"role": "assistant", "text": "hola", "timestamp": "2024-01-01T10:00:30+00:00"},
        ],
    })

    assert all(m.created_at.tzinfo is not None for m in restored.messages)
    assert restored.summary.duration.total_seconds() == 30


def test_export_from_dict_rejects_malformed_summary() -> None:
    with pytest.raises(ValueError):
        export_from_dict({"messages": [], "summary": {"per_role_counts": "nope"}})
