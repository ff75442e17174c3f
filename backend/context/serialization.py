"""
Conversation serialization.

Responsibilities:
- Convert system prompt + history + current user content into LLM-ready messages.
- Convert ConversationExport to and from a JSON-safe dict for HTTP and file persistence.

Non-responsibilities:
- No truncation logic
- No message storage
- No orchestration decisions
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Sequence

from adapters.llm.base import ContentPart
from context.conversation import (
    ConversationExport,
    ConversationSummary,
    Message,
    Role,
)


def serialize_for_llm(
    *,
    system_prompt: str | None,
    history: Sequence[Message] | None,
    user_content: str | Sequence[ContentPart],
) -> list[dict[str, Any]]:
    """
    Serialize a request into chat-completion message format.

    Output format:
    [
        {"role": "system", "content": "..."},
        {"role": "user", "content": "..."},
        {"role": "assistant", "content": "..."},
        ...
        {"role": "user", "content": "<current user text or parts>"},
    ]

    Rules:
    - System prompt comes first when given
    - History comes next in order, exactly as handed in (callers filter)
    - Current user content is appended last
    """
    messages: list[dict[str, Any]] = []

    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})

    for m in history or ():
        messages.append({"role": m.role.value, "content": m.text})

    if isinstance(user_content, str):
        messages.append({"role": "user", "content": user_content})
    else:
        messages.append({
            "role": "user",
            "content": [part.to_openai() for part in user_content],
        })

    return messages


# ------------------------------------------------------------------
# Export payloads
# ------------------------------------------------------------------

def export_to_dict(export: ConversationExport) -> dict[str, Any]:
    """
    Convert an export into its JSON-safe logical shape.

    {
      "messages": [{"role", "text", "timestamp"}, ...],
      "summary": {"message_count", "per_role_counts", "start_time", "end_time", "duration_s"},
      "export_time": "<iso8601>"
    }
    """
    summary = export.summary
    return {
        "messages": [
            {
                "role": m.role.value,
                "text": m.text,
                "timestamp": m.created_at.isoformat(),
            }
            for m in export.messages
        ],
        "summary": {
            "message_count": summary.message_count,
            "per_role_counts": summary.per_role_counts(),
            "start_time": summary.start_time.isoformat(),
            "end_time": summary.end_time.isoformat(),
            "duration_s": summary.duration.total_seconds(),
        },
        "export_time": export.export_time.isoformat(),
    }


def export_from_dict(payload: Mapping[str, Any]) -> ConversationExport:
    """
    Rebuild an export from export_to_dict() output.

    Timestamps without an offset are taken as UTC.

    Raises:
        ValueError on a missing or malformed message list.
    """
    raw_messages = payload.get("messages")
    if not isinstance(raw_messages, list):
        raise ValueError("export payload must contain a 'messages' list")

    try:
        messages = tuple(
            Message(
                role=Role(item["role"]),
                text=str(item["text"]),
                created_at=datetime.fromisoformat(item["timestamp"]),
            )
            for item in raw_messages
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed message entry: {exc!r}") from exc

    try:
        summary = _summary_from_dict(payload, messages)
    except (AttributeError, KeyError, TypeError) as exc:
        raise ValueError(f"malformed summary: {exc!r}") from exc

    return ConversationExport(
        messages=messages,
        summary=summary,
        export_time=_parse_time(payload.get("export_time")),
    )


def _summary_from_dict(payload: Mapping[str, Any], messages: tuple[Message, ...]) -> ConversationSummary:
    raw_summary = payload.get("summary") or {}
    counts = raw_summary.get("per_role_counts") or {}
    if messages:
        start, end = messages[0].created_at, messages[-1].created_at
    else:
        start = end = _parse_time(payload.get("export_time"))

    duration_s = raw_summary.get("duration_s")
    duration = end - start if duration_s is None else timedelta(seconds=float(duration_s))

    return ConversationSummary(
        message_count=int(raw_summary.get("message_count", len(messages))),
        user_count=int(counts.get(Role.USER.value, 0)),
        assistant_count=int(counts.get(Role.ASSISTANT.value, 0)),
        system_count=int(counts.get(Role.SYSTEM.value, 0)),
        start_time=start,
        end_time=end,
        duration=duration,
    )


def _parse_time(value: Any) -> datetime:
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed
    return datetime.now(timezone.utc)
