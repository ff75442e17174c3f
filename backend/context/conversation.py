"""
Conversation history management.

Responsibilities:
- Store ordered, role-tagged messages for one tutoring session
- Enforce the capacity rule:
  - Never hold more than `capacity` messages after a mutation
  - Drop oldest messages first
  - Optionally replace dropped messages with one System summary message
- Report summary statistics and a lossless export/import payload

Non-responsibilities:
- No LLM formatting (see context.serialization)
- No orchestration decisions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable

from constants import (
    HISTORY_CAPACITY_DEFAULT,
    HISTORY_SUMMARIZE_DEFAULT,
    HISTORY_SUMMARY_TEMPLATE,
)
from observability.logger import log_event


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Author of a conversation message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """Single conversation message. Immutable once created."""
    role: Role
    text: str
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        # Naive timestamps are taken as UTC.
        if self.created_at.tzinfo is None:
            object.__setattr__(self, "created_at", self.created_at.replace(tzinfo=timezone.utc))


@dataclass(frozen=True)
class ConversationSummary:
    """Counts by role and the time span covered by the log."""
    message_count: int
    user_count: int
    assistant_count: int
    system_count: int
    start_time: datetime
    end_time: datetime
    duration: timedelta

    def per_role_counts(self) -> dict[str, int]:
        return {
            Role.SYSTEM.value: self.system_count,
            Role.USER.value: self.user_count,
            Role.ASSISTANT.value: self.assistant_count,
        }

    def __str__(self) -> str:
        minutes = self.duration.total_seconds() / 60.0
        return (
            f"Messages: {self.message_count} ({self.user_count} user, "
            f"{self.assistant_count} assistant), Duration: {minutes:.1f} minutes"
        )


@dataclass(frozen=True)
class ConversationExport:
    """Persistable snapshot of a conversation."""
    messages: tuple[Message, ...]
    summary: ConversationSummary
    export_time: datetime


class ConversationHistory:
    """
    Bounded conversation log owned by a single session.

    Invariants:
    - Messages are stored in insertion order
    - len(self) <= capacity after every mutation
    - With summarization enabled, evicted messages are replaced by exactly one
      System message at index 0 and one extra message is evicted to make room
      for it, so the cap is never exceeded

    Not internally synchronized: the owning session serializes turns.
    """

    def __init__(
        self,
        capacity: int = HISTORY_CAPACITY_DEFAULT,
        summarize: bool = HISTORY_SUMMARIZE_DEFAULT,
        *,
        session_id: str | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if summarize and capacity < 2:
            raise ValueError("capacity must be at least 2 when summarization is enabled")

        self._capacity = capacity
        self._summarize = summarize
        self._session_id = session_id
        self._messages: list[Message] = []

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def summarize(self) -> bool:
        return self._summarize

    @property
    def messages(self) -> tuple[Message, ...]:
        """Read-only snapshot of the log."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_user(self, text: str) -> None:
        self.add(Message(role=Role.USER, text=text))

    def add_assistant(self, text: str) -> None:
        self.add(Message(role=Role.ASSISTANT, text=text))

    def add_system(self, text: str) -> None:
        self.add(Message(role=Role.SYSTEM, text=text))

    def add(self, message: Message | None) -> None:
        """Append a message and evict if the capacity is exceeded."""
        if message is None:
            raise ValueError("message must not be None")

        self._messages.append(message)

        if len(self._messages) > self._capacity:
            self._trim()

    def clear(self) -> None:
        self._messages.clear()
        log_event({
            "event_type": "HISTORY_CLEARED",
            "session_id": self._session_id,
        })

    def import_export(self, payload: ConversationExport | None) -> None:
        """
        Replace the log with the messages of an export.

        An import larger than the capacity is trimmed like any other overflow.
        """
        if payload is None or payload.messages is None:
            raise ValueError("export payload must not be None")

        self._messages = list(payload.messages)
        if len(self._messages) > self._capacity:
            self._trim()
        log_event({
            "event_type": "HISTORY_IMPORTED",
            "session_id": self._session_id,
            "message_count": len(self._messages),
        })

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_recent(self, count: int) -> list[Message]:
        """Last min(count, len) messages in original order; empty for count <= 0."""
        if count <= 0:
            return []
        return self._messages[-count:]

    def get_by_role(self, role: Role) -> list[Message]:
        return [m for m in self._messages if m.role is role]

    def summary(self) -> ConversationSummary:
        """Summary statistics; zeroed (not an error) for an empty log."""
        if not self._messages:
            now = _utcnow()
            return ConversationSummary(
                message_count=0,
                user_count=0,
                assistant_count=0,
                system_count=0,
                start_time=now,
                end_time=now,
                duration=timedelta(0),
            )

        first = self._messages[0].created_at
        last = self._messages[-1].created_at
        return ConversationSummary(
            message_count=len(self._messages),
            user_count=_count(self._messages, Role.USER),
            assistant_count=_count(self._messages, Role.ASSISTANT),
            system_count=_count(self._messages, Role.SYSTEM),
            start_time=first,
            end_time=last,
            duration=last - first,
        )

    def export(self) -> ConversationExport:
        return ConversationExport(
            messages=tuple(self._messages),
            summary=self.summary(),
            export_time=_utcnow(),
        )

    def format_history(self, include_timestamps: bool = False) -> str:
        """Render the log as "Role: text" lines for display or debugging."""
        lines = []
        for m in self._messages:
            prefix = f"[{m.created_at:%H:%M:%S}] " if include_timestamps else ""
            lines.append(f"{prefix}{m.role.name.title()}: {m.text}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _trim(self) -> None:
        overflow = len(self._messages) - self._capacity

        if not self._summarize:
            dropped = self._messages[:overflow]
            del self._messages[:overflow]
            self._log_trim(dropped, summarized=False)
            return

        # Reserve one slot for the summary message
        to_remove = overflow + 1
        dropped = self._messages[:to_remove]
        del self._messages[:to_remove]

        summary_text = HISTORY_SUMMARY_TEMPLATE.format(
            user_count=_count(dropped, Role.USER),
            assistant_count=_count(dropped, Role.ASSISTANT),
        )
        self._messages.insert(0, Message(role=Role.SYSTEM, text=summary_text))
        self._log_trim(dropped, summarized=True)

    def _log_trim(self, dropped: list[Message], *, summarized: bool) -> None:
        log_event({
            "event_type": "HISTORY_TRIMMED",
            "session_id": self._session_id,
            "dropped": len(dropped),
            "summarized": summarized,
            "message_count": len(self._messages),
        }, level="DEBUG")


def _count(messages: Iterable[Message], role: Role) -> int:
    return sum(1 for m in messages if m.role is role)
