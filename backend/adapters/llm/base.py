"""
Generation backend contract.

Purpose:
- Define the interface the response behaviors call to produce text.
- Keep retries, timing and turn sequencing OUT of the backend.

Rules:
- No retries.
- No history mutation: history is read-only from the backend's perspective.
- Failures are raised as exceptions; behaviors convert them into results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from context.conversation import Message


class ContentPartType(str, Enum):
    TEXT = "text"
    IMAGE_URL = "image_url"


@dataclass(frozen=True)
class ContentPart:
    """One part of a multimodal user message."""
    type: ContentPartType
    text: str | None = None
    image_url: str | None = None

    @staticmethod
    def text_part(text: str) -> ContentPart:
        return ContentPart(type=ContentPartType.TEXT, text=text)

    @staticmethod
    def image_url_part(url: str) -> ContentPart:
        return ContentPart(type=ContentPartType.IMAGE_URL, image_url=url)

    def to_openai(self) -> dict[str, object]:
        if self.type is ContentPartType.IMAGE_URL:
            return {"type": "image_url", "image_url": {"url": self.image_url}}
        return {"type": "text", "text": self.text or ""}


class GenerationBackend(ABC):
    """
    Abstract base class for text generation backends.

    The backend is a *dumb pipe*:
    prompt + history -> vendor -> text.

    Caller responsibilities (NOT here):
    - Retry policy
    - Prompt construction per behavior
    - History ownership and trimming
    """

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        history: Sequence[Message] | None = None,
    ) -> str:
        """Generate a reply using the backend's default system prompt."""
        raise NotImplementedError

    @abstractmethod
    async def generate_with_system(
        self,
        prompt: str,
        system_prompt: str,
        history: Sequence[Message] | None = None,
    ) -> str:
        """Generate a reply with an explicit system prompt for this request."""
        raise NotImplementedError

    @abstractmethod
    async def generate_parts(
        self,
        parts: Sequence[ContentPart],
        system_prompt: str | None,
        history: Sequence[Message] | None = None,
    ) -> str:
        """Generate a reply to a multimodal user message (text and image parts)."""
        raise NotImplementedError

    @abstractmethod
    async def is_available(self) -> bool:
        """Liveness probe. May raise; callers convert failures to False."""
        raise NotImplementedError

    @property
    @abstractmethod
    def model_name(self) -> str:
        raise NotImplementedError
