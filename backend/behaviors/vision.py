"""
Free talk with on-demand vision.

One camera frame is captured only when the user says a trigger phrase
("what is this"); otherwise, or when capture or the multimodal call fails,
the behavior degrades to a text-only reply.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from adapters.llm.base import ContentPart, GenerationBackend
from behaviors.base import (
    ActionContext,
    ActionResult,
    ResponseBehavior,
    generate_text,
    has_text,
    override_or_default,
    precheck,
)
from constants import VISION_TRIGGER_PHRASE_DEFAULT, VISION_TRIGGER_PHRASE_FALLBACK
from observability.logger import log_event


class FrameSource(ABC):
    """Captures one camera frame as a data URL (data:image/jpeg;base64,...)."""

    @abstractmethod
    async def capture_frame_data_url(self) -> str:
        raise NotImplementedError


_NON_WORD = re.compile(r"[^\w\s]|_")
_SPACES = re.compile(r"\s+")


def normalize_phrase(value: str | None) -> str:
    """Lowercase, keep letters/digits/whitespace only, collapse runs of whitespace."""
    if not has_text(value):
        return ""
    stripped = _NON_WORD.sub("", str(value).lower())
    return _SPACES.sub(" ", stripped).strip()


def contains_trigger(text: str | None, trigger_phrase: str | None) -> bool:
    normalized = normalize_phrase(text)
    if not normalized:
        return False

    for phrase in (trigger_phrase, VISION_TRIGGER_PHRASE_FALLBACK):
        candidate = normalize_phrase(phrase)
        if candidate and candidate in normalized:
            return True
    return False


class FreeTalkVisionBehavior(ResponseBehavior):

    def __init__(
        self,
        system_prompt: str | None = None,
        frame_source: FrameSource | None = None,
        trigger_phrase: str = VISION_TRIGGER_PHRASE_DEFAULT,
    ) -> None:
        self._system_prompt = system_prompt
        self._frame_source = frame_source
        self._trigger_phrase = trigger_phrase if has_text(trigger_phrase) else VISION_TRIGGER_PHRASE_DEFAULT

    @property
    def name(self) -> str:
        return "FreeTalkVision"

    async def execute(
        self,
        backend: GenerationBackend | None,
        context: ActionContext,
    ) -> ActionResult:
        failed = precheck(backend, context)
        if failed is not None:
            return failed
        assert backend is not None

        system_prompt = override_or_default(context, self._system_prompt)

        if not contains_trigger(context.user_input, self._trigger_phrase):
            return await self._text_only(backend, context, system_prompt)

        if self._frame_source is None:
            log_event({
                "event_type": "VISION_UNAVAILABLE",
                "behavior": self.name,
                "reason": "no_frame_source",
            }, level="WARNING")
            return await self._text_only(backend, context, system_prompt)

        try:
            data_url = await self._frame_source.capture_frame_data_url()
            parts = [
                ContentPart.text_part(context.user_input),
                ContentPart.image_url_part(data_url),
            ]
            response = await backend.generate_parts(parts, system_prompt, context.history)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "VISION_FALLBACK",
                "behavior": self.name,
                "error": f"{type(exc).__name__}: {exc}",
            }, level="WARNING")
            return await self._text_only(backend, context, system_prompt)

        return ActionResult.ok(response, vision_used=True)

    async def _text_only(
        self,
        backend: GenerationBackend,
        context: ActionContext,
        system_prompt: str | None,
    ) -> ActionResult:
        try:
            response = await generate_text(backend, context, system_prompt)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return ActionResult.failure(f"FreeTalk action failed: {exc}")
        return ActionResult.ok(response, vision_used=False)
