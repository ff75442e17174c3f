"""OpenAI-compatible chat completion backend (OpenAI, Groq)."""
from __future__ import annotations

import time
from typing import Any, Sequence

from openai import AsyncOpenAI

from adapters.llm.base import ContentPart, GenerationBackend
from constants import DEFAULT_SYSTEM_PROMPT
from context.conversation import Message
from context.serialization import serialize_for_llm
from observability.logger import log_event


class OpenAIChatBackend(GenerationBackend):
    """
    Concrete generation backend over the chat completions API.

    Design notes:
    - One backend instance may serve many sequential turns.
    - Non-streaming: one request returns the full reply text.
    - Backend is responsible ONLY for:
        - Building the vendor request
        - Returning the reply text
    - Backend does NOT:
        - Retry
        - Touch conversation history
    """

    def __init__(
        self,
        *,
        client: AsyncOpenAI,
        model: str,
        default_system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        temperature: float = 0.7,
        max_tokens: int = 512,
        timeout_s: float | None = None,
    ) -> None:
        """
        Args:
            client:
                Vendor client (AsyncOpenAI, possibly pointed at an OpenAI-compatible base_url).
            model:
                Model identifier string.
            default_system_prompt:
                Used by generate() when the caller supplies no system prompt.
        """
        self._client = client
        self._model = model
        self._default_system_prompt = default_system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout_s = timeout_s

    @property
    def model_name(self) -> str:
        return self._model

    # ------------------------------------------------------------------
    # GenerationBackend contract
    # ------------------------------------------------------------------

    async def generate(
        self,
        prompt: str,
        history: Sequence[Message] | None = None,
    ) -> str:
        return await self.generate_with_system(prompt, self._default_system_prompt, history)

    async def generate_with_system(
        self,
        prompt: str,
        system_prompt: str,
        history: Sequence[Message] | None = None,
    ) -> str:
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")

        messages = serialize_for_llm(
            system_prompt=system_prompt,
            history=history,
            user_content=prompt,
        )
        return await self._complete(messages)

    async def generate_parts(
        self,
        parts: Sequence[ContentPart],
        system_prompt: str | None,
        history: Sequence[Message] | None = None,
    ) -> str:
        if not parts:
            raise ValueError("content parts must not be empty")

        messages = serialize_for_llm(
            system_prompt=system_prompt or self._default_system_prompt,
            history=history,
            user_content=parts,
        )
        return await self._complete(messages)

    async def is_available(self) -> bool:
        reply = await self.generate_with_system("test", "Reply with 'ok'")
        return bool(reply)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _complete(self, messages: list[dict[str, Any]]) -> str:
        kwargs: dict[str, Any] = dict(
            model=self._model,
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        if self._timeout_s is not None:
            kwargs["timeout"] = self._timeout_s

        t0 = time.monotonic_ns()
        response = await self._client.chat.completions.create(**kwargs)
        text = self._extract_text(response)

        log_event({
            "event_type": "LLM_COMPLETION",
            "model": self._model,
            "message_count": len(messages),
            "chars": len(text),
            "latency_ms": (time.monotonic_ns() - t0) // 1_000_000,
        }, level="DEBUG")

        if not text.strip():
            raise RuntimeError("LLM returned an empty response")
        return text.strip()

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Extract reply text from a vendor response (OpenAI format)."""
        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError):
            return ""
