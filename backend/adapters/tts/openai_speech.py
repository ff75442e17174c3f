"""OpenAI speech synthesis backend (audio.speech)."""
from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from adapters.tts.base import SynthesisBackend
from constants import TTS_SPEED_DEFAULT


class OpenAISpeechBackend(SynthesisBackend):
    """
    One request per turn, returns WAV bytes.

    Speed is forwarded as the API's `speed` parameter.
    """

    def __init__(
        self,
        *,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini-tts",
        voice: str = "alloy",
        speed: float = TTS_SPEED_DEFAULT,
        timeout_s: float | None = None,
    ) -> None:
        super().__init__(speed=speed)
        self._client = client
        self._model = model
        self._voice = voice
        self._timeout_s = timeout_s

    async def synthesize(self, text: str) -> bytes | None:
        if not text or not text.strip():
            return None

        kwargs: dict[str, Any] = {
            "model": self._model,
            "voice": self._voice,
            "input": text,
            "speed": self.speed,
            "response_format": "wav",
        }
        if self._timeout_s is not None:
            kwargs["timeout"] = self._timeout_s

        response = await self._client.audio.speech.create(**kwargs)
        audio = response.content
        return audio or None
