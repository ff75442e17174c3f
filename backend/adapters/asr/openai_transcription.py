"""OpenAI audio transcription backend (whisper-1 / gpt-4o-transcribe)."""
from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from adapters.asr.base import TranscriptionBackend
from audio.pcm import is_wav, pcm16_to_wav


class OpenAITranscriptionBackend(TranscriptionBackend):
    """
    Remote transcription over the audio.transcriptions API.

    Raw PCM16 input is wrapped in a WAV container before upload.
    """

    def __init__(
        self,
        *,
        client: AsyncOpenAI,
        model: str = "whisper-1",
        language: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._language = language
        self._timeout_s = timeout_s

    async def transcribe(self, audio: bytes) -> str:
        if not audio:
            raise ValueError("audio buffer is empty")

        payload = audio if is_wav(audio) else pcm16_to_wav(audio)

        kwargs: dict[str, Any] = {
            "model": self._model,
            "file": ("speech.wav", payload, "audio/wav"),
        }
        if self._language:
            kwargs["language"] = self._language
        if self._timeout_s is not None:
            kwargs["timeout"] = self._timeout_s

        result = await self._client.audio.transcriptions.create(**kwargs)
        return (getattr(result, "text", "") or "").strip()
