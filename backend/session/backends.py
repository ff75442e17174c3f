"""
Backend construction from AppConfig.

Responsibilities:
- Select concrete generation / transcription / synthesis backends by provider
- Share process-wide clients (one AsyncOpenAI client, one local Whisper model)
- Hand each session its own synthesis backend so speech speed stays per-session

Providers:
    LLM_PROVIDER: openai | groq   (both through the OpenAI-compatible client)
    STT_PROVIDER: openai | whisper_local
    TTS_PROVIDER: openai | elevenlabs
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from openai import AsyncOpenAI

from adapters.asr.base import TranscriptionBackend
from adapters.asr.openai_transcription import OpenAITranscriptionBackend
from adapters.asr.whisper_local import LocalWhisperBackend
from adapters.llm.base import GenerationBackend
from adapters.llm.openai_chat import OpenAIChatBackend
from adapters.tts.base import SynthesisBackend
from adapters.tts.elevenlabs_tts import ElevenLabsSynthesisBackend
from adapters.tts.openai_speech import OpenAISpeechBackend
from constants import DEFAULT_SYSTEM_PROMPT

if TYPE_CHECKING:
    from config import AppConfig


GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def build_llm_client(config: AppConfig) -> AsyncOpenAI:
    """Build an LLM client with the provider selected by environment variables."""
    if config.llm_provider == "groq":
        if not config.groq_api_key:
            raise RuntimeError("GROQ_API_KEY environment variable not set")
        return AsyncOpenAI(api_key=config.groq_api_key, base_url=GROQ_BASE_URL)

    if not config.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable not set")
    return AsyncOpenAI(api_key=config.openai_api_key)


class BackendFactory:
    """
    Lazily builds and caches the shared backends.

    Generation and transcription backends are stateless per request and are
    shared by all sessions. synthesis() returns a fresh instance each call.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        llm_client: AsyncOpenAI | None = None,
        openai_client: AsyncOpenAI | None = None,
    ) -> None:
        self._config = config
        self._llm_client = llm_client
        self._openai_client = openai_client
        self._generation: GenerationBackend | None = None
        self._transcription: TranscriptionBackend | None = None

    def generation(self) -> GenerationBackend:
        if self._generation is None:
            if self._llm_client is None:
                self._llm_client = build_llm_client(self._config)
            self._generation = OpenAIChatBackend(
                client=self._llm_client,
                model=self._config.llm_model,
                default_system_prompt=DEFAULT_SYSTEM_PROMPT,
                temperature=self._config.llm_temperature,
                max_tokens=self._config.llm_max_tokens,
                timeout_s=self._config.request_timeout_s,
            )
        return self._generation

    def transcription(self) -> TranscriptionBackend:
        if self._transcription is None:
            provider = self._config.stt_provider
            if provider == "openai":
                self._transcription = OpenAITranscriptionBackend(
                    client=self._audio_client(),
                    model=self._config.stt_model,
                    language=self._config.stt_language,
                    timeout_s=self._config.request_timeout_s,
                )
            elif provider == "whisper_local":
                self._transcription = LocalWhisperBackend(
                    model=self._config.stt_model,
                    language=self._config.stt_language,
                )
            else:
                raise RuntimeError(f"Unknown STT_PROVIDER: {provider}")
        return self._transcription

    def synthesis(self) -> SynthesisBackend:
        provider = self._config.tts_provider
        if provider == "openai":
            return OpenAISpeechBackend(
                client=self._audio_client(),
                model=self._config.tts_model,
                voice=self._config.tts_voice,
                speed=self._config.tts_speed,
                timeout_s=self._config.request_timeout_s,
            )
        if provider == "elevenlabs":
            if not self._config.elevenlabs_api_key:
                raise RuntimeError("ELEVENLABS_API_KEY environment variable not set")
            return ElevenLabsSynthesisBackend(
                api_key=self._config.elevenlabs_api_key,
                voice_id=self._config.elevenlabs_voice_id,
                model_id=self._config.elevenlabs_model_id,
                speed=self._config.tts_speed,
            )
        raise RuntimeError(f"Unknown TTS_PROVIDER: {provider}")

    def _audio_client(self) -> AsyncOpenAI:
        # Speech endpoints are OpenAI-only, even when chat goes to Groq
        if self._openai_client is None:
            if not self._config.openai_api_key:
                raise RuntimeError("OPENAI_API_KEY environment variable not set")
            self._openai_client = AsyncOpenAI(api_key=self._config.openai_api_key)
        return self._openai_client
