"""
ElevenLabs TTS backend.

Role in the system:
- Receives the full response text of one turn.
- Performs one synthesis call.
- Requests PCM16 16kHz mono from the provider and wraps it in a WAV container.

Architectural constraints:
- No retries, timers, or backpressure logic live here.
"""

from __future__ import annotations

import time

from elevenlabs import VoiceSettings
from elevenlabs.client import AsyncElevenLabs

from adapters.tts.base import SynthesisBackend
from audio.pcm import pcm16_to_wav
from constants import AUDIO_SAMPLE_RATE_HZ, TTS_SPEED_DEFAULT
from observability.logger import log_event

# ElevenLabs accepts a narrower speed range than the generic 0.25-2.0 contract
_ELEVENLABS_SPEED_MIN = 0.7
_ELEVENLABS_SPEED_MAX = 1.2


class ElevenLabsSynthesisBackend(SynthesisBackend):
    """ElevenLabs text-to-speech over the async SDK client."""

    def __init__(
        self,
        *,
        api_key: str,
        voice_id: str = "21m00Tcm4TlvDq8ikWAM",  # default ElevenLabs voice
        model_id: str = "eleven_turbo_v2",
        speed: float = TTS_SPEED_DEFAULT,
        client: AsyncElevenLabs | None = None,
    ) -> None:
        super().__init__(speed=speed)
        self._voice_id = voice_id
        self._model_id = model_id
        self._client = client or AsyncElevenLabs(api_key=api_key)

    async def synthesize(self, text: str) -> bytes | None:
        if not text or not text.strip():
            return None

        t0 = time.monotonic_ns()
        provider_speed = max(_ELEVENLABS_SPEED_MIN, min(_ELEVENLABS_SPEED_MAX, self.speed))

        pcm = b""
        async for chunk in self._client.text_to_speech.convert(
            voice_id=self._voice_id,
            model_id=self._model_id,
            text=text,
            output_format="pcm_16000",
            voice_settings=VoiceSettings(speed=provider_speed),
        ):
            if chunk:
                pcm += chunk

        log_event({
            "event_type": "TTS_SYNTH_METRICS",
            "provider": "elevenlabs",
            "chars": len(text),
            "bytes": len(pcm),
            "synth_ms": (time.monotonic_ns() - t0) // 1_000_000,
        }, level="DEBUG")

        if not pcm:
            return None
        return pcm16_to_wav(pcm, AUDIO_SAMPLE_RATE_HZ)
