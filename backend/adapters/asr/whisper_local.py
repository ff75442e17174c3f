# pyright: reportUnknownVariableType=false
# pyright: reportUnknownMemberType=false
"""
Local Whisper transcription backend.

This module is deliberately "dumb":
- Accepts one complete utterance (WAV or raw PCM16, 16kHz, mono)
- Converts to Whisper input format
- Runs transcription off the event loop
- Returns text

Must NOT:
- Perform endpointing / silence detection
- Retry
- Make orchestration decisions

Determinism note:
- Whisper is not bitwise-deterministic across executions even at temperature=0.
"""

from __future__ import annotations

import asyncio
from typing import Any

import numpy as np

from adapters.asr.base import TranscriptionBackend
from audio.pcm import AudioFormatError, is_wav, pcm16le_to_float32, wav_to_pcm16
from constants import AUDIO_SAMPLE_RATE_HZ


class WhisperBackendError(RuntimeError):
    """Raised when the local Whisper model cannot be loaded or run."""


class LocalWhisperBackend(TranscriptionBackend):
    """
    faster-whisper model wrapper.

    The model is loaded lazily on first use so constructing the backend is cheap.
    Inference is blocking, so it runs in a worker thread.
    """

    def __init__(
        self,
        *,
        model: str = "base",
        device: str | None = None,
        compute_type: str | None = None,
        language: str | None = None,
    ) -> None:
        self._model_name = model
        self._device = device
        self._compute_type = compute_type
        self._language = language
        self._model: Any = None

    async def transcribe(self, audio: bytes) -> str:
        samples = self._to_float32(audio)
        if samples.size == 0:
            return ""
        return await asyncio.to_thread(self._transcribe_sync, samples)

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    @staticmethod
    def _to_float32(audio: bytes) -> np.ndarray:
        if is_wav(audio):
            pcm, rate = wav_to_pcm16(audio)
            if rate != AUDIO_SAMPLE_RATE_HZ:
                raise AudioFormatError(
                    f"expected {AUDIO_SAMPLE_RATE_HZ} Hz audio, got {rate} Hz"
                )
            return pcm16le_to_float32(pcm)
        return pcm16le_to_float32(audio)

    def _load_model(self) -> Any:
        if self._model is not None:
            return self._model

        try:
            from faster_whisper import WhisperModel  # pylint: disable=import-outside-toplevel
        except ImportError as e:
            raise WhisperBackendError(
                "faster-whisper is required for STT_PROVIDER=whisper_local"
            ) from e

        kwargs: dict[str, Any] = {}
        if self._device is not None:
            kwargs["device"] = self._device
        if self._compute_type is not None:
            kwargs["compute_type"] = self._compute_type

        self._model = WhisperModel(self._model_name, **kwargs)
        return self._model

    def _transcribe_sync(self, samples: np.ndarray) -> str:
        model = self._load_model()
        try:
            segments_iter, _info = model.transcribe(
                samples,
                language=self._language,
                beam_size=1,
                temperature=0.0,
                vad_filter=False,  # endpointing is the capture side's job
            )
            text_parts = [
                str(getattr(seg, "text", "")).strip()
                for seg in segments_iter
            ]
        except Exception as e:
            raise WhisperBackendError(f"Whisper transcription failed: {e!r}") from e

        return " ".join(p for p in text_parts if p).strip()
