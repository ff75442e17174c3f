"""PCM and WAV conversion utilities."""
from __future__ import annotations

import io
import wave

import numpy as np

from constants import AUDIO_SAMPLE_RATE_HZ, AUDIO_SAMPLE_WIDTH_BYTES


class AudioFormatError(ValueError):
    """Audio buffer is not in a supported format."""


def pcm16le_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float32 in [-1.0, 1.0).

    Runtime-safe, backend-agnostic utility.
    No resampling. No channel mixing.
    """
    if len(pcm_bytes) % 2 != 0:
        # Truncated sample; drop the dangling byte
        pcm_bytes = pcm_bytes[: len(pcm_bytes) - 1]

    audio_i16 = np.frombuffer(pcm_bytes, dtype="<i2")  # little-endian int16
    audio_f32 = audio_i16.astype(np.float32) / 32768.0
    return audio_f32


def is_wav(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WAVE"


def wav_to_pcm16(data: bytes) -> tuple[bytes, int]:
    """
    Extract raw PCM16 samples from a mono WAV buffer.

    Returns:
        (pcm_bytes, sample_rate_hz)

    Raises:
        AudioFormatError for non-mono or non-16-bit input.
    """
    try:
        with wave.open(io.BytesIO(data), "rb") as wf:
            if wf.getnchannels() != 1:
                raise AudioFormatError(f"expected mono audio, got {wf.getnchannels()} channels")
            if wf.getsampwidth() != AUDIO_SAMPLE_WIDTH_BYTES:
                raise AudioFormatError(f"expected 16-bit samples, got {wf.getsampwidth() * 8}-bit")
            return wf.readframes(wf.getnframes()), wf.getframerate()
    except wave.Error as exc:
        raise AudioFormatError(f"invalid WAV data: {exc}") from exc


def pcm16_to_wav(pcm_bytes: bytes, sample_rate_hz: int = AUDIO_SAMPLE_RATE_HZ) -> bytes:
    """Wrap raw PCM16 mono samples in a WAV container."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(AUDIO_SAMPLE_WIDTH_BYTES)
        wf.setframerate(sample_rate_hz)
        wf.writeframes(pcm_bytes)
    return buf.getvalue()
