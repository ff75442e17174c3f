"""
Transcription backend contract.

This module defines the *interface only*: no retries, timers or orchestration
decisions live here.

Key invariants:
- One call transcribes one complete utterance (no streaming, no partials).
- The backend never touches conversation history or pipeline stages.
- Failures are raised; a blank string means "nothing understood".
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class TranscriptionBackend(ABC):
    """
    Abstract interface for a speech-to-text backend.

    Implementations are responsible for:
    - Accepting one audio buffer (WAV bytes or raw PCM16 16kHz mono)
    - Calling the provider or local model
    - Returning the recognized text

    Non-responsibilities:
    - No state machine logic
    - No retries (transcription is attempted once per turn)
    - No audio capture
    """

    @abstractmethod
    async def transcribe(self, audio: bytes) -> str:
        """
        Transcribe one utterance.

        Args:
            audio: Encoded WAV bytes or raw PCM16 little-endian mono samples.

        Returns:
            Recognized text, possibly empty.
        """
        raise NotImplementedError
