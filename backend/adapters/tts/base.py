"""
Synthesis backend contract.

This module defines the *interface only*: no chunking policy, no retries,
timers, or orchestration decisions live here.

Key invariants:
- One call synthesizes the full response text of one turn.
- An absent result (None) is a legitimate failure signal, as is raising.
- Playback is the caller's concern.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from constants import TTS_SPEED_DEFAULT, TTS_SPEED_MAX, TTS_SPEED_MIN


def clamp_speed(speed: float) -> float:
    """Clamp a speed multiplier into the supported range."""
    return max(TTS_SPEED_MIN, min(TTS_SPEED_MAX, speed))


class SynthesisBackend(ABC):
    """
    Abstract interface for a text-to-speech backend.

    Implementations are responsible for:
    - Calling the TTS provider
    - Returning the encoded audio bytes (or None when nothing was produced)
    - Honouring the configured speed multiplier

    Non-responsibilities:
    - No state machine logic
    - No retries (synthesis is attempted once per turn)
    - No playback
    """

    def __init__(self, *, speed: float = TTS_SPEED_DEFAULT) -> None:
        self._speed = clamp_speed(speed)

    @property
    def speed(self) -> float:
        return self._speed

    def set_speed(self, multiplier: float) -> None:
        """Set the speech speed multiplier (clamped to 0.25-2.0)."""
        self._speed = clamp_speed(multiplier)

    @abstractmethod
    async def synthesize(self, text: str) -> bytes | None:
        """
        Synthesize speech for the given text.

        Returns:
            Audio bytes, or None if the provider produced nothing.
        """
        raise NotImplementedError
