"""
Turn stage enumeration.

Rules:
- This enum defines ONLY the stages of one turn.
- No behavior, no helper methods, no side effects.
- Transitions are made exclusively by orchestrator.pipeline.
"""

from __future__ import annotations

from enum import Enum


class Stage(str, Enum):
    """
    Transient, pipeline-local stage of the current turn.

    COMPLETE and ERROR are terminal for a turn; the next turn starts again
    from TRANSCRIBING.
    """

    IDLE = "IDLE"
    TRANSCRIBING = "TRANSCRIBING"
    GENERATING = "GENERATING"
    SYNTHESIZING = "SYNTHESIZING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"
