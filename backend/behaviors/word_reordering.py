"""
Word reordering puzzle.

The backend supplies one correct sentence; the behavior returns its words in
a scrambled order and keeps the answer so the caller can check attempts.
"""

from __future__ import annotations

import random
import re
from typing import Sequence

from adapters.llm.base import GenerationBackend
from behaviors.base import (
    ActionContext,
    ActionResult,
    ResponseBehavior,
    generate_text,
    override_or_default,
    precheck,
)
from constants import PUZZLE_STRIP_CHARS, SHUFFLE_MAX_ATTEMPTS, WORD_REORDERING_PROMPT
from observability.logger import log_event

_LEADING_NUMBER = re.compile(r"^\d+\.?\s*")
_SPACES = re.compile(r"[ \t]+")


def clean_sentence(raw: str) -> str:
    """
    Reduce a generated reply to one sentence.

    - First non-empty line only
    - Surrounding quotes and leading numbering ("1. ") removed
    - Whitespace runs collapsed
    """
    lines = [line.strip() for line in raw.strip().splitlines() if line.strip()]
    cleaned = lines[0] if lines else ""
    cleaned = cleaned.strip("".join(PUZZLE_STRIP_CHARS))
    cleaned = _LEADING_NUMBER.sub("", cleaned)
    return _SPACES.sub(" ", cleaned).strip()


def shuffle_until_different(
    words: Sequence[str],
    rng: random.Random,
    max_attempts: int = SHUFFLE_MAX_ATTEMPTS,
) -> tuple[list[str], int]:
    """
    Fisher-Yates shuffle, repeated until the order differs from `words`.

    Returns (shuffled, attempts). Inputs of length <= 1 are returned unchanged
    with zero attempts. The loop stops after `max_attempts` even if every
    shuffle reproduced the original (possible when all words are equal).
    """
    result = list(words)
    if len(result) <= 1:
        return result, 0

    attempts = 0
    while attempts < max_attempts:
        rng.shuffle(result)
        attempts += 1
        if result != list(words):
            break
    return result, attempts


class WordReorderingBehavior(ResponseBehavior):
    """
    Puzzle state lives on the instance; one instance serves one puzzle at a time.
    """

    def __init__(
        self,
        system_prompt: str | None = WORD_REORDERING_PROMPT,
        rng: random.Random | None = None,
    ) -> None:
        self._system_prompt = system_prompt
        self._rng = rng or random.Random()

        self.current_sentence: str = ""
        self.correct_words: list[str] = []
        self.scrambled_words: list[str] = []
        self.is_solved: bool = False

    @property
    def name(self) -> str:
        return "WordReordering"

    @property
    def word_count(self) -> int:
        return len(self.correct_words)

    async def execute(
        self,
        backend: GenerationBackend | None,
        context: ActionContext,
    ) -> ActionResult:
        failed = precheck(backend, context)
        if failed is not None:
            return failed
        assert backend is not None

        self.is_solved = False
        system_prompt = override_or_default(context, self._system_prompt)

        try:
            response = await generate_text(backend, context, system_prompt)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return ActionResult.failure(f"Word reordering failed: {exc}")

        attempts = self.load_sentence(response)
        if not self.correct_words:
            return ActionResult.failure("Word reordering failed: empty sentence")

        return ActionResult.ok(
            " ".join(self.scrambled_words),
            sentence=self.current_sentence,
            word_count=self.word_count,
            shuffle_attempts=attempts,
        )

    def load_sentence(self, raw: str) -> int:
        """Clean, split and scramble a sentence. Returns the number of shuffles."""
        self.current_sentence = clean_sentence(raw)
        self.correct_words = self.current_sentence.split()
        self.scrambled_words, attempts = shuffle_until_different(self.correct_words, self._rng)

        log_event({
            "event_type": "PUZZLE_READY",
            "behavior": self.name,
            "word_count": self.word_count,
            "shuffle_attempts": attempts,
        }, level="DEBUG")
        return attempts

    def is_correct_order(self, words: Sequence[str] | None) -> bool:
        """Case-insensitive comparison against the answer; marks the puzzle solved."""
        if words is None or len(words) != len(self.correct_words):
            return False
        if any(a.lower() != b.lower() for a, b in zip(words, self.correct_words)):
            return False
        self.is_solved = True
        return True
