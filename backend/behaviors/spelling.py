"""
Spelling game.

The backend supplies one target word; the behavior hands back its letters
mixed with a few distractors and keeps the word so spelling attempts can be
checked. A blank or failed generation falls back to a fixed word so a game
always starts.
"""

from __future__ import annotations

import random
import re
from typing import Sequence

from adapters.llm.base import GenerationBackend
from behaviors.base import ActionContext, ActionResult, ResponseBehavior, resolve_language
from constants import (
    SPELLING_ALPHABET,
    SPELLING_EXTRA_LETTERS,
    SPELLING_FALLBACK_WORD,
    SPELLING_LENGTH_HINTS,
    SPELLING_PROMPT_TEMPLATE,
    SPELLING_REQUEST,
    TARGET_LANGUAGE_DEFAULT,
)
from observability.logger import log_event

_NON_WORD = re.compile(r"[^\w]")


def clean_word(raw: str) -> str:
    """Last whitespace-separated token of the reply, non-word characters removed, upper-cased."""
    tokens = raw.split()
    if not tokens:
        return ""
    return _NON_WORD.sub("", tokens[-1]).upper()


def scramble_letters(
    word: str,
    rng: random.Random,
    extra: int = SPELLING_EXTRA_LETTERS,
) -> list[str]:
    """Letters of `word` plus `extra` random distractors, shuffled."""
    letters = list(word.upper())
    letters.extend(rng.choice(SPELLING_ALPHABET) for _ in range(max(extra, 0)))
    rng.shuffle(letters)
    return letters


class SpellingGameBehavior(ResponseBehavior):
    """
    Game state lives on the instance; one instance serves one word at a time.
    """

    def __init__(
        self,
        target_language: str = TARGET_LANGUAGE_DEFAULT,
        rng: random.Random | None = None,
    ) -> None:
        self._target_language = target_language
        self._rng = rng or random.Random()

        self.target_word: str = ""
        self.letters: list[str] = []
        self.is_solved: bool = False

    @property
    def name(self) -> str:
        return "SpellingGame"

    def can_execute(self, context: ActionContext | None) -> bool:
        # Picks its own word; the learner's utterance is not needed.
        return context is not None

    async def execute(
        self,
        backend: GenerationBackend | None,
        context: ActionContext,
    ) -> ActionResult:
        if backend is None:
            return ActionResult.failure("Generation backend is not configured")

        language = resolve_language(context, self._target_language)
        word = await self._generate_word(backend, language)
        used_fallback = word == ""
        self.start(word or SPELLING_FALLBACK_WORD)

        return ActionResult.ok(
            f"Let's practice. Spell {self.target_word}.",
            target_word=self.target_word,
            letters=list(self.letters),
            target_language=language,
            used_fallback=used_fallback,
        )

    def start(self, word: str) -> None:
        """Begin a new game with `word`."""
        self.target_word = word.upper()
        self.letters = scramble_letters(self.target_word, self._rng)
        self.is_solved = False

        log_event({
            "event_type": "SPELLING_READY",
            "behavior": self.name,
            "word_length": len(self.target_word),
            "tile_count": len(self.letters),
        }, level="DEBUG")

    def check_spelling(self, attempt: str | Sequence[str] | None) -> bool:
        """Case-insensitive check of a word or a sequence of letters; marks the game solved."""
        if attempt is None or not self.target_word:
            return False
        spelled = attempt if isinstance(attempt, str) else "".join(attempt)
        if spelled.strip().upper() != self.target_word:
            return False
        self.is_solved = True
        return True

    async def _generate_word(self, backend: GenerationBackend, language: str) -> str:
        prompt = SPELLING_PROMPT_TEMPLATE.format(
            language=language,
            length=self._rng.choice(SPELLING_LENGTH_HINTS),
        )
        try:
            response = await backend.generate_with_system(SPELLING_REQUEST, prompt, [])
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "SPELLING_FALLBACK",
                "behavior": self.name,
                "error": f"{type(exc).__name__}: {exc}",
            }, level="WARNING")
            return ""
        return clean_word(response or "")
