"""
Vocabulary progress tracking.

Responsibilities:
- Register words the learner has been exposed to (keyed by normalized label)
- Persist progress as a JSON file

Non-responsibilities:
- No quiz scheduling or spaced-repetition decisions
- No object detection
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path

from observability.logger import log_event


class VocabularyTracker(ABC):
    """Sink for words the tutor has introduced."""

    @abstractmethod
    def register_word(self, label: str) -> None:
        raise NotImplementedError


@dataclass
class WordProgress:
    """Per-word counters. `count` goes up on correct answers and down on mistakes."""
    label: str
    count: int = 0
    last_asked: str | None = None  # ISO 8601
    correct_count: int = 0
    incorrect_count: int = 0


def _key(label: str) -> str:
    return label.strip().lower()


class VocabularyProgress(VocabularyTracker):
    """
    JSON-file-backed tracker.

    File format:
        {"data": [{"label": ..., "count": ..., "last_asked": ..., ...}, ...]}

    A missing file means "no progress yet". Save failures are logged, not raised,
    so a read-only disk never breaks a turn.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._words: dict[str, WordProgress] = {}
        self.load()

    def register_word(self, label: str) -> None:
        if not label or not label.strip():
            return

        key = _key(label)
        if key in self._words:
            return

        self._words[key] = WordProgress(label=label.strip())
        log_event({
            "event_type": "VOCABULARY_REGISTERED",
            "label": label.strip(),
        }, level="DEBUG")
        self.save()

    def get_progress(self, label: str) -> WordProgress | None:
        return self._words.get(_key(label))

    def all_progress(self) -> dict[str, WordProgress]:
        return dict(self._words)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        if self._path is None:
            return

        payload = {"data": [asdict(w) for w in self._words.values()]}
        try:
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            log_event({
                "event_type": "VOCABULARY_SAVE_FAILED",
                "path": str(self._path),
                "error": f"{type(exc).__name__}: {exc}",
            }, level="ERROR")

    def load(self) -> None:
        if self._path is None or not self._path.exists():
            return

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            items = raw.get("data") or []
            self._words = {
                _key(item["label"]): WordProgress(**item)
                for item in items
            }
        except (OSError, ValueError, KeyError, TypeError) as exc:
            log_event({
                "event_type": "VOCABULARY_LOAD_FAILED",
                "path": str(self._path),
                "error": f"{type(exc).__name__}: {exc}",
            }, level="ERROR")
            self._words = {}
