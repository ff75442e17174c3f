"""
Behavior catalogue.

Maps a tutoring mode name to a configured ResponseBehavior instance.
New behaviors are added here; the pipeline and executor stay unchanged.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import TYPE_CHECKING

from behaviors.base import ResponseBehavior
from behaviors.chat import ChatBehavior
from behaviors.grammar import GrammarCheckBehavior
from behaviors.object_tagging import ObjectLabelSource, ObjectTaggingBehavior
from behaviors.practice import ConversationPracticeBehavior
from behaviors.spelling import SpellingGameBehavior
from behaviors.vision import FrameSource, FreeTalkVisionBehavior
from behaviors.vocabulary import VocabularyTeachBehavior
from behaviors.word_reordering import WordReorderingBehavior
from constants import DEFAULT_SYSTEM_PROMPT
from learning.progress import VocabularyTracker

if TYPE_CHECKING:
    from config import AppConfig


class BehaviorMode(str, Enum):
    """Tutoring modes selectable per turn."""

    CHAT = "chat"
    GRAMMAR = "grammar"
    VOCABULARY = "vocabulary"
    PRACTICE = "practice"
    FREE_TALK = "free_talk"
    WORD_REORDERING = "word_reordering"
    OBJECT_TAGGING = "object_tagging"
    SPELLING = "spelling"


def parse_mode(value: str | BehaviorMode) -> BehaviorMode:
    """
    Raises:
        ValueError for an unknown mode name.
    """
    if isinstance(value, BehaviorMode):
        return value
    try:
        return BehaviorMode(value.strip().lower())
    except ValueError as exc:
        known = ", ".join(m.value for m in BehaviorMode)
        raise ValueError(f"unknown behavior mode {value!r} (expected one of: {known})") from exc


def build_behavior(
    mode: str | BehaviorMode,
    config: AppConfig,
    *,
    frame_source: FrameSource | None = None,
    label_source: ObjectLabelSource | None = None,
    tracker: VocabularyTracker | None = None,
    rng: random.Random | None = None,
) -> ResponseBehavior:
    """Build the behavior for `mode` using the deployment's language settings."""
    resolved = parse_mode(mode)

    if resolved is BehaviorMode.CHAT:
        return ChatBehavior(DEFAULT_SYSTEM_PROMPT)
    if resolved is BehaviorMode.GRAMMAR:
        return GrammarCheckBehavior(target_language=config.target_language)
    if resolved is BehaviorMode.VOCABULARY:
        return VocabularyTeachBehavior(target_language=config.target_language)
    if resolved is BehaviorMode.PRACTICE:
        return ConversationPracticeBehavior()
    if resolved is BehaviorMode.FREE_TALK:
        return FreeTalkVisionBehavior(DEFAULT_SYSTEM_PROMPT, frame_source=frame_source)
    if resolved is BehaviorMode.WORD_REORDERING:
        return WordReorderingBehavior(rng=rng)
    if resolved is BehaviorMode.SPELLING:
        return SpellingGameBehavior(target_language=config.target_language, rng=rng)
    return ObjectTaggingBehavior(label_source=label_source, tracker=tracker)
