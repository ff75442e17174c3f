"""Object tagging: teach the names of objects around the learner."""
from __future__ import annotations

from abc import ABC, abstractmethod

from adapters.llm.base import GenerationBackend
from behaviors.base import (
    ActionContext,
    ActionResult,
    ResponseBehavior,
    generate_text,
    override_or_default,
    precheck,
)
from constants import OBJECT_TAGGING_PROMPT
from learning.progress import VocabularyTracker
from observability.logger import log_event


class ObjectLabelSource(ABC):
    """Supplies the labels of objects currently detected around the learner."""

    @abstractmethod
    def get_object_labels(self) -> list[str]:
        raise NotImplementedError


class ObjectTaggingBehavior(ResponseBehavior):
    """
    Registers every detected label with the vocabulary tracker, then replies.

    Registration happens before the generation call and is kept even when
    generation fails.
    """

    def __init__(
        self,
        system_prompt: str | None = OBJECT_TAGGING_PROMPT,
        label_source: ObjectLabelSource | None = None,
        tracker: VocabularyTracker | None = None,
    ) -> None:
        self._system_prompt = system_prompt
        self._label_source = label_source
        self._tracker = tracker

    @property
    def name(self) -> str:
        return "ObjectTagging"

    async def execute(
        self,
        backend: GenerationBackend | None,
        context: ActionContext,
    ) -> ActionResult:
        failed = precheck(backend, context)
        if failed is not None:
            return failed
        assert backend is not None

        system_prompt = override_or_default(context, self._system_prompt)

        try:
            registered = self._register_labels()
            response = await generate_text(backend, context, system_prompt)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "OBJECT_TAGGING_FAILED",
                "behavior": self.name,
                "error": f"{type(exc).__name__}: {exc}",
            }, level="ERROR")
            return ActionResult.failure(f"ObjectTagging failed: {exc}")

        return ActionResult.ok(response, registered_objects=registered)

    def _register_labels(self) -> int:
        if self._label_source is None or self._tracker is None:
            return 0

        labels = self._label_source.get_object_labels() or []
        for label in labels:
            self._tracker.register_word(label)

        log_event({
            "event_type": "OBJECTS_REGISTERED",
            "behavior": self.name,
            "count": len(labels),
        }, level="DEBUG")
        return len(labels)
