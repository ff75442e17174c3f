"""Vocabulary teaching: definition, examples, synonyms and a memory tip."""
from __future__ import annotations

from adapters.llm.base import GenerationBackend
from behaviors.base import (
    ActionContext,
    ActionResult,
    ResponseBehavior,
    has_text,
    precheck,
    resolve_language,
)
from constants import TARGET_LANGUAGE_DEFAULT, VOCABULARY_PROMPT_TEMPLATE


class VocabularyTeachBehavior(ResponseBehavior):

    def __init__(
        self,
        target_language: str = TARGET_LANGUAGE_DEFAULT,
        custom_prompt: str | None = None,
    ) -> None:
        self._target_language = target_language
        self._custom_prompt = custom_prompt

    @property
    def name(self) -> str:
        return "VocabularyTeach"

    async def execute(
        self,
        backend: GenerationBackend | None,
        context: ActionContext,
    ) -> ActionResult:
        failed = precheck(backend, context)
        if failed is not None:
            return failed
        assert backend is not None

        language = resolve_language(context, self._target_language)
        if has_text(self._custom_prompt):
            prompt = str(self._custom_prompt)
        else:
            prompt = VOCABULARY_PROMPT_TEMPLATE.format(language=language, text=context.user_input)

        try:
            response = await backend.generate_with_system(
                context.user_input, prompt, context.history
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return ActionResult.failure(f"Vocabulary teaching failed: {exc}")

        return ActionResult.ok(
            response,
            word_or_phrase=context.user_input,
            target_language=language,
        )
