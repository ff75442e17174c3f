"""Grammar correction for language learners."""
from __future__ import annotations

from adapters.llm.base import GenerationBackend
from behaviors.base import (
    ActionContext,
    ActionResult,
    ResponseBehavior,
    append_context_prompt,
    has_text,
    precheck,
    resolve_language,
)
from constants import GRAMMAR_PROMPT_TEMPLATE, TARGET_LANGUAGE_DEFAULT


class GrammarCheckBehavior(ResponseBehavior):
    """
    Analyzes the user's sentence for grammatical errors.

    The prompt embeds the target language and the text itself; a context
    system prompt is appended rather than replacing the template.
    """

    def __init__(
        self,
        target_language: str = TARGET_LANGUAGE_DEFAULT,
        custom_prompt: str | None = None,
    ) -> None:
        self._target_language = target_language
        self._custom_prompt = custom_prompt

    @property
    def name(self) -> str:
        return "GrammarCheck"

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
            prompt = GRAMMAR_PROMPT_TEMPLATE.format(language=language, text=context.user_input)
        prompt = append_context_prompt(prompt, context)

        try:
            response = await backend.generate_with_system(
                context.user_input, prompt, context.history
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return ActionResult.failure(f"Grammar check failed: {exc}")

        return ActionResult.ok(
            response,
            original_text=context.user_input,
            target_language=language,
        )
