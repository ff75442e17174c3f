"""Scenario-based conversation practice (role play)."""
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
from constants import PRACTICE_PROMPT_TEMPLATE, SCENARIO_DEFAULT, TARGET_LANGUAGE_DEFAULT


class ConversationPracticeBehavior(ResponseBehavior):
    """
    Plays a native speaker inside a scenario.

    The scenario comes from `parameters["scenario"]` when present,
    otherwise from the configured default.
    """

    def __init__(
        self,
        scenario: str = SCENARIO_DEFAULT,
        custom_prompt: str | None = None,
    ) -> None:
        self._scenario = scenario
        self._custom_prompt = custom_prompt

    @property
    def name(self) -> str:
        return "ConversationPractice"

    async def execute(
        self,
        backend: GenerationBackend | None,
        context: ActionContext,
    ) -> ActionResult:
        failed = precheck(backend, context)
        if failed is not None:
            return failed
        assert backend is not None

        language = resolve_language(context, TARGET_LANGUAGE_DEFAULT)
        scenario = str(context.parameters.get("scenario") or self._scenario)

        if has_text(self._custom_prompt):
            prompt = str(self._custom_prompt)
        else:
            prompt = PRACTICE_PROMPT_TEMPLATE.format(language=language, scenario=scenario)
        prompt = append_context_prompt(prompt, context)

        try:
            response = await backend.generate_with_system(
                context.user_input, prompt, context.history
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return ActionResult.failure(f"Conversation practice failed: {exc}")

        return ActionResult.ok(response, scenario=scenario, target_language=language)
