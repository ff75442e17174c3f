"""Plain conversational chat."""
from __future__ import annotations

from adapters.llm.base import GenerationBackend
from behaviors.base import (
    ActionContext,
    ActionResult,
    ResponseBehavior,
    generate_text,
    override_or_default,
    precheck,
)


class ChatBehavior(ResponseBehavior):
    """Sends the user input with history; context prompt overrides the configured one."""

    def __init__(self, system_prompt: str | None = None) -> None:
        self._system_prompt = system_prompt

    @property
    def name(self) -> str:
        return "Chat"

    async def execute(
        self,
        backend: GenerationBackend | None,
        context: ActionContext,
    ) -> ActionResult:
        failed = precheck(backend, context)
        if failed is not None:
            return failed
        assert backend is not None

        try:
            system_prompt = override_or_default(context, self._system_prompt)
            response = await generate_text(backend, context, system_prompt)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            return ActionResult.failure(f"Chat action failed: {exc}")

        return ActionResult.ok(response)
