"""
Response behavior contract (command pattern).

Rules:
- A behavior turns one ActionContext into one ActionResult.
- A behavior may call the generation backend 0-2 times (primary + degraded fallback).
- A behavior never raises for backend failures: it returns ActionResult.failure().
- A behavior never retains the context or mutates conversation history.
- Retries, timing and sequencing belong to orchestrator.executor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from adapters.llm.base import GenerationBackend
from constants import PROMPT_SEPARATOR
from context.conversation import Message


# =============================================================================
# Data contracts
# =============================================================================

@dataclass
class ActionContext:
    """
    Input for one behavior invocation.

    Created fresh per turn by the pipeline; `history` is a copy of the trimmed,
    System-filtered history slice, so sequence execution may append to it.
    """
    user_input: str
    history: list[Message] = field(default_factory=list)
    system_prompt: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    target_language: str | None = None
    proficiency_level: str | None = None


@dataclass
class ActionResult:
    """Output of one behavior invocation. Consumed immediately by the caller."""
    success: bool
    response_text: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    elapsed_ms: int = 0

    @staticmethod
    def ok(response_text: str, **metadata: Any) -> ActionResult:
        return ActionResult(success=True, response_text=response_text, metadata=dict(metadata))

    @staticmethod
    def failure(error_message: str) -> ActionResult:
        return ActionResult(success=False, error_message=error_message)


# =============================================================================
# Behavior base
# =============================================================================

class ResponseBehavior(ABC):
    """
    Pluggable strategy for producing a tutor response.

    Subclasses differ only in prompt construction and optional side effects.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Behavior name for logging and diagnostics."""
        raise NotImplementedError

    def can_execute(self, context: ActionContext | None) -> bool:
        """Pure predicate: the context carries non-blank user input."""
        return context is not None and has_text(context.user_input)

    @abstractmethod
    async def execute(
        self,
        backend: GenerationBackend | None,
        context: ActionContext,
    ) -> ActionResult:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


# =============================================================================
# Helpers shared by behaviors
# =============================================================================

def has_text(value: str | None) -> bool:
    return value is not None and value.strip() != ""


def precheck(backend: GenerationBackend | None, context: ActionContext | None) -> ActionResult | None:
    """Return a local failure for a missing backend or input, else None."""
    if backend is None:
        return ActionResult.failure("Generation backend is not configured")
    if context is None or not has_text(context.user_input):
        return ActionResult.failure("Missing user input")
    return None


def override_or_default(context: ActionContext, default: str | None) -> str | None:
    """Context system prompt wins over the behavior's configured prompt."""
    if has_text(context.system_prompt):
        return context.system_prompt
    return default


def append_context_prompt(prompt: str, context: ActionContext) -> str:
    """Append the context's extra system prompt (e.g. room awareness) to a template prompt."""
    if has_text(context.system_prompt):
        return prompt + PROMPT_SEPARATOR + str(context.system_prompt)
    return prompt


async def generate_text(
    backend: GenerationBackend,
    context: ActionContext,
    system_prompt: str | None,
) -> str:
    """Text-only generation: explicit system prompt if any, else the backend default."""
    if has_text(system_prompt):
        return await backend.generate_with_system(
            context.user_input, str(system_prompt), context.history
        )
    return await backend.generate(context.user_input, context.history)


def resolve_language(context: ActionContext, default: str) -> str:
    return context.target_language if has_text(context.target_language) else default
