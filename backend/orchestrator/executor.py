"""
Action executor.

Responsibilities:
- Run one behavior against the generation backend with bounded retries
- Treat a raised exception exactly like a returned failure
- Stamp elapsed time and attempt count on the returned result
- Run behaviors in sequence, threading successful responses into the context

Non-responsibilities:
- Prompt construction (behaviors)
- Conversation history ownership (pipeline)
- Transcription or synthesis
"""

from __future__ import annotations

import asyncio
from typing import Sequence

from adapters.llm.base import GenerationBackend
from behaviors.base import ActionContext, ActionResult, ResponseBehavior
from context.conversation import Message, Role
from observability.logger import log_event
from observability.metrics import start_timer, stop_timer
from orchestrator.cancellation import CancelToken, is_cancelled
from orchestrator.retry import (
    RetryPolicy,
    Sleeper,
    get_retry_delay_s,
    next_attempt,
    reset_attempt,
    should_retry,
)


class ActionExecutor:
    """
    Executes behaviors with retry semantics.

    The executor never raises for behavior failures. Only programming errors
    in its own arguments (constructor) and task cancellation escape.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        policy: RetryPolicy | None = None,
        *,
        sleep: Sleeper = asyncio.sleep,
        session_id: str | None = None,
    ) -> None:
        if backend is None:
            raise ValueError("backend is required")
        self._backend = backend
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._session_id = session_id

    @property
    def backend(self) -> GenerationBackend:
        return self._backend

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        behavior: ResponseBehavior | None,
        context: ActionContext | None,
        *,
        cancel: CancelToken | None = None,
    ) -> ActionResult:
        """
        Execute one behavior.

        Attempts run until one succeeds or max_retries + 1 attempts have been
        made, with the fixed retry delay awaited between consecutive attempts.
        """
        if behavior is None:
            return _stamp(ActionResult.failure("No action to execute"), attempts=0, elapsed_ms=0)

        name = type(behavior).__name__
        try:
            name = behavior.name
            allowed = behavior.can_execute(context)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "ACTION_REJECTED",
                "session_id": self._session_id,
                "behavior": name,
                "error": f"{type(exc).__name__}: {exc}",
            }, level="WARNING")
            return _stamp(ActionResult.failure(f"Action {name} cannot execute: {exc}"), attempts=0, elapsed_ms=0)

        if not allowed:
            log_event({
                "event_type": "ACTION_REJECTED",
                "session_id": self._session_id,
                "behavior": name,
            }, level="DEBUG")
            return _stamp(
                ActionResult.failure(f"Action {name} cannot execute with the given context"),
                attempts=0,
                elapsed_ms=0,
            )

        assert context is not None

        timer_id = start_timer("action_execute")
        try:
            result, attempts = await self._run_attempts(behavior, context, cancel)
        finally:
            elapsed_ms = stop_timer(
                timer_id,
                session_id=self._session_id,
                behavior=name,
            )
        return _stamp(result, attempts=attempts, elapsed_ms=elapsed_ms or 0)

    async def _run_attempts(
        self,
        behavior: ResponseBehavior,
        context: ActionContext,
        cancel: CancelToken | None,
    ) -> tuple[ActionResult, int]:
        attempts = 0
        retry = reset_attempt()
        last_result: ActionResult | None = None
        last_exc: Exception | None = None

        while True:
            if is_cancelled(cancel):
                return ActionResult.failure("Action cancelled"), attempts

            attempts += 1
            last_exc = None
            try:
                result = await behavior.execute(self._backend, context)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # pylint: disable=broad-exception-caught
                last_exc = exc
                result = ActionResult.failure(f"{type(exc).__name__}: {exc}")

            if result is None:
                result = ActionResult.failure(f"Action {behavior.name} returned no result")

            if result.success:
                log_event({
                    "event_type": "ACTION_SUCCEEDED",
                    "session_id": self._session_id,
                    "behavior": behavior.name,
                    "attempts": attempts,
                }, level="DEBUG")
                return result, attempts

            last_result = result
            log_event({
                "event_type": "ACTION_FAILED",
                "session_id": self._session_id,
                "behavior": behavior.name,
                "attempt": attempts,
                "raised": last_exc is not None,
                "error": result.error_message,
            }, level="WARNING")

            if not should_retry(self._policy, retry):
                break

            await self._sleep(get_retry_delay_s(self._policy))
            retry = next_attempt(retry)

        log_event({
            "event_type": "ACTION_EXHAUSTED",
            "session_id": self._session_id,
            "behavior": behavior.name,
            "attempts": attempts,
        }, level="ERROR")

        if last_exc is not None:
            return ActionResult.failure(f"Action failed after {attempts} attempts: {last_exc}"), attempts
        return last_result, attempts

    async def execute_sequence(
        self,
        behaviors: Sequence[ResponseBehavior],
        context: ActionContext,
        *,
        stop_on_first_failure: bool = True,
        cancel: CancelToken | None = None,
    ) -> list[ActionResult]:
        """
        Execute behaviors in order on a shared context.

        Each successful response is appended to context.history as an
        Assistant message so later behaviors see it.
        """
        results: list[ActionResult] = []
        for behavior in behaviors:
            result = await self.execute(behavior, context, cancel=cancel)
            results.append(result)

            if not result.success:
                if stop_on_first_failure:
                    break
                continue

            if result.response_text:
                context.history.append(Message(role=Role.ASSISTANT, text=result.response_text))

        return results

    async def is_backend_available(self) -> bool:
        return await check_backend_available(self._backend, session_id=self._session_id)


async def check_backend_available(backend: GenerationBackend, *, session_id: str | None = None) -> bool:
    """Liveness probe; any failure other than cancellation reads as unavailable."""
    try:
        return await backend.is_available()
    except asyncio.CancelledError:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        log_event({
            "event_type": "BACKEND_UNAVAILABLE",
            "session_id": session_id,
            "error": f"{type(exc).__name__}: {exc}",
        }, level="WARNING")
        return False


def _stamp(result: ActionResult, *, attempts: int, elapsed_ms: int) -> ActionResult:
    result.elapsed_ms = elapsed_ms
    result.metadata["attempts"] = attempts
    return result
