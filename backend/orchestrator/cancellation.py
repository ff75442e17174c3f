"""
Cooperative cancellation for turns.

Responsibilities:
- Carry a cancel request from the caller into the pipeline and executor
- Let long-running loops check for cancellation at safe points

Non-responsibilities:
- NO task cancellation (asyncio.CancelledError still propagates normally)
- NO timeouts (each backend applies its own request timeout)

A cancelled turn ends with a failure result; in-flight backend calls are
allowed to finish but their output is discarded.
"""

from __future__ import annotations


class CancelToken:
    """
    One-shot cancellation flag.

    Lifecycle:
    1. Caller creates a token and passes it to execute_turn()/execute()
    2. Caller calls cancel() at any time, from any coroutine
    3. Pipeline/executor observe `cancelled` between stages and attempts

    Idempotent: repeated cancel() calls keep the first reason.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason


def is_cancelled(token: CancelToken | None) -> bool:
    return token is not None and token.cancelled
