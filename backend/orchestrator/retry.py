"""
Retry policy helpers.

Purpose:
- Centralize the bounded-attempt, fixed-delay rule for the generation step
- Keep the executor loop free of arithmetic
- Allow tests to substitute the sleep function

Only generation is retried; transcription and synthesis run once per turn.
This module contains NO timers and NO side effects.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

from constants import MAX_RETRIES_DEFAULT, RETRY_DELAY_S_DEFAULT


# Async wait used between attempts (asyncio.sleep in production, a recorder in tests)
Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Immutable retry policy.

    max_retries:
        Retries after the initial attempt (total attempts = max_retries + 1).
    retry_delay_s:
        Fixed delay before each retry. No backoff.
    """
    max_retries: int = MAX_RETRIES_DEFAULT
    retry_delay_s: float = RETRY_DELAY_S_DEFAULT

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_delay_s < 0:
            raise ValueError("retry_delay_s must be >= 0")

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1


@dataclass(frozen=True)
class RetryAttempt:
    """
    Immutable retry counter.

    Semantics:
    - attempt == 0 represents the initial attempt (no retry yet).
    - attempt >= 1 represents the Nth retry.
    """
    attempt: int


def reset_attempt() -> RetryAttempt:
    """Returns a fresh retry attempt counter."""
    return RetryAttempt(attempt=0)


def next_attempt(current: RetryAttempt) -> RetryAttempt:
    """Advance to the next retry attempt."""
    return RetryAttempt(attempt=current.attempt + 1)


def should_retry(policy: RetryPolicy, attempt: RetryAttempt) -> bool:
    """
    Returns True if another attempt is allowed.

    attempt = number of retries already performed
    """
    return attempt.attempt < policy.max_retries


def get_retry_delay_s(policy: RetryPolicy) -> float:
    """Delay before the next retry. Fixed, independent of the attempt number."""
    return policy.retry_delay_s
