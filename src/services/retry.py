"""Exponential-backoff retry for rate-limited model calls.

Only "too many requests" failures are retried; everything else (bad request,
authentication, transport errors) propagates on the first occurrence so the
turn fails fast.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.errors import RetriesExhausted, is_rate_limited

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 30.0


def backoff_delay(
    attempt: int,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS,
) -> float:
    """Seconds to wait after rate-limited attempt number *attempt* (1-based)."""
    return min(base_delay * (2 ** attempt), max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    *,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS,
) -> T:
    """Await ``operation()`` and retry it on rate-limit failures.

    Args:
        operation: Zero-argument callable returning a fresh awaitable for
            every attempt.
        max_attempts: Total number of attempts, including the first.
        base_delay: Backoff base in seconds.
        max_delay: Ceiling for a single backoff sleep.

    Raises:
        RetriesExhausted: every attempt was rate-limited.  The last provider
            error is chained as ``__cause__``.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if not is_rate_limited(exc):
                raise
            if attempt == max_attempts:
                logger.error("Rate limited on final attempt %d/%d, giving up", attempt, max_attempts)
                raise RetriesExhausted(max_attempts, exc) from exc

            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                "Rate limit hit on attempt %d/%d. Retrying in %.1fs…",
                attempt, max_attempts, delay,
            )
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
