"""Error taxonomy for a chat turn.

Every error that can escape :meth:`InventoryAgent.run` derives from
:class:`AgentError` and carries the HTTP status and the user-facing message
the API layer should return.  The user message never contains provider
details; those go to the log.

Tool-level problems (empty inventory, no matches, search failures) are *not*
exceptions; they are encoded in the tool result payload so the model can
answer conversationally.
"""

from __future__ import annotations

import anthropic
import httpx

GENERIC_USER_MESSAGE = "An internal error occurred. Please try again."


class AgentError(Exception):
    """Base class for failures that abort a chat turn."""

    status_code: int = 500
    user_message: str = GENERIC_USER_MESSAGE


class RateLimited(AgentError):
    """The provider answered "too many requests" (HTTP 429)."""

    status_code = 503
    user_message = "Service temporarily unavailable. Please try again later."


class RetriesExhausted(AgentError):
    """A rate-limited call kept failing for every allowed attempt."""

    status_code = 503
    user_message = "Service temporarily unavailable due to rate limits. Please try again later."

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Gave up after {attempts} rate-limited attempts: {last_error}")


class AuthenticationFailed(AgentError):
    """The provider rejected our credentials.  Never retried."""

    user_message = "Authentication failed. Please check your API configuration."


class ProviderUnavailable(AgentError):
    """A network, transport or server-side failure of an external service."""

    status_code = 503
    user_message = "The assistant is temporarily unavailable. Please try again."

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class LoopExceeded(AgentError):
    """The decision cycle hit its bound without a final answer."""

    def __init__(self, max_cycles: int):
        self.max_cycles = max_cycles
        super().__init__(f"Agent did not produce a final answer within {max_cycles} cycles")


def _status_of(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    return status if isinstance(status, int) else None


def is_rate_limited(exc: BaseException) -> bool:
    """Return ``True`` if *exc* is a provider "too many requests" failure."""
    return isinstance(exc, (anthropic.RateLimitError, RateLimited)) or _status_of(exc) == 429


def translate_provider_error(exc: BaseException, provider: str) -> AgentError:
    """Map a raw SDK / transport exception onto the :class:`AgentError` taxonomy."""
    if isinstance(exc, AgentError):
        return exc
    if is_rate_limited(exc):
        return RateLimited(str(exc))

    status = _status_of(exc)
    if isinstance(exc, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)) or status in (401, 403):
        return AuthenticationFailed(str(exc))
    if isinstance(exc, (anthropic.APIConnectionError, httpx.TransportError, ConnectionError, TimeoutError)):
        return ProviderUnavailable(provider, f"{type(exc).__name__}: {exc}")
    if status is not None and status >= 500:
        return ProviderUnavailable(provider, f"server error {status}")

    return AgentError(f"{provider} call failed: {type(exc).__name__}: {exc}")
