"""Exception system for the 4-in-a-Row client.

Every error carries a list of structured hints for the terminal client.
Generic exceptions can be classified on the way out:

    try:
        await client.get(url)
    except Exception as e:
        raise FourInARowError() from e  # Becomes NetworkError, SessionTimeoutError, ...
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from typing import Self

    import httpx

from fourinarow.shared.hints import (
    BACKEND_UNREACHABLE,
    INVALID_CONFIG,
    INVALID_MESSAGE,
    RECONNECT_EXHAUSTED,
    USERNAME_REQUIRED,
    Hint,
)

logger = logging.getLogger(__name__)


class FourInARowError(Exception):
    """Base exception class for all client errors.

    Usage:
        raise FourInARowError() from e  # Auto-converts to appropriate subclass
        raise FourInARowError("Custom message") from e  # With custom message
    """

    def __new__(cls, message: str = "", *args: Any, **kwargs: Any) -> Any:
        """Auto-convert generic exceptions to specific subclasses when chained."""
        import sys

        # Only intercept for the base class, not subclasses
        if cls is not FourInARowError:
            return super().__new__(cls)

        exc_type, exc_value, _ = sys.exc_info()
        if exc_type and exc_value:
            if isinstance(exc_value, FourInARowError):
                return exc_value
            elif isinstance(exc_value, Exception):
                result = cls._analyze_exception(exc_value, message or str(exc_value))
                # Unclassified errors propagate unchanged
                if type(result) is FourInARowError:
                    raise exc_value from None
                return result

        return super().__new__(cls)

    default_hints: ClassVar[list[Hint]] = []

    def __init__(
        self,
        message: str = "",
        *,
        hints: list[Hint] | None = None,
    ) -> None:
        # _analyze_exception sets args before calling __init__
        if not self.args:
            self.args = (message,)
        self.message = message or (self.args[0] if self.args else "")
        self.hints: list[Hint] = hints if hints is not None else list(self.default_hints)

    def __str__(self) -> str:
        return str(self.args[0]) if self.args and self.args[0] else ""

    @classmethod
    def _analyze_exception(cls, e: Exception, message: str = "") -> FourInARowError:
        """Convert generic exceptions to specific subclasses based on type and content."""
        error_msg = str(e).lower()
        final_msg = message or str(e)

        patterns = [
            # (condition_func, exception_class)
            (lambda: isinstance(e, TimeoutError), SessionTimeoutError),
            (lambda: isinstance(e, json.JSONDecodeError), MessageDecodeError),
            (lambda: isinstance(e, ConnectionError), NetworkError),
            (
                lambda: "connection refused" in error_msg or "name or service" in error_msg,
                NetworkError,
            ),
            (lambda: "config" in error_msg, ConfigError),
        ]

        for condition, exception_class in patterns:
            if condition():
                # Subclasses skip the interception in __new__; SessionTimeoutError
                # also needs OSError's allocator, which Exception.__new__ refuses
                instance = exception_class.__new__(exception_class)
                instance.args = (final_msg,)
                instance.__init__(final_msg)
                return instance

        instance = Exception.__new__(FourInARowError)
        instance.args = (final_msg,)
        instance.__init__(final_msg)
        return instance


class MessageDecodeError(FourInARowError):
    """A framed candidate could not be decoded into a message variant."""

    default_hints: ClassVar[list[Hint]] = [INVALID_MESSAGE]

    def __init__(
        self,
        message: str = "",
        raw: str | None = None,
        *,
        hints: list[Hint] | None = None,
    ) -> None:
        self.raw = raw
        super().__init__(message, hints=hints)

    def __str__(self) -> str:
        base = super().__str__()
        if self.raw is not None:
            return f"{base} | Raw: {self.raw[:200]}"
        return base


class TransportError(FourInARowError):
    """The underlying channel reported an error."""


class NetworkError(FourInARowError):
    """Network connection issue."""

    default_hints: ClassVar[list[Hint]] = [BACKEND_UNREACHABLE]


class SessionTimeoutError(FourInARowError, TimeoutError):
    """An operation timed out. Also catchable as the builtin ``TimeoutError``."""


class PreconditionError(FourInARowError):
    """A local precondition was not met (empty username, move while not playing)."""

    default_hints: ClassVar[list[Hint]] = [USERNAME_REQUIRED]


class ReconnectExhaustedError(FourInARowError):
    """Automatic reconnection gave up after the configured number of attempts."""

    default_hints: ClassVar[list[Hint]] = [RECONNECT_EXHAUSTED]

    def __init__(self, message: str = "", attempts: int = 0) -> None:
        self.attempts = attempts
        super().__init__(message or f"Gave up after {attempts} reconnect attempts")


class ConfigError(FourInARowError):
    """Invalid or missing configuration."""

    default_hints: ClassVar[list[Hint]] = [INVALID_CONFIG]


class RequestError(FourInARowError):
    """An HTTP request to the game server failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
        *,
        hints: list[Hint] | None = None,
    ) -> None:
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(message, hints=hints)

    def __str__(self) -> str:
        parts = [self.message]

        if self.status_code:
            parts.append(f"Status: {self.status_code}")

        if self.response_text:
            parts.append(f"Response Text: {self.response_text}")

        return " | ".join(parts)

    @classmethod
    def from_httpx_error(cls, error: httpx.HTTPStatusError, context: str = "") -> Self:
        """Create a RequestError from an HTTPx error response.

        Args:
            error: The HTTPx error response.
            context: Additional context to include in the error message.

        Returns:
            A RequestError instance.
        """
        response = error.response
        status_code = response.status_code
        response_text = response.text

        message = f"Request failed with status {status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            message = f"Request failed: {body['error']}"

        if context:
            message = f"{context}: {message}"

        logger.error(
            "HTTP error: %s | URL: %s | Status: %s | Response: %s%s",
            message,
            response.url,
            status_code,
            response_text[:500],
            "..." if len(response_text) > 500 else "",
        )
        return cls(message=message, status_code=status_code, response_text=response_text)


class LeaderboardError(RequestError):
    """The leaderboard endpoint returned an error or an unexpected body."""
