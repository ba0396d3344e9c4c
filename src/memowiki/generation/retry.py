"""Bounded retry with exponential backoff for backend calls."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from memowiki.constants.generation import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
)
from memowiki.llm.client import LLMAuthenticationError, LLMError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransientGenerationError(Exception):
    """Raised by a backend for a failure that may succeed on retry."""

    pass


class RetryExhaustedError(Exception):
    """Raised when every allowed attempt failed with a transient error.

    Attributes:
        label: What was being generated, for messages.
        attempts: Number of attempts made.
        last_error: The error raised by the final attempt.
    """

    def __init__(self, label: str, attempts: int, last_error: BaseException):
        self.label = label
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"{label} failed after {attempts} attempt(s): {last_error}")


def is_transient(error: BaseException) -> bool:
    """Check whether an error is worth retrying.

    Authentication failures never are. Connection, rate-limit and generic
    provider errors are, as are timeouts and explicit transient failures.
    """
    if isinstance(error, LLMAuthenticationError):
        return False
    return isinstance(error, (TransientGenerationError, LLMError, asyncio.TimeoutError))


@dataclass(frozen=True)
class RetryPolicy:
    """How often, and how patiently, a failing backend call is retried.

    Attributes:
        max_attempts: Total attempts including the first one.
        delay: Seconds to wait before the second attempt.
        backoff_factor: Multiplier applied to the delay after each retry.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay: float = DEFAULT_RETRY_DELAY
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay must not be negative")

    @classmethod
    def from_config(cls, config) -> "RetryPolicy":
        """Build a policy from the [generation] section of a Config."""
        return cls(
            max_attempts=config.generation.max_attempts,
            delay=config.generation.retry_delay,
            backoff_factor=config.generation.backoff_factor,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.delay * (self.backoff_factor ** (attempt - 1))

    async def run(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        label: str = "backend call",
    ) -> T:
        """Await fn(*args), retrying transient failures.

        Args:
            fn: Coroutine function to call.
            *args: Positional arguments for fn.
            label: Description used in log messages and errors.

        Returns:
            The first successful result.

        Raises:
            RetryExhaustedError: If all attempts failed transiently.
            Exception: Any non-transient error, unchanged, on the attempt it occurred.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await fn(*args)
            except Exception as e:
                if not is_transient(e):
                    raise
                if attempt >= self.max_attempts:
                    raise RetryExhaustedError(label, attempt, e) from e

                wait = self.delay_for(attempt)
                logger.warning(
                    f"{label} failed (attempt {attempt}/{self.max_attempts}), "
                    f"retrying in {wait:.1f}s: {e}"
                )
                await asyncio.sleep(wait)
