"""
Retry policy configuration for gateway calls.

Design Pattern: Strategy Pattern
RetryPolicy encapsulates retry behavior, allowing the checkout to change
how hard it pushes on the payment gateway without touching the retry loop.

The backoff math lives in backoff_delay_ms(), a pure function, so it can be
tested (and reused) independently of any policy object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_INITIAL_DELAY_MS = 100
DEFAULT_MAX_DELAY_MS = 30_000
DEFAULT_BACKOFF_MULTIPLIER = 2.0


def backoff_delay_ms(
    attempt: int, initial_delay_ms: int, max_delay_ms: int, multiplier: float
) -> int:
    """
    Calculate the delay before the retry that follows ``attempt``.

    Exponential backoff: initial_delay * multiplier^attempt, capped at max_delay.

    Args:
        attempt: The attempt that just failed (0-indexed)
        initial_delay_ms: Delay after the first attempt
        max_delay_ms: Upper bound for any delay
        multiplier: Growth factor between consecutive delays (> 0)

    Returns:
        Delay in milliseconds

    Example:
        backoff_delay_ms(0, 100, 5000, 2.0)  # 100
        backoff_delay_ms(3, 100, 5000, 2.0)  # 800
        backoff_delay_ms(9, 100, 5000, 2.0)  # 5000 (capped)
    """
    if attempt <= 0:
        return initial_delay_ms

    delay_ms = initial_delay_ms * multiplier**attempt
    return int(min(delay_ms, max_delay_ms))


@dataclass(frozen=True)
class RetryPolicy:
    """
    Configuration for retrying a fallible operation.

    Examples:
        # Named policy: predefined sensible defaults
        policy = RetryPolicy.CHECKOUT

        # Simple: just specify max attempts (uses default delays)
        policy = RetryPolicy.with_max_attempts(3)

        # Custom policy: full control
        policy = RetryPolicy(
            max_attempts=5,
            initial_delay_ms=100,
            max_delay_ms=5000,
            backoff_multiplier=2.0,
        )
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    """Maximum number of attempts (including the first try).

    For example, max_attempts = 3 means:
    - Attempt 0: immediate (first try)
    - Attempt 1: after initial_delay
    - Attempt 2: after initial_delay * backoff_multiplier
    """

    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS
    """Delay before the first retry in milliseconds."""

    max_delay_ms: int = DEFAULT_MAX_DELAY_MS
    """Maximum delay between retries in milliseconds (caps exponential backoff)."""

    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    """Multiplier for exponential backoff."""

    # =========================================================================
    # Predefined Policies
    # =========================================================================

    if TYPE_CHECKING:
        DEFAULT: RetryPolicy
        CHECKOUT: RetryPolicy
    else:
        # Set after class definition
        DEFAULT = cast("RetryPolicy", None)
        CHECKOUT = cast("RetryPolicy", None)

    @classmethod
    def with_max_attempts(cls, max_attempts: int) -> RetryPolicy:
        """
        Create a policy with custom max_attempts (uses default delays).

        Example:
            policy = RetryPolicy.with_max_attempts(3)
        """
        return cls(max_attempts=max_attempts)

    def normalized(self) -> RetryPolicy:
        """
        Replace unset or non-positive settings with the defaults.

        Returns:
            A policy whose every field is usable by the retry loop
        """
        return RetryPolicy(
            max_attempts=self.max_attempts if self.max_attempts > 0 else DEFAULT_MAX_ATTEMPTS,
            initial_delay_ms=(
                self.initial_delay_ms if self.initial_delay_ms > 0 else DEFAULT_INITIAL_DELAY_MS
            ),
            max_delay_ms=self.max_delay_ms if self.max_delay_ms > 0 else DEFAULT_MAX_DELAY_MS,
            backoff_multiplier=(
                self.backoff_multiplier
                if self.backoff_multiplier > 0
                else DEFAULT_BACKOFF_MULTIPLIER
            ),
        )

    def delay_for_attempt(self, attempt: int) -> int:
        """
        Delay in milliseconds to wait after ``attempt`` (0-indexed) failed.

        Example:
            policy = RetryPolicy.CHECKOUT
            policy.delay_for_attempt(0)  # 100
            policy.delay_for_attempt(1)  # 200
        """
        return backoff_delay_ms(
            attempt, self.initial_delay_ms, self.max_delay_ms, self.backoff_multiplier
        )

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"initial_delay_ms={self.initial_delay_ms}, "
            f"max_delay_ms={self.max_delay_ms}, "
            f"backoff_multiplier={self.backoff_multiplier})"
        )


RetryPolicy.DEFAULT = RetryPolicy()

RetryPolicy.CHECKOUT = RetryPolicy(
    max_attempts=5,
    initial_delay_ms=100,  # 100 milliseconds
    max_delay_ms=5000,  # 5 seconds
    backoff_multiplier=2.0,
)


# =============================================================================
# RetryableError - Fine-grained error retry control
# =============================================================================


class RetryableError(Exception):
    """
    Base class for errors that know whether they should be retried.

    Example:
        class GatewayError(RetryableError):
            def __init__(self, message: str, is_retryable: bool = True):
                super().__init__(message)
                self._retryable = is_retryable

            def is_retryable(self) -> bool:
                return self._retryable
    """

    def is_retryable(self) -> bool:
        """
        Returns True if this error is transient and the operation should be retried.

        - True: transient (gateway timeout, service unavailable)
        - False: permanent (card declined, invalid amount)
        """
        # Default: all errors are retryable
        return True
