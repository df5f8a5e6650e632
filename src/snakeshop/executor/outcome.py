"""
Attempt outcomes and retry results.

Two closed unions describe a retried call:

- AttemptOutcome: what ONE invocation of an operation reported
  (Success | RetryableFailure | NonRetryableFailure)
- RetryResult: the single terminal result of the whole retry loop
  (RetrySucceeded | RetryAborted | RetryExhausted | RetryCancelled)

Classification is carried by the type, not by exception subclasses or
message matching, so the retry loop can dispatch with an exhaustive match.

Example:
    ```python
    result = await execute_with_retry(lambda: gateway.charge(50, key))

    match result:
        case RetrySucceeded(value=receipt):
            print(f"Charged: {receipt}")
        case RetryExhausted(cause=cause, attempts=n):
            print(f"Gave up after {n} attempts: {cause}")
    ```
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from snakeshop.models.retry import RetryableError

__all__ = [
    "Success",
    "RetryableFailure",
    "NonRetryableFailure",
    "AttemptOutcome",
    "classify_error",
    "RetrySucceeded",
    "RetryAborted",
    "RetryExhausted",
    "RetryCancelled",
    "RetryFailure",
    "RetryResult",
    "is_success",
]

R = TypeVar("R")


# =============================================================================
# Attempt Outcome
# =============================================================================


@dataclass(frozen=True)
class Success(Generic[R]):
    """The attempt succeeded."""

    value: R = None

    def __str__(self) -> str:
        return f"Success({self.value!r})"


@dataclass(frozen=True)
class RetryableFailure:
    """The attempt failed transiently; another attempt may succeed."""

    cause: BaseException

    def __str__(self) -> str:
        return f"RetryableFailure({type(self.cause).__name__}: {self.cause})"


@dataclass(frozen=True)
class NonRetryableFailure:
    """The attempt failed permanently; retrying cannot help."""

    cause: BaseException

    def __str__(self) -> str:
        return f"NonRetryableFailure({type(self.cause).__name__}: {self.cause})"


AttemptOutcome = Success[Any] | RetryableFailure | NonRetryableFailure


def classify_error(error: BaseException) -> RetryableFailure | NonRetryableFailure:
    """
    Turn a raised exception into a failure outcome.

    Errors implementing RetryableError decide for themselves; any other
    exception is treated as transient.

    Example:
        ```python
        try:
            receipt = await client.post(...)
        except Exception as e:
            return classify_error(e)
        ```
    """
    if isinstance(error, RetryableError) and not error.is_retryable():
        return NonRetryableFailure(error)
    return RetryableFailure(error)


# =============================================================================
# Retry Result
# =============================================================================


@dataclass(frozen=True)
class RetrySucceeded(Generic[R]):
    """An attempt succeeded."""

    value: R
    attempts: int

    def __str__(self) -> str:
        return f"RetrySucceeded(value={self.value!r}, attempts={self.attempts})"


@dataclass(frozen=True)
class RetryAborted:
    """An attempt reported a non-retryable failure; no further attempts were made."""

    cause: BaseException
    attempts: int

    def __str__(self) -> str:
        return f"RetryAborted({type(self.cause).__name__}: {self.cause}, attempts={self.attempts})"


@dataclass(frozen=True)
class RetryExhausted:
    """Every allowed attempt failed with a retryable failure."""

    cause: BaseException
    """The last underlying failure."""

    attempts: int

    def __str__(self) -> str:
        return (
            f"RetryExhausted({type(self.cause).__name__}: {self.cause}, "
            f"attempts={self.attempts})"
        )


@dataclass(frozen=True)
class RetryCancelled:
    """The cancel signal fired before the next attempt could start."""

    cause: BaseException
    """The last underlying failure, kept for diagnostics."""

    attempts: int

    def __str__(self) -> str:
        return (
            f"RetryCancelled(last={type(self.cause).__name__}: {self.cause}, "
            f"attempts={self.attempts})"
        )


RetryFailure = RetryAborted | RetryExhausted | RetryCancelled

RetryResult = RetrySucceeded[R] | RetryFailure


def is_success(result: RetryResult[R]) -> bool:
    """
    Type guard to check if a retry loop ended in success.

    Example:
        ```python
        if is_success(result):
            print(result.value)
        ```
    """
    return isinstance(result, RetrySucceeded)
