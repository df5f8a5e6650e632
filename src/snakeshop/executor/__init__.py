"""
Executor module - retrying calls to unreliable dependencies.

This module contains the execution components:
- outcome: AttemptOutcome and RetryResult unions
- retry: execute_with_retry(), the backoff loop
"""

from snakeshop.executor.outcome import (
    AttemptOutcome,
    NonRetryableFailure,
    RetryableFailure,
    RetryAborted,
    RetryCancelled,
    RetryExhausted,
    RetryFailure,
    RetryResult,
    RetrySucceeded,
    Success,
    classify_error,
    is_success,
)
from snakeshop.executor.retry import execute_with_retry

__all__ = [
    # Retry loop
    "execute_with_retry",
    # Attempt outcomes
    "AttemptOutcome",
    "Success",
    "RetryableFailure",
    "NonRetryableFailure",
    "classify_error",
    # Retry results
    "RetryResult",
    "RetryFailure",
    "RetrySucceeded",
    "RetryAborted",
    "RetryExhausted",
    "RetryCancelled",
    "is_success",
]
