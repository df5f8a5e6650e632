"""Retry loop with exponential backoff.

Runs a fallible async operation until one of the stop conditions holds,
checked in this order after every attempt:

1. The attempt succeeded -> RetrySucceeded
2. The attempt failed permanently -> RetryAborted (no further attempts)
3. max_attempts reached -> RetryExhausted wrapping the last cause
4. Otherwise wait the policy's backoff delay, unless the cancel signal
   fires first -> RetryCancelled carrying the last cause

The only suspension points are the operation itself and the backoff wait.
Callers must not hold locks while awaiting execute_with_retry().
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from snakeshop.executor.outcome import (
    AttemptOutcome,
    NonRetryableFailure,
    RetryableFailure,
    RetryAborted,
    RetryCancelled,
    RetryExhausted,
    RetryResult,
    RetrySucceeded,
    Success,
    classify_error,
)
from snakeshop.models.retry import RetryPolicy

logger = logging.getLogger(__name__)

__all__ = ["execute_with_retry"]

Operation = Callable[[], Awaitable[AttemptOutcome]]


async def execute_with_retry(
    operation: Operation,
    policy: RetryPolicy | None = None,
    cancel: asyncio.Event | None = None,
) -> RetryResult[Any]:
    """Run ``operation`` under ``policy`` and return one terminal result.

    Args:
        operation: Zero-argument callable returning an awaitable AttemptOutcome.
            An exception escaping the operation is classified with
            classify_error() instead of propagating.
        policy: Retry configuration; unset or non-positive fields fall back
            to the defaults (5 attempts, 100ms initial, 30s cap, x2.0)
        cancel: Optional cancellation signal, checked before every backoff wait

    Returns:
        RetrySucceeded, RetryAborted, RetryExhausted or RetryCancelled

    Example:
        ```python
        result = await execute_with_retry(
            lambda: gateway.charge(total, key),
            RetryPolicy.CHECKOUT,
            cancel=deadline_event,
        )
        ```
    """
    policy = (policy or RetryPolicy.DEFAULT).normalized()
    attempt = 0

    while True:
        outcome = await _invoke(operation)
        attempt += 1

        match outcome:
            case Success(value=value):
                if attempt > 1:
                    logger.info(f"Operation succeeded after {attempt} attempts")
                return RetrySucceeded(value=value, attempts=attempt)

            case NonRetryableFailure(cause=cause):
                logger.warning(f"Attempt {attempt} failed permanently, not retrying: {cause}")
                return RetryAborted(cause=cause, attempts=attempt)

            case RetryableFailure(cause=cause):
                if attempt >= policy.max_attempts:
                    logger.warning(
                        f"Giving up after {attempt} attempts (max_attempts reached): {cause}"
                    )
                    return RetryExhausted(cause=cause, attempts=attempt)

                delay_ms = policy.delay_for_attempt(attempt - 1)
                logger.debug(
                    f"Attempt {attempt}/{policy.max_attempts} failed: {cause}; "
                    f"retrying in {delay_ms}ms"
                )
                if await _wait_or_cancelled(delay_ms, cancel):
                    logger.warning(f"Retry cancelled after {attempt} attempts: {cause}")
                    return RetryCancelled(cause=cause, attempts=attempt)

            case _:
                raise TypeError(f"Operation returned {outcome!r}, expected an AttemptOutcome")


async def _invoke(operation: Operation) -> AttemptOutcome:
    """Run one attempt, turning a raised exception into a failure outcome."""
    try:
        return await operation()
    except Exception as e:
        return classify_error(e)


async def _wait_or_cancelled(delay_ms: int, cancel: asyncio.Event | None) -> bool:
    """Sleep for ``delay_ms``; return True if ``cancel`` fired first."""
    if cancel is None:
        await asyncio.sleep(delay_ms / 1000)
        return False

    if cancel.is_set():
        return True

    try:
        await asyncio.wait_for(cancel.wait(), timeout=delay_ms / 1000)
    except TimeoutError:
        return False
    return True
