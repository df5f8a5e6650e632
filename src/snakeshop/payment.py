"""
Payment gateway contract and the in-process stub.

The gateway is the only external dependency of checkout. It reports each
charge attempt as an AttemptOutcome so the retry executor can tell a
transient failure (timeout) from a permanent one (decline) without
inspecting exception types or messages.

Gateways must be safe to call repeatedly with the same idempotency key:
the checkout may retry a charge whose first attempt actually went through.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from uuid_extensions import uuid7

from snakeshop.executor.outcome import (
    AttemptOutcome,
    NonRetryableFailure,
    RetryableFailure,
    Success,
)
from snakeshop.models.retry import RetryableError

logger = logging.getLogger(__name__)

__all__ = [
    "ChargeReceipt",
    "PaymentTimeoutError",
    "PaymentDeclinedError",
    "PaymentGateway",
    "StubGateway",
]


@dataclass(frozen=True)
class ChargeReceipt:
    """Proof of a successful charge."""

    transaction_id: str
    amount: int
    idempotency_key: str


class PaymentTimeoutError(RetryableError):
    """The payment gateway did not answer in time."""

    def __init__(self, message: str = "payment gateway timeout"):
        super().__init__(message)


class PaymentDeclinedError(RetryableError):
    """The payment gateway refused the charge."""

    def __init__(self, message: str = "payment declined"):
        super().__init__(message)

    def is_retryable(self) -> bool:
        return False


class PaymentGateway(ABC):
    """Performs the actual charge. In production this would call an external API."""

    @abstractmethod
    async def charge(self, amount: int, idempotency_key: str) -> AttemptOutcome:
        """
        Charge ``amount`` coins.

        Args:
            amount: Amount to charge (may be 0)
            idempotency_key: Client key scoping the logical request ("" if none)

        Returns:
            Success(ChargeReceipt), RetryableFailure or NonRetryableFailure
        """
        pass


class StubGateway(PaymentGateway):
    """
    In-memory gateway stub.

    Behaviour switches, checked in this order on every call:
    - simulate_delay_ms: sleep before answering (slow gateway)
    - decline: report a non-retryable PaymentDeclinedError
    - simulate_timeout: report a retryable PaymentTimeoutError on every call
    - transient_failures: report a timeout for the first N calls, then succeed

    Repeated successful charges with the same non-empty idempotency key
    return the original receipt. At most ``max_receipts`` receipts are kept;
    the oldest is forgotten first.

    Usage:
        gateway = StubGateway(simulate_timeout=True)
        outcome = await gateway.charge(50, "key-1")
        gateway.call_count  # 1
    """

    def __init__(
        self,
        simulate_timeout: bool = False,
        simulate_delay_ms: int = 0,
        decline: bool = False,
        transient_failures: int = 0,
        max_receipts: int = 1024,
    ):
        self.simulate_timeout = simulate_timeout
        self.simulate_delay_ms = simulate_delay_ms
        self.decline = decline
        self.transient_failures = transient_failures
        self.max_receipts = max_receipts

        self.call_count = 0
        # Insertion-ordered: the first key is the oldest receipt
        self._receipts: dict[str, ChargeReceipt] = {}

    def __repr__(self) -> str:
        return (
            f"StubGateway(simulate_timeout={self.simulate_timeout}, "
            f"simulate_delay_ms={self.simulate_delay_ms}, decline={self.decline}, "
            f"transient_failures={self.transient_failures})"
        )

    async def charge(self, amount: int, idempotency_key: str) -> AttemptOutcome:
        self.call_count += 1
        call = self.call_count

        if self.simulate_delay_ms > 0:
            await asyncio.sleep(self.simulate_delay_ms / 1000)

        if self.decline:
            return NonRetryableFailure(PaymentDeclinedError())

        if self.simulate_timeout or call <= self.transient_failures:
            logger.debug(f"Stub gateway timing out: call={call}, amount={amount}")
            return RetryableFailure(PaymentTimeoutError())

        if idempotency_key and idempotency_key in self._receipts:
            return Success(self._receipts[idempotency_key])

        receipt = ChargeReceipt(
            transaction_id=f"ch_{uuid7().hex}",
            amount=amount,
            idempotency_key=idempotency_key,
        )
        if idempotency_key:
            self._receipts[idempotency_key] = receipt
            while len(self._receipts) > self.max_receipts:
                del self._receipts[next(iter(self._receipts))]
        return Success(receipt)
