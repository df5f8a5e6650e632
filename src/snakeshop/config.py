"""Checkout settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from snakeshop.models.retry import RetryPolicy
from snakeshop.state import DEFAULT_STARTING_BALANCE
from snakeshop.storage.base import DEFAULT_TTL


@dataclass(frozen=True)
class CheckoutSettings:
    """
    Tunables for one shop instance.

    Example:
        settings = CheckoutSettings(
            retry_policy=RetryPolicy(max_attempts=3, initial_delay_ms=10, max_delay_ms=50),
            deadline=timedelta(seconds=5),
        )
        service = ShopService(settings=settings)
    """

    retry_policy: RetryPolicy = RetryPolicy.CHECKOUT
    """How the gateway charge is retried (5 attempts, 100ms → 5s)."""

    deadline: timedelta = timedelta(seconds=30)
    """Upper bound for one checkout, measured from the start of the request."""

    idempotency_ttl: timedelta = DEFAULT_TTL
    """How long a stored checkout response is replayed (used for the default store)."""

    starting_balance: int = DEFAULT_STARTING_BALANCE
    """Coins a fresh player starts with."""


DEFAULT_SETTINGS = CheckoutSettings()
