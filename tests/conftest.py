"""
Pytest configuration and fixtures for snakeshop tests.

Provides reusable fixtures for the catalog, idempotency stores, gateways
and a fast-retrying shop service.
"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import strategies as st

from snakeshop.config import CheckoutSettings
from snakeshop.models.catalog import (
    DEFAULT_LIFE_ITEMS,
    DEFAULT_SKINS,
    Catalog,
    CatalogItem,
    ItemKind,
)
from snakeshop.models.retry import RetryPolicy
from snakeshop.payment import StubGateway
from snakeshop.service import ShopService
from snakeshop.storage import InMemoryIdempotencyStore

# Consumable used by the checkout scenarios: 50 coins, two extra lives
DOUBLE_LIFE = CatalogItem("double_life", "Double Life", 50, ItemKind.LIFE, extra_lives=2)


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def catalog() -> Catalog:
    """Built-in catalog plus the two-life consumable."""
    return Catalog(DEFAULT_SKINS + DEFAULT_LIFE_ITEMS + (DOUBLE_LIFE,))


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def memory_store() -> AsyncGenerator[InMemoryIdempotencyStore, None]:
    """Async in-memory idempotency store with automatic cleanup."""
    store = InMemoryIdempotencyStore()
    yield store
    await store.reset()


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Five attempts with millisecond delays."""
    return RetryPolicy(max_attempts=5, initial_delay_ms=1, max_delay_ms=5)


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def timeout_gateway() -> StubGateway:
    return StubGateway(simulate_timeout=True)


@pytest.fixture
def make_service(
    catalog: Catalog, fast_policy: RetryPolicy
) -> Callable[..., ShopService]:
    """Factory for services wired to the test catalog and a fast retry policy."""

    def factory(**kwargs) -> ShopService:
        kwargs.setdefault("catalog", catalog)
        kwargs.setdefault("settings", CheckoutSettings(retry_policy=fast_policy))
        return ShopService(**kwargs)

    return factory


@pytest.fixture
def service(
    make_service: Callable[..., ShopService],
    gateway: StubGateway,
    timeout_gateway: StubGateway,
) -> ShopService:
    """Shop service with a fresh player (200 coins) and empty cart."""
    return make_service(gateway=gateway, timeout_gateway=timeout_gateway)


# Hypothesis strategies for property-based testing

retry_policies = st.builds(
    RetryPolicy,
    max_attempts=st.integers(min_value=1, max_value=20),
    initial_delay_ms=st.integers(min_value=1, max_value=10_000),
    max_delay_ms=st.integers(min_value=1, max_value=120_000),
    backoff_multiplier=st.floats(min_value=1.0, max_value=10.0),
)
