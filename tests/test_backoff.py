"""Tests for backoff_delay_ms() and RetryPolicy."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conftest import retry_policies
from snakeshop.models.retry import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_DELAY_MS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY_MS,
    RetryPolicy,
    backoff_delay_ms,
)

# ==============================================================================
# backoff_delay_ms
# ==============================================================================


def test_first_attempt_uses_initial_delay():
    assert backoff_delay_ms(0, 100, 5000, 2.0) == 100


def test_negative_attempt_uses_initial_delay():
    assert backoff_delay_ms(-3, 100, 5000, 2.0) == 100


def test_exponential_growth():
    delays = [backoff_delay_ms(n, 100, 5000, 2.0) for n in range(6)]
    assert delays == [100, 200, 400, 800, 1600, 3200]


def test_delay_capped_at_max():
    assert backoff_delay_ms(6, 100, 5000, 2.0) == 5000
    assert backoff_delay_ms(50, 100, 5000, 2.0) == 5000


def test_fractional_multiplier_truncates():
    assert backoff_delay_ms(1, 100, 5000, 1.5) == 150
    assert backoff_delay_ms(2, 100, 5000, 1.5) == 225


@pytest.mark.property
@given(
    attempt=st.integers(min_value=0, max_value=200),
    initial=st.integers(min_value=1, max_value=10_000),
    cap=st.integers(min_value=1, max_value=120_000),
    multiplier=st.floats(min_value=1.0, max_value=10.0),
)
def test_delay_never_exceeds_cap_after_first_attempt(attempt, initial, cap, multiplier):
    delay = backoff_delay_ms(attempt, initial, cap, multiplier)
    if attempt == 0:
        assert delay == initial
    else:
        assert delay <= cap
    assert delay >= 0


@pytest.mark.property
@given(
    attempt=st.integers(min_value=1, max_value=100),
    initial=st.integers(min_value=1, max_value=10_000),
    cap=st.integers(min_value=1, max_value=120_000),
    multiplier=st.floats(min_value=1.0, max_value=10.0),
)
def test_delay_monotonic_for_multiplier_at_least_one(attempt, initial, cap, multiplier):
    earlier = backoff_delay_ms(attempt, initial, cap, multiplier)
    later = backoff_delay_ms(attempt + 1, initial, cap, multiplier)
    assert later >= earlier


# ==============================================================================
# RetryPolicy
# ==============================================================================


def test_default_policy_values():
    policy = RetryPolicy()
    assert policy.max_attempts == DEFAULT_MAX_ATTEMPTS == 5
    assert policy.initial_delay_ms == DEFAULT_INITIAL_DELAY_MS == 100
    assert policy.max_delay_ms == DEFAULT_MAX_DELAY_MS == 30_000
    assert policy.backoff_multiplier == DEFAULT_BACKOFF_MULTIPLIER == 2.0


def test_checkout_policy():
    policy = RetryPolicy.CHECKOUT
    assert policy.max_attempts == 5
    assert policy.initial_delay_ms == 100
    assert policy.max_delay_ms == 5000
    assert [policy.delay_for_attempt(n) for n in range(4)] == [100, 200, 400, 800]


def test_with_max_attempts_keeps_default_delays():
    policy = RetryPolicy.with_max_attempts(3)
    assert policy.max_attempts == 3
    assert policy.initial_delay_ms == DEFAULT_INITIAL_DELAY_MS


def test_normalized_replaces_non_positive_fields():
    policy = RetryPolicy(
        max_attempts=0, initial_delay_ms=-1, max_delay_ms=0, backoff_multiplier=0.0
    ).normalized()
    assert policy == RetryPolicy()


def test_normalized_keeps_valid_fields():
    policy = RetryPolicy(max_attempts=2, initial_delay_ms=7, max_delay_ms=9, backoff_multiplier=3.0)
    assert policy.normalized() == policy


def test_policy_is_frozen():
    with pytest.raises(AttributeError):
        RetryPolicy.CHECKOUT.max_attempts = 10


@pytest.mark.property
@given(policy=retry_policies, attempt=st.integers(min_value=1, max_value=50))
def test_policy_delay_respects_cap(policy, attempt):
    assert 0 <= policy.delay_for_attempt(attempt) <= policy.max_delay_ms
