"""Tests for the stub payment gateway."""

import pytest

from snakeshop.executor import NonRetryableFailure, RetryableFailure, Success
from snakeshop.payment import (
    ChargeReceipt,
    PaymentDeclinedError,
    PaymentTimeoutError,
    StubGateway,
)


@pytest.mark.asyncio
async def test_successful_charge(gateway):
    outcome = await gateway.charge(150, "key-1")

    assert isinstance(outcome, Success)
    receipt = outcome.value
    assert isinstance(receipt, ChargeReceipt)
    assert receipt.amount == 150
    assert receipt.idempotency_key == "key-1"
    assert receipt.transaction_id.startswith("ch_")
    assert gateway.call_count == 1


@pytest.mark.asyncio
async def test_repeated_key_returns_same_receipt(gateway):
    first = await gateway.charge(150, "key-1")
    second = await gateway.charge(150, "key-1")

    assert first.value == second.value
    assert gateway.call_count == 2


@pytest.mark.asyncio
async def test_no_key_issues_fresh_receipts(gateway):
    first = await gateway.charge(10, "")
    second = await gateway.charge(10, "")

    assert first.value.transaction_id != second.value.transaction_id


@pytest.mark.asyncio
async def test_simulated_timeout_is_retryable(timeout_gateway):
    outcome = await timeout_gateway.charge(50, "key-1")

    assert isinstance(outcome, RetryableFailure)
    assert isinstance(outcome.cause, PaymentTimeoutError)
    assert outcome.cause.is_retryable()


@pytest.mark.asyncio
async def test_decline_is_not_retryable():
    gateway = StubGateway(decline=True)

    outcome = await gateway.charge(50, "key-1")

    assert isinstance(outcome, NonRetryableFailure)
    assert isinstance(outcome.cause, PaymentDeclinedError)
    assert not outcome.cause.is_retryable()


@pytest.mark.asyncio
async def test_transient_failures_then_success():
    gateway = StubGateway(transient_failures=2)

    outcomes = [await gateway.charge(50, "key-1") for _ in range(3)]

    assert [type(o) for o in outcomes] == [RetryableFailure, RetryableFailure, Success]


@pytest.mark.asyncio
async def test_simulated_delay():
    gateway = StubGateway(simulate_delay_ms=5)

    outcome = await gateway.charge(1, "key-1")

    assert isinstance(outcome, Success)


@pytest.mark.asyncio
async def test_oldest_receipt_is_forgotten_past_limit():
    gateway = StubGateway(max_receipts=2)

    first = await gateway.charge(10, "key-1")
    await gateway.charge(10, "key-2")
    third = await gateway.charge(10, "key-3")
    again = await gateway.charge(10, "key-1")
    latest = await gateway.charge(10, "key-3")

    assert again.value.transaction_id != first.value.transaction_id
    assert len(gateway._receipts) == 2
    assert latest.value == third.value
