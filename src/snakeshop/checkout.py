"""
Checkout transaction.

One CheckoutTransaction handles one checkout request and walks these phases:

    IDLE ──► CACHED_REPLAY                       (idempotency hit)
      │
      └──► VALIDATING ──► CHARGING ──► APPLYING ──► DONE
               │              │
               └──► DONE      └──► DONE          (fail fast / payment unavailable)

VALIDATING and APPLYING run under ShopState.exclusive(). CHARGING runs with
no lock held. The player is only mutated in APPLYING, after the gateway
confirmed the charge.

Every response (success or definitive failure) is written to the idempotency
store under the request's key, so a retransmission replays it verbatim.
Checkouts sharing a key run one at a time (ShopState.key_in_flight()), so a
retransmission that arrives while the first request is charging waits for
it and then replays its response.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from snakeshop.config import DEFAULT_SETTINGS, CheckoutSettings
from snakeshop.executor.outcome import (
    AttemptOutcome,
    RetryableFailure,
    RetryAborted,
    RetryCancelled,
    RetryExhausted,
    RetrySucceeded,
)
from snakeshop.executor.retry import execute_with_retry
from snakeshop.models.cart import CartLine
from snakeshop.models.status import CheckoutPhase
from snakeshop.payment import PaymentGateway, PaymentTimeoutError
from snakeshop.state import ShopState
from snakeshop.storage.base import IdempotencyEntry, IdempotencyStore

logger = logging.getLogger(__name__)

__all__ = [
    "MSG_CART_EMPTY",
    "MSG_NOT_ENOUGH_COINS",
    "MSG_PAYMENT_UNAVAILABLE",
    "MSG_CART_CHANGED",
    "MSG_PURCHASE_COMPLETE",
    "CheckoutResponse",
    "CheckoutTransaction",
]

STATUS_OK = 200
STATUS_CONFLICT = 409
STATUS_SERVICE_UNAVAILABLE = 503

MSG_CART_EMPTY = "Cart is empty"
MSG_NOT_ENOUGH_COINS = "Not enough coins"
MSG_PAYMENT_UNAVAILABLE = "Payment temporarily unavailable. Please try again."
MSG_CART_CHANGED = "Cart changed during checkout. Please try again."
MSG_PURCHASE_COMPLETE = "Purchase complete!"


@dataclass(frozen=True)
class CheckoutResponse:
    """Status code and serialized body handed back to the caller.

    The body is immutable bytes, so a replayed response is byte-identical to
    the one first returned.
    """

    status_code: int
    body: bytes

    def json(self) -> dict[str, Any]:
        return json.loads(self.body)

    @property
    def succeeded(self) -> bool:
        return self.json().get("Status") == "Success"


def _encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()


def _fail(status_code: int, message: str, **extra: Any) -> CheckoutResponse:
    return CheckoutResponse(status_code, _encode({"Status": "Fail", "Message": message, **extra}))


@dataclass(frozen=True)
class _Validated:
    """What VALIDATING decided, carried into CHARGING and APPLYING."""

    lines: tuple[CartLine, ...]
    charge_total: int
    owned_before: frozenset[str]


class CheckoutTransaction:
    """
    A single checkout attempt for the shop's player.

    Transactions are single-use: create one per request and call run() once.

    Usage:
        tx = CheckoutTransaction(state, gateway, store, idempotency_key="abc")
        response = await tx.run()
        tx.phase  # CheckoutPhase.DONE or CheckoutPhase.CACHED_REPLAY
    """

    def __init__(
        self,
        state: ShopState,
        gateway: PaymentGateway,
        store: IdempotencyStore,
        idempotency_key: str | None = None,
        settings: CheckoutSettings = DEFAULT_SETTINGS,
    ):
        self._state = state
        self._gateway = gateway
        self._store = store
        self._settings = settings
        self.idempotency_key = idempotency_key or ""
        self.phase = CheckoutPhase.IDLE

        # Loop time at which CHARGING must give up
        self._deadline_at: float | None = None

    def __repr__(self) -> str:
        return f"CheckoutTransaction(key={self.idempotency_key!r}, phase={self.phase})"

    async def run(self) -> CheckoutResponse:
        """Execute the transaction and return its response.

        Raises:
            RuntimeError: If run() was already called
            StorageError: If the idempotency store backend fails
        """
        if self.phase is not CheckoutPhase.IDLE:
            raise RuntimeError(f"Checkout transaction already ran (phase={self.phase})")

        key = self.idempotency_key

        if not key:
            logger.info("Checkout started without idempotency key")
            response = await self._execute()
            self.phase = CheckoutPhase.DONE
            return response

        # A retransmission arriving mid-flight waits here, then replays
        async with self._state.key_in_flight(key):
            cached = await self._store.lookup(key)
            if cached is not None:
                return self._replay(cached)

            logger.info(f"Checkout started: key={key!r}")
            response = await self._execute()

            if response.status_code == STATUS_CONFLICT:
                # The store may be shared with other processes
                cached = await self._store.lookup(key)
                if cached is not None:
                    return self._replay(cached)

            self.phase = CheckoutPhase.DONE
            await self._store.store(key, response.status_code, response.body)
            return response

    def _replay(self, cached: IdempotencyEntry) -> CheckoutResponse:
        self.phase = CheckoutPhase.CACHED_REPLAY
        logger.info(f"Checkout replayed from idempotency cache: key={cached.key!r}")
        return CheckoutResponse(cached.status_code, cached.body)

    async def _execute(self) -> CheckoutResponse:
        loop = asyncio.get_running_loop()
        self._deadline_at = loop.time() + self._settings.deadline.total_seconds()

        self.phase = CheckoutPhase.VALIDATING
        validated = await self._validate()
        if isinstance(validated, CheckoutResponse):
            return validated

        self.phase = CheckoutPhase.CHARGING
        charged = await self._charge(validated.charge_total)
        if charged is not None:
            return charged

        self.phase = CheckoutPhase.APPLYING
        return await self._apply(validated)

    # =========================================================================
    # VALIDATING
    # =========================================================================

    async def _validate(self) -> _Validated | CheckoutResponse:
        """Check the cart and balance; fail fast before any gateway call."""
        async with self._state.exclusive() as state:
            lines, _ = state.cart.get_cart_locked()
            if not lines:
                logger.info("Checkout rejected: cart is empty")
                return _fail(STATUS_OK, MSG_CART_EMPTY)

            owned_before = frozenset(state.player.owned_skins)
            charge_total = self._chargeable_total(lines, owned_before)
            balance = state.player.balance

            if charge_total > balance:
                logger.info(
                    f"Checkout rejected: not enough coins (need {charge_total}, have {balance})"
                )
                return _fail(STATUS_OK, MSG_NOT_ENOUGH_COINS, Balance=balance)

        return _Validated(
            lines=tuple(lines), charge_total=charge_total, owned_before=owned_before
        )

    def _chargeable_total(self, lines: list[CartLine], owned: frozenset[str]) -> int:
        """Sum of price * quantity, skipping skins the player already owns."""
        return sum(
            line.subtotal
            for line in lines
            if not (self._state.catalog.is_skin(line.item_id) and line.item_id in owned)
        )

    # =========================================================================
    # CHARGING
    # =========================================================================

    async def _charge(self, charge_total: int) -> CheckoutResponse | None:
        """Drive the gateway through the retry loop. Returns None on success."""
        loop = asyncio.get_running_loop()
        cancel = asyncio.Event()
        timer = loop.call_at(self._deadline_at, cancel.set)

        try:
            result = await execute_with_retry(
                lambda: self._charge_once(charge_total),
                self._settings.retry_policy,
                cancel=cancel,
            )
        finally:
            timer.cancel()

        match result:
            case RetrySucceeded(value=receipt, attempts=attempts):
                logger.info(f"Payment charged: amount={charge_total}, attempts={attempts}, receipt={receipt}")
                return None
            case RetryExhausted() | RetryAborted() | RetryCancelled():
                logger.warning(f"Payment unavailable, checkout failed: {result}")
                return _fail(STATUS_SERVICE_UNAVAILABLE, MSG_PAYMENT_UNAVAILABLE)
            case _:
                raise TypeError(f"Unexpected retry result: {result!r}")

    async def _charge_once(self, charge_total: int) -> AttemptOutcome:
        """One gateway call, bounded by what is left of the checkout deadline."""
        remaining = self._deadline_at - asyncio.get_running_loop().time()
        if remaining <= 0:
            return RetryableFailure(PaymentTimeoutError("checkout deadline exceeded"))

        try:
            return await asyncio.wait_for(
                self._gateway.charge(charge_total, self.idempotency_key), timeout=remaining
            )
        except TimeoutError:
            return RetryableFailure(
                PaymentTimeoutError("payment gateway call exceeded checkout deadline")
            )

    # =========================================================================
    # APPLYING
    # =========================================================================

    async def _apply(self, validated: _Validated) -> CheckoutResponse:
        """Debit, grant and clear in one critical section."""
        async with self._state.exclusive() as state:
            player = state.player
            lines, _ = state.cart.get_cart_locked()

            # Another checkout applied (or the cart was edited) while we were charging
            if tuple(lines) != validated.lines or player.balance < validated.charge_total:
                logger.warning(
                    f"Checkout aborted: cart or balance changed while charging "
                    f"(key={self.idempotency_key!r})"
                )
                return _fail(STATUS_CONFLICT, MSG_CART_CHANGED, Balance=player.balance)

            player.balance -= validated.charge_total

            last_new_skin: str | None = None
            for line in validated.lines:
                item = state.catalog.item_display(line.item_id)
                if item is None:
                    continue
                if item.is_skin:
                    if line.item_id not in validated.owned_before:
                        player.owned_skins.append(line.item_id)
                        last_new_skin = line.item_id
                elif item.extra_lives:
                    player.extra_lives += item.extra_lives * line.quantity

            if last_new_skin is not None:
                player.equipped_skin = last_new_skin

            state.cart.clear_locked()
            snapshot = player.snapshot_locked()

        logger.info(
            f"Checkout complete: charged={validated.charge_total}, balance={snapshot.balance}"
        )
        return CheckoutResponse(
            STATUS_OK,
            _encode({"Status": "Success", "Message": MSG_PURCHASE_COMPLETE, **snapshot.to_dict()}),
        )
