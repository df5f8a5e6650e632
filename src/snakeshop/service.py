"""
Shop service.

ShopService wires the catalog, player and cart state, the payment gateway and
the idempotency cache together and exposes the operations a game client
calls. Transport adapters (HTTP handlers, CLIs) sit on top of it and only
translate requests and responses.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from snakeshop.checkout import CheckoutResponse, CheckoutTransaction
from snakeshop.config import DEFAULT_SETTINGS, CheckoutSettings
from snakeshop.models.cart import cart_response
from snakeshop.models.catalog import Catalog, CatalogItem
from snakeshop.models.player import PlayerSnapshot
from snakeshop.payment import PaymentGateway, StubGateway
from snakeshop.state import ShopState
from snakeshop.storage.base import IdempotencyStore
from snakeshop.storage.memory import InMemoryIdempotencyStore

logger = logging.getLogger(__name__)

IDEMPOTENCY_KEY_HEADER = "Idempotency-Key"
SIMULATE_TIMEOUT_HEADER = "X-Simulate-Payment-Timeout"


def _header(headers: Mapping[str, str], name: str) -> str:
    """Case-insensitive header lookup; missing headers read as ""."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value.strip()
    return ""


class ShopService:
    """
    Everything the shop does for its single player.

    Usage:
        service = ShopService()
        await service.earn_coins(120)
        await service.add_to_cart("skin_gold")
        response = await service.checkout(idempotency_key="order-1")
        response.status_code  # 200
    """

    def __init__(
        self,
        catalog: Catalog | None = None,
        gateway: PaymentGateway | None = None,
        store: IdempotencyStore | None = None,
        settings: CheckoutSettings | None = None,
        timeout_gateway: PaymentGateway | None = None,
    ):
        self.settings = settings or DEFAULT_SETTINGS
        self.catalog = catalog or Catalog.default()
        self.state = ShopState(self.catalog, starting_balance=self.settings.starting_balance)
        self.gateway = gateway or StubGateway()
        # Used when a request asks for the gateway timeout to be simulated
        self.timeout_gateway = timeout_gateway or StubGateway(simulate_timeout=True)
        self.store = store or InMemoryIdempotencyStore(ttl=self.settings.idempotency_ttl)

    def __repr__(self) -> str:
        return f"ShopService(catalog={self.catalog!r}, gateway={self.gateway!r}, store={self.store!r})"

    # =========================================================================
    # Checkout
    # =========================================================================

    async def checkout(
        self, idempotency_key: str | None = None, simulate_payment_timeout: bool = False
    ) -> CheckoutResponse:
        """Run one checkout transaction.

        Args:
            idempotency_key: Client key; a repeated key replays the stored response
            simulate_payment_timeout: Charge through a gateway that always times out

        Returns:
            CheckoutResponse with status 200 (success, empty cart, not enough
            coins), 409 (cart changed while charging) or 503 (payment unavailable)
        """
        gateway = self.timeout_gateway if simulate_payment_timeout else self.gateway
        tx = CheckoutTransaction(
            self.state,
            gateway,
            self.store,
            idempotency_key=idempotency_key,
            settings=self.settings,
        )
        return await tx.run()

    async def checkout_headers(self, headers: Mapping[str, str]) -> CheckoutResponse:
        """Checkout driven by request headers.

        Reads ``Idempotency-Key`` and ``X-Simulate-Payment-Timeout: true``
        (header names are case-insensitive).
        """
        key = _header(headers, IDEMPOTENCY_KEY_HEADER)
        simulate = _header(headers, SIMULATE_TIMEOUT_HEADER).lower() == "true"
        return await self.checkout(idempotency_key=key, simulate_payment_timeout=simulate)

    # =========================================================================
    # Player
    # =========================================================================

    async def get_player(self) -> PlayerSnapshot:
        return await self.state.player.snapshot()

    async def earn_coins(self, score: int) -> dict[str, int]:
        earned, balance = await self.state.player.earn(score)
        logger.debug(f"Coins earned: score={score}, earned={earned}, balance={balance}")
        return {"earned": earned, "balance": balance}

    async def equip(self, skin_id: str) -> dict[str, str]:
        equipped = await self.state.player.equip(skin_id)
        return {"equippedSkin": equipped}

    # =========================================================================
    # Cart
    # =========================================================================

    async def add_to_cart(self, item_id: str) -> dict[str, Any]:
        await self.state.cart.add(item_id)
        return await self.get_cart()

    async def update_cart_item(self, line_id: str, quantity: int) -> dict[str, Any]:
        await self.state.cart.update(line_id, quantity)
        return await self.get_cart()

    async def remove_cart_item(self, line_id: str) -> bool:
        return await self.state.cart.remove(line_id)

    async def remove_cart_unit(self, item_id: str) -> bool:
        return await self.state.cart.remove_unit(item_id)

    async def get_cart(self) -> dict[str, Any]:
        lines, total = await self.state.cart.get_cart()
        return cart_response(lines, total)

    async def cart_count(self) -> int:
        return await self.state.cart.count()

    # =========================================================================
    # Catalog
    # =========================================================================

    def list_skins(self) -> list[CatalogItem]:
        return self.catalog.skins()

    def list_life_items(self) -> list[CatalogItem]:
        return self.catalog.life_items()
