"""
Player and cart state.

Each state object owns an asyncio.Lock guarding its fields. Operations that
touch both objects (checkout validation and application) go through
ShopState.exclusive(), which always acquires the player lock before the cart
lock so two such sections can never deadlock.

Methods suffixed ``_locked`` assume the caller already holds the relevant
lock (via ShopState.exclusive()); every other coroutine acquires it itself.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace

from uuid_extensions import uuid7

from snakeshop.models.cart import CartLine, cart_total
from snakeshop.models.catalog import DEFAULT_SKIN_ID, Catalog
from snakeshop.models.errors import (
    CartLineNotFoundError,
    DefaultSkinError,
    InvalidScoreError,
    SkinNotOwnedError,
    UnknownItemError,
)
from snakeshop.models.player import PlayerSnapshot

logger = logging.getLogger(__name__)

__all__ = ["COINS_PER_TEN_POINTS", "PlayerState", "CartStore", "ShopState"]

COINS_PER_TEN_POINTS = 2
DEFAULT_STARTING_BALANCE = 200


class PlayerState:
    """The player's wallet and inventory.

    Invariants:
        balance >= 0
        equipped_skin in owned_skins
        owned_skins has no duplicates (order = acquisition order)
    """

    def __init__(self, balance: int = DEFAULT_STARTING_BALANCE):
        self.balance = balance
        self.owned_skins: list[str] = [DEFAULT_SKIN_ID]
        self.equipped_skin = DEFAULT_SKIN_ID
        self.extra_lives = 0
        self.lock = asyncio.Lock()

    def __repr__(self) -> str:
        return (
            f"PlayerState(balance={self.balance}, owned_skins={self.owned_skins!r}, "
            f"equipped_skin={self.equipped_skin!r}, extra_lives={self.extra_lives})"
        )

    def snapshot_locked(self) -> PlayerSnapshot:
        return PlayerSnapshot(
            balance=self.balance,
            owned_skins=tuple(self.owned_skins),
            equipped_skin=self.equipped_skin,
            extra_lives=self.extra_lives,
        )

    async def snapshot(self) -> PlayerSnapshot:
        async with self.lock:
            return self.snapshot_locked()

    async def earn(self, score: int) -> tuple[int, int]:
        """Credit coins for a finished game.

        Two coins per full ten points.

        Returns:
            (earned, new_balance)

        Raises:
            InvalidScoreError: If score is negative
        """
        if score < 0:
            raise InvalidScoreError(score)

        earned = (score // 10) * COINS_PER_TEN_POINTS
        async with self.lock:
            self.balance += earned
            return earned, self.balance

    async def equip(self, skin_id: str) -> str:
        """Equip an owned skin.

        Raises:
            SkinNotOwnedError: If the player does not own ``skin_id``
        """
        async with self.lock:
            if skin_id not in self.owned_skins:
                raise SkinNotOwnedError(skin_id)
            self.equipped_skin = skin_id
            return skin_id


class CartStore:
    """Ordered cart lines, at most one line per item id."""

    def __init__(self, catalog: Catalog):
        self._catalog = catalog
        self._lines: list[CartLine] = []
        self.lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"CartStore({len(self._lines)} lines)"

    async def add(self, item_id: str) -> None:
        """Add one unit of an item; bumps quantity if the item is already in the cart.

        Raises:
            UnknownItemError: If the item is not in the catalog
            DefaultSkinError: If the item is the free default skin
        """
        item = self._catalog.item_display(item_id)
        if item is None:
            raise UnknownItemError(item_id)
        if item_id == DEFAULT_SKIN_ID and item.price == 0:
            raise DefaultSkinError()

        async with self.lock:
            for i, line in enumerate(self._lines):
                if line.item_id == item_id:
                    self._lines[i] = replace(line, quantity=line.quantity + 1)
                    return
            self._lines.append(
                CartLine(
                    id=uuid7().hex,
                    item_id=item_id,
                    name=item.name,
                    price=item.price,
                    quantity=1,
                    kind=item.kind,
                )
            )

    async def update(self, line_id: str, quantity: int) -> None:
        """Set a line's quantity; a quantity below 1 removes the line.

        Raises:
            CartLineNotFoundError: If no line has ``line_id``
        """
        async with self.lock:
            for i, line in enumerate(self._lines):
                if line.id == line_id:
                    if quantity < 1:
                        del self._lines[i]
                    else:
                        self._lines[i] = replace(line, quantity=quantity)
                    return
        raise CartLineNotFoundError(line_id)

    async def remove(self, line_id: str) -> bool:
        """Remove the line with ``line_id``. Returns True if removed."""
        async with self.lock:
            for i, line in enumerate(self._lines):
                if line.id == line_id:
                    del self._lines[i]
                    return True
            return False

    async def remove_unit(self, item_id: str) -> bool:
        """Remove one unit of ``item_id`` (the whole line at quantity 1)."""
        async with self.lock:
            for i, line in enumerate(self._lines):
                if line.item_id == item_id:
                    if line.quantity > 1:
                        self._lines[i] = replace(line, quantity=line.quantity - 1)
                    else:
                        del self._lines[i]
                    return True
            return False

    def get_cart_locked(self) -> tuple[list[CartLine], int]:
        lines = list(self._lines)
        return lines, cart_total(lines)

    async def get_cart(self) -> tuple[list[CartLine], int]:
        """Copy of the cart lines and their total (price * quantity, ownership ignored)."""
        async with self.lock:
            return self.get_cart_locked()

    def clear_locked(self) -> None:
        self._lines = []

    async def clear(self) -> None:
        async with self.lock:
            self.clear_locked()

    async def count(self) -> int:
        """Number of lines (not units) in the cart."""
        async with self.lock:
            return len(self._lines)


class ShopState:
    """Player and cart owned together by one shop instance."""

    def __init__(self, catalog: Catalog, starting_balance: int = DEFAULT_STARTING_BALANCE):
        self.catalog = catalog
        self.player = PlayerState(balance=starting_balance)
        self.cart = CartStore(catalog)

        # {idempotency_key: [lock, holders + waiters]}
        self._key_locks: dict[str, list] = {}

    @asynccontextmanager
    async def key_in_flight(self, key: str) -> AsyncIterator[None]:
        """Serialize checkouts that carry the same idempotency key.

        Independent of the player and cart locks; the slot is dropped once
        no task holds or waits on it.
        """
        slot = self._key_locks.setdefault(key, [asyncio.Lock(), 0])
        slot[1] += 1
        try:
            async with slot[0]:
                yield
        finally:
            slot[1] -= 1
            if slot[1] == 0:
                del self._key_locks[key]

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[ShopState]:
        """Hold the player and cart locks together (player first, then cart)."""
        async with self.player.lock:
            async with self.cart.lock:
                yield self
