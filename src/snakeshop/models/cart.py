"""Cart line value object and its wire representation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from snakeshop.models.catalog import ItemKind


@dataclass(frozen=True)
class CartLine:
    """
    A single line in the cart.

    One line per distinct item id; buying the same item again bumps
    quantity instead of adding a line.
    """

    id: str
    """Unique line identifier (UUIDv7 hex)."""

    item_id: str
    name: str
    price: int
    quantity: int
    kind: ItemKind

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


def cart_total(lines: list[CartLine]) -> int:
    """Sum of price * quantity over all lines (ignores ownership)."""
    return sum(line.subtotal for line in lines)


def cart_response(lines: list[CartLine], total: int) -> dict[str, Any]:
    """Build the cart JSON shape (items + total)."""
    return {
        "items": [
            {
                "id": line.id,
                "itemId": line.item_id,
                "name": line.name,
                "price": line.price,
                "quantity": line.quantity,
            }
            for line in lines
        ],
        "total": total,
    }
