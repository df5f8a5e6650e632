"""Catalog of purchasable items.

Two kinds of items exist:
- Skins: cosmetics, owned at most once, never charged for again
- Life items: consumables whose effect accumulates with quantity
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_SKIN_ID = "default"


class ItemKind(Enum):
    """Kind of a purchasable item."""

    SKIN = "skin"
    LIFE = "life"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CatalogItem:
    """A purchasable catalog entry."""

    id: str
    name: str
    price: int
    kind: ItemKind
    extra_lives: int = 0
    """Extra lives granted per unit bought (consumables only)."""

    @property
    def is_skin(self) -> bool:
        return self.kind is ItemKind.SKIN


DEFAULT_SKINS: tuple[CatalogItem, ...] = (
    CatalogItem(DEFAULT_SKIN_ID, "Default", 0, ItemKind.SKIN),
    CatalogItem("skin_gold", "Gold", 100, ItemKind.SKIN),
    CatalogItem("skin_rainbow", "Rainbow", 100, ItemKind.SKIN),
    CatalogItem("skin_ice", "Ice", 100, ItemKind.SKIN),
    CatalogItem("skin_fire", "Fire", 100, ItemKind.SKIN),
)

DEFAULT_LIFE_ITEMS: tuple[CatalogItem, ...] = (
    CatalogItem("extra_life", "Extra Life", 50, ItemKind.LIFE, extra_lives=1),
    CatalogItem("speed_boost", "Speed Boost", 30, ItemKind.LIFE),
    CatalogItem("shield", "Shield", 40, ItemKind.LIFE),
    CatalogItem("score_multiplier", "Score Multiplier", 35, ItemKind.LIFE),
)


class Catalog:
    """Read-only lookup table of purchasable items.

    Usage:
        catalog = Catalog.default()
        item = catalog.item_display("skin_gold")
        if item is None:
            ...  # unknown item
    """

    def __init__(self, items: tuple[CatalogItem, ...] | list[CatalogItem]):
        self._items: dict[str, CatalogItem] = {item.id: item for item in items}

    @classmethod
    def default(cls) -> Catalog:
        """The game's built-in skins and life items."""
        return cls(DEFAULT_SKINS + DEFAULT_LIFE_ITEMS)

    def __repr__(self) -> str:
        return f"Catalog({len(self._items)} items)"

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def item_display(self, item_id: str) -> CatalogItem | None:
        """Name, price and kind of an item, or None if the id is unknown."""
        return self._items.get(item_id)

    def is_skin(self, item_id: str) -> bool:
        item = self._items.get(item_id)
        return item is not None and item.is_skin

    def skins(self) -> list[CatalogItem]:
        return [item for item in self._items.values() if item.kind is ItemKind.SKIN]

    def life_items(self) -> list[CatalogItem]:
        return [item for item in self._items.values() if item.kind is ItemKind.LIFE]
