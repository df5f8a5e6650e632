"""Core data models for the shop.

Defines catalog items, cart lines, player snapshots, checkout phases,
retry configuration and shop errors.

Design: Dependency-Free Models
These types have no dependencies on executor, storage or state modules to
prevent circular imports and enable clean layering.
"""

from snakeshop.models.cart import CartLine, cart_response, cart_total
from snakeshop.models.catalog import (
    DEFAULT_SKIN_ID,
    Catalog,
    CatalogItem,
    ItemKind,
)
from snakeshop.models.errors import (
    CartLineNotFoundError,
    DefaultSkinError,
    InvalidScoreError,
    ShopError,
    SkinNotOwnedError,
    UnknownItemError,
)
from snakeshop.models.player import PlayerSnapshot
from snakeshop.models.retry import RetryableError, RetryPolicy, backoff_delay_ms
from snakeshop.models.status import CheckoutPhase

__all__ = [
    "CartLine",
    "cart_response",
    "cart_total",
    "DEFAULT_SKIN_ID",
    "Catalog",
    "CatalogItem",
    "ItemKind",
    "ShopError",
    "UnknownItemError",
    "DefaultSkinError",
    "CartLineNotFoundError",
    "SkinNotOwnedError",
    "InvalidScoreError",
    "PlayerSnapshot",
    "RetryPolicy",
    "RetryableError",
    "backoff_delay_ms",
    "CheckoutPhase",
]
