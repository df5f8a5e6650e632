"""
Snakeshop: the in-game shop of the snake game.

Design Pattern: Façade Pattern
ShopService hides the state, gateway, retry loop and idempotency cache
behind the operations a game client calls.

Example:
    ```python
    import asyncio
    from snakeshop import ShopService

    async def main():
        service = ShopService()
        await service.earn_coins(500)
        await service.add_to_cart("skin_gold")

        response = await service.checkout(idempotency_key="order-1")
        print(response.status_code, response.json()["Message"])

        # Retransmission: byte-identical response, no second charge
        replay = await service.checkout(idempotency_key="order-1")
        assert replay.body == response.body

    asyncio.run(main())
    ```
"""

from snakeshop.checkout import CheckoutResponse, CheckoutTransaction
from snakeshop.config import DEFAULT_SETTINGS, CheckoutSettings
from snakeshop.executor import (
    AttemptOutcome,
    NonRetryableFailure,
    RetryableFailure,
    RetryResult,
    Success,
    execute_with_retry,
    is_success,
)
from snakeshop.models import (
    Catalog,
    CatalogItem,
    CheckoutPhase,
    ItemKind,
    PlayerSnapshot,
    RetryableError,
    RetryPolicy,
    ShopError,
    backoff_delay_ms,
)
from snakeshop.payment import ChargeReceipt, PaymentGateway, StubGateway
from snakeshop.service import ShopService
from snakeshop.storage import IdempotencyEntry, IdempotencyStore, InMemoryIdempotencyStore

__version__ = "0.1.0"

__all__ = [
    # Façade
    "ShopService",
    "CheckoutSettings",
    "DEFAULT_SETTINGS",
    # Checkout
    "CheckoutTransaction",
    "CheckoutResponse",
    "CheckoutPhase",
    # Retry
    "RetryPolicy",
    "RetryableError",
    "backoff_delay_ms",
    "execute_with_retry",
    "AttemptOutcome",
    "Success",
    "RetryableFailure",
    "NonRetryableFailure",
    "RetryResult",
    "is_success",
    # Payment
    "PaymentGateway",
    "StubGateway",
    "ChargeReceipt",
    # Idempotency cache
    "IdempotencyStore",
    "IdempotencyEntry",
    "InMemoryIdempotencyStore",
    # Catalog and player
    "Catalog",
    "CatalogItem",
    "ItemKind",
    "PlayerSnapshot",
    "ShopError",
]
