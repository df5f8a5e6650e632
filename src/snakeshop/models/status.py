"""Status enumerations for checkout tracking."""

from enum import Enum


class CheckoutPhase(Enum):
    """Phase of a checkout transaction.

    Lifecycle:
        IDLE → VALIDATING → CHARGING → APPLYING → DONE
        IDLE → CACHED_REPLAY (idempotency hit)

    A transaction can reach DONE from VALIDATING (empty cart, not enough
    coins) or CHARGING (payment unavailable) without passing through
    APPLYING.
    """

    IDLE = "IDLE"
    """Transaction created, nothing inspected yet."""

    CACHED_REPLAY = "CACHED_REPLAY"
    """A stored response for the idempotency key was returned."""

    VALIDATING = "VALIDATING"
    """Cart and balance are being checked under the state locks."""

    CHARGING = "CHARGING"
    """The payment gateway is being driven by the retry executor (no locks held)."""

    APPLYING = "APPLYING"
    """Balance debit, item grants and cart clear in one critical section."""

    DONE = "DONE"
    """A response has been produced."""

    @property
    def is_terminal(self) -> bool:
        """Check if this phase is terminal (no more work needed)."""
        return self in (CheckoutPhase.DONE, CheckoutPhase.CACHED_REPLAY)

    def __str__(self) -> str:
        return self.value
