"""Player snapshot returned to callers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PlayerSnapshot:
    """Immutable copy of the player's state at one point in time."""

    balance: int
    owned_skins: tuple[str, ...]
    equipped_skin: str
    extra_lives: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "Balance": self.balance,
            "OwnedSkins": list(self.owned_skins),
            "EquippedSkin": self.equipped_skin,
            "ExtraLives": self.extra_lives,
        }
