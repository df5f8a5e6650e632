"""Errors raised by shop operations outside of checkout.

Checkout never raises for business outcomes; it returns a structured
response instead. These exceptions cover the cart and player operations.
"""


class ShopError(Exception):
    """Base class for shop operation failures."""

    pass


class UnknownItemError(ShopError):
    """Item id is not in the catalog."""

    def __init__(self, item_id: str):
        super().__init__("unknown item")
        self.item_id = item_id


class DefaultSkinError(ShopError):
    """The free default skin cannot be bought."""

    def __init__(self):
        super().__init__("default skin cannot be purchased")


class CartLineNotFoundError(ShopError):
    """No cart line has the given id."""

    def __init__(self, line_id: str):
        super().__init__("cart item not found")
        self.line_id = line_id


class SkinNotOwnedError(ShopError):
    """Tried to equip a skin the player does not own."""

    def __init__(self, skin_id: str):
        super().__init__("skin not owned")
        self.skin_id = skin_id


class InvalidScoreError(ShopError):
    """Score reported for coin earning is negative."""

    def __init__(self, score: int):
        super().__init__("invalid score")
        self.score = score
