"""Tests for the ShopService player, cart and catalog operations."""

import pytest

from snakeshop import ShopService, __version__
from snakeshop.models import Catalog, InvalidScoreError, ItemKind, SkinNotOwnedError


@pytest.mark.asyncio
async def test_default_service_uses_built_in_catalog():
    service = ShopService()

    assert [item.id for item in service.list_skins()] == [
        "default",
        "skin_gold",
        "skin_rainbow",
        "skin_ice",
        "skin_fire",
    ]
    assert {item.id: item.price for item in service.list_life_items()} == {
        "extra_life": 50,
        "speed_boost": 30,
        "shield": 40,
        "score_multiplier": 35,
    }
    assert (await service.get_player()).balance == 200


def test_catalog_lookup():
    catalog = Catalog.default()

    assert "skin_gold" in catalog
    assert catalog.is_skin("skin_gold")
    assert not catalog.is_skin("shield")
    assert catalog.item_display("shield").kind is ItemKind.LIFE
    assert catalog.item_display("nope") is None


@pytest.mark.asyncio
async def test_earn_coins(service):
    assert await service.earn_coins(57) == {"earned": 10, "balance": 210}

    with pytest.raises(InvalidScoreError):
        await service.earn_coins(-5)


@pytest.mark.asyncio
async def test_equip_after_purchase(service):
    with pytest.raises(SkinNotOwnedError):
        await service.equip("skin_rainbow")

    await service.add_to_cart("skin_rainbow")
    await service.checkout()
    await service.equip("default")

    assert await service.equip("skin_rainbow") == {"equippedSkin": "skin_rainbow"}
    assert (await service.get_player()).equipped_skin == "skin_rainbow"


@pytest.mark.asyncio
async def test_cart_response_shape(service):
    cart = await service.add_to_cart("shield")
    cart = await service.add_to_cart("shield")

    assert cart["total"] == 80
    (line,) = cart["items"]
    assert set(line) == {"id", "itemId", "name", "price", "quantity"}
    assert line["itemId"] == "shield"
    assert line["quantity"] == 2


@pytest.mark.asyncio
async def test_cart_operations(service):
    cart = await service.add_to_cart("skin_ice")
    line_id = cart["items"][0]["id"]

    cart = await service.update_cart_item(line_id, 4)
    assert cart["items"][0]["quantity"] == 4

    await service.add_to_cart("speed_boost")
    assert await service.cart_count() == 2
    assert await service.remove_cart_unit("speed_boost") is True
    assert await service.remove_cart_item(line_id) is True
    assert await service.get_cart() == {"items": [], "total": 0}


def test_version():
    assert __version__ == "0.1.0"
