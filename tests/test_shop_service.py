import logging

import pytest

from core.errors import (
    AlreadyOwned,
    InsufficientFunds,
    InsufficientStock,
    InsufficientTillFunds,
    InvalidQuantity,
    ItemNotFound,
    MissingDocument,
    NothingToWithdraw,
    NotRestockable,
    PermissionDenied,
    RaceExcluded,
    ShopHasNoOwner,
    ShopNotFound,
)
from core.models.currency import BankAccount, CurrencyAmount
from core.models.user import InventoryItem
from modules.inventory.services import DOCUMENTS, OTHER, total_quantity
from modules.shop.models import Shop, ShopItem
from modules.shop.services import ShopService, restock_cost


def _shop(*items, till=None, **kwargs):
    fields = dict(
        title="Corner Shop",
        owner_user_id="owner",
        owner_character_id="owner-1",
        owner_character_name="Keeper",
        bank_account=BankAccount(**(till or {})),
        items=list(items),
    )
    fields.update(kwargs)
    return Shop(_id="shop-1", **fields)


@pytest.fixture
async def buyer(make_character, add_user):
    await add_user("buyer", make_character("buyer-1", name="Tam", race="elf", bank={"gold": 20}))
    await add_user("owner", make_character("owner-1", name="Keeper"))


class TestPurchase:
    async def test_positive_price_moves_coins_to_till(self, buyer, add_shop, get_shop, get_user):
        await add_shop(_shop(ShopItem(id="rope", name="Rope", price=CurrencyAmount(gold=3), quantity=5)))

        charged = await ShopService.purchase("shop-1", "rope", "buyer", "buyer-1", 2)

        assert charged == CurrencyAmount(gold=6)
        user = await get_user("buyer")
        character = user.get_character("buyer-1")
        assert character.bank_account.gold == 14
        assert total_quantity(character.inventory, OTHER, "rope") == 2

        shop = await get_shop("shop-1")
        assert shop.bank_account.gold == 6
        assert shop.items[0].quantity == 3
        assert shop.items[0].purchase_count == 2
        assert shop.purchase_count == 2

    async def test_negative_price_is_paid_from_the_till(self, buyer, add_shop, get_shop, get_user):
        await add_shop(_shop(ShopItem(id="bounty", name="Bounty", price=CurrencyAmount(gold=-5)), till={"gold": 10}))

        await ShopService.purchase("shop-1", "bounty", "buyer", "buyer-1", 1)

        assert (await get_user("buyer")).get_character("buyer-1").bank_account.gold == 25
        assert (await get_shop("shop-1")).bank_account.gold == 5

        with pytest.raises(InsufficientTillFunds):
            await ShopService.purchase("shop-1", "bounty", "buyer", "buyer-1", 2)

        assert (await get_user("buyer")).get_character("buyer-1").bank_account.gold == 25
        assert (await get_shop("shop-1")).bank_account.gold == 5

    async def test_mixed_price(self, buyer, add_shop, get_shop, get_user):
        item = ShopItem(id="trade", name="Trade", price=CurrencyAmount(gold=2, silver=-50))
        await add_shop(_shop(item, till={"silver": 100}))

        charged = await ShopService.purchase("shop-1", "trade", "buyer", "buyer-1", 1)

        assert charged == CurrencyAmount(gold=2, silver=-50)
        bank = (await get_user("buyer")).get_character("buyer-1").bank_account
        assert (bank.gold, bank.silver) == (18, 50)
        till = (await get_shop("shop-1")).bank_account
        assert (till.gold, till.silver) == (2, 50)

    async def test_unlimited_stock_is_not_decremented(self, buyer, add_shop, get_shop):
        await add_shop(_shop(ShopItem(id="water", name="Water", quantity=-1)))

        await ShopService.purchase("shop-1", "water", "buyer", "buyer-1", 3)

        item = (await get_shop("shop-1")).items[0]
        assert item.quantity == -1
        assert item.purchase_count == 3

    async def test_insufficient_stock(self, buyer, add_shop):
        await add_shop(_shop(ShopItem(id="rope", name="Rope", quantity=1)))
        with pytest.raises(InsufficientStock):
            await ShopService.purchase("shop-1", "rope", "buyer", "buyer-1", 2)

    async def test_buyer_cannot_afford(self, buyer, add_shop, get_shop):
        await add_shop(_shop(ShopItem(id="crown", name="Crown", price=CurrencyAmount(gold=21))))
        with pytest.raises(InsufficientFunds):
            await ShopService.purchase("shop-1", "crown", "buyer", "buyer-1", 1)
        assert (await get_shop("shop-1")).bank_account.gold == 0

    async def test_single_purchase(self, buyer, add_shop):
        await add_shop(_shop(ShopItem(id="licence", name="Licence", is_single_purchase=True, inventory_tag=DOCUMENTS)))

        with pytest.raises(InvalidQuantity):
            await ShopService.purchase("shop-1", "licence", "buyer", "buyer-1", 2)

        await ShopService.purchase("shop-1", "licence", "buyer", "buyer-1", 1)
        with pytest.raises(AlreadyOwned):
            await ShopService.purchase("shop-1", "licence", "buyer", "buyer-1", 1)

    async def test_excluded_race(self, buyer, add_shop):
        await add_shop(_shop(ShopItem(id="axe", name="Axe", excluded_races=["elf"])))
        with pytest.raises(RaceExcluded):
            await ShopService.purchase("shop-1", "axe", "buyer", "buyer-1", 1)

    async def test_required_document(self, make_character, add_user, add_shop):
        await add_shop(_shop(ShopItem(id="scale", name="Scale", required_document="Alchemy Licence")))
        await add_user("owner", make_character("owner-1", name="Keeper"))
        await add_user("novice", make_character("novice-1"))
        licensed = make_character("licensed-1")
        licensed.inventory[DOCUMENTS] = [InventoryItem(id="doc-alchemy-licence", name="Alchemy Licence")]
        await add_user("licensed", licensed)

        with pytest.raises(MissingDocument):
            await ShopService.purchase("shop-1", "scale", "novice", "novice-1", 1)
        await ShopService.purchase("shop-1", "scale", "licensed", "licensed-1", 1)

    async def test_item_lands_in_shop_default_category(self, buyer, add_shop, get_user):
        await add_shop(_shop(ShopItem(id="herb", name="Herb"), default_item_category="ingredients"))

        await ShopService.purchase("shop-1", "herb", "buyer", "buyer-1", 1)

        inventory = (await get_user("buyer")).get_character("buyer-1").inventory
        assert total_quantity(inventory, "ingredients", "herb") == 1

    async def test_unknown_shop_and_item(self, buyer, add_shop):
        with pytest.raises(ShopNotFound):
            await ShopService.purchase("nowhere", "rope", "buyer", "buyer-1", 1)
        await add_shop(_shop())
        with pytest.raises(ItemNotFound):
            await ShopService.purchase("shop-1", "rope", "buyer", "buyer-1", 1)

    async def test_quantity_must_be_positive(self, buyer, add_shop):
        await add_shop(_shop(ShopItem(id="rope", name="Rope")))
        with pytest.raises(InvalidQuantity):
            await ShopService.purchase("shop-1", "rope", "buyer", "buyer-1", 0)


class TestRestock:
    def test_cost_is_thirty_percent_rounded_up(self):
        assert restock_cost(ShopItem(name="x", price=CurrencyAmount(gold=10))) == CurrencyAmount(gold=3)
        assert restock_cost(ShopItem(name="x", price=CurrencyAmount(gold=1, silver=7))) == CurrencyAmount(gold=1, silver=3)
        assert restock_cost(ShopItem(name="x", price=CurrencyAmount(gold=-10, silver=10))) == CurrencyAmount(silver=3)

    async def test_restocks_sold_out_item_from_till(self, buyer, add_shop, get_shop):
        item = ShopItem(id="rope", name="Rope", price=CurrencyAmount(gold=10), quantity=0, restock_quantity=4)
        await add_shop(_shop(item, till={"gold": 5}))

        cost = await ShopService.restock("owner", "shop-1", "rope")

        assert cost == CurrencyAmount(gold=3)
        shop = await get_shop("shop-1")
        assert shop.bank_account.gold == 2
        assert shop.items[0].quantity == 4
        assert shop.bank_account.history[0].reason == "Restock: Rope"

    @pytest.mark.parametrize("quantity", [1, None, -1])
    async def test_only_sold_out_items(self, buyer, add_shop, quantity):
        await add_shop(_shop(ShopItem(id="rope", name="Rope", quantity=quantity), till={"gold": 5}))
        with pytest.raises(NotRestockable):
            await ShopService.restock("owner", "shop-1", "rope")

    async def test_till_must_cover_cost(self, buyer, add_shop, get_shop):
        await add_shop(_shop(ShopItem(id="rope", name="Rope", price=CurrencyAmount(gold=10), quantity=0), till={"gold": 2}))
        with pytest.raises(InsufficientTillFunds):
            await ShopService.restock("owner", "shop-1", "rope")
        assert (await get_shop("shop-1")).items[0].quantity == 0

    async def test_owner_only(self, buyer, add_shop):
        await add_shop(_shop(ShopItem(id="rope", name="Rope", quantity=0)))
        with pytest.raises(PermissionDenied):
            await ShopService.restock("buyer", "shop-1", "rope")


class TestWithdrawTill:
    async def test_moves_whole_till_to_owner(self, buyer, add_shop, get_shop, get_user):
        await add_shop(_shop(till={"gold": 7, "copper": 3}))

        withdrawn = await ShopService.withdraw_till("owner", "shop-1")

        assert withdrawn == CurrencyAmount(gold=7, copper=3)
        assert (await get_shop("shop-1")).bank_account.is_zero()
        bank = (await get_user("owner")).get_character("owner-1").bank_account
        assert (bank.gold, bank.copper) == (7, 3)

    async def test_empty_till(self, buyer, add_shop):
        await add_shop(_shop())
        with pytest.raises(NothingToWithdraw):
            await ShopService.withdraw_till("owner", "shop-1")

    async def test_owner_only(self, buyer, add_shop):
        await add_shop(_shop(till={"gold": 1}))
        with pytest.raises(PermissionDenied):
            await ShopService.withdraw_till("buyer", "shop-1")

    async def test_shop_without_owner_character(self, buyer, add_shop):
        await add_shop(_shop(till={"gold": 1}, owner_character_id=None))
        with pytest.raises(ShopHasNoOwner):
            await ShopService.withdraw_till("owner", "shop-1")


class TestRejectionLogging:
    async def test_rejected_purchase_logs_warning(self, buyer, add_shop, caplog):
        await add_shop(_shop(ShopItem(id="crown", name="Crown", price=CurrencyAmount(gold=21))))

        with caplog.at_level(logging.WARNING, logger="shop_service"):
            with pytest.raises(InsufficientFunds):
                await ShopService.purchase("shop-1", "crown", "buyer", "buyer-1", 1)

        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert any("crown" in message and "rejected" in message for message in warnings)

    async def test_rejected_restock_and_withdraw_log_warnings(self, buyer, add_shop, caplog):
        await add_shop(_shop(ShopItem(id="rope", name="Rope", quantity=3)))

        with caplog.at_level(logging.WARNING, logger="shop_service"):
            with pytest.raises(NotRestockable):
                await ShopService.restock("owner", "shop-1", "rope")
            with pytest.raises(NothingToWithdraw):
                await ShopService.withdraw_till("owner", "shop-1")

        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert any(message.startswith("Restock of rope") for message in warnings)
        assert any(message.startswith("Till withdrawal from shop shop-1") for message in warnings)
