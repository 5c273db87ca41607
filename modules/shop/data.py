# Demo shops for a fresh database. Owners are attached by admins later.
from core.models.currency import BankAccount, CurrencyAmount
from modules.inventory.services import DOCUMENTS, INGREDIENTS, OTHER
from modules.shop.models import Shop, ShopItem

SEED_SHOPS = [
    Shop(
        _id="shop-herbalist",
        title="The Green Mortar",
        description="Herbs and reagents for the discerning alchemist.",
        default_item_category=INGREDIENTS,
        bank_account=BankAccount(gold=50),
        items=[
            ShopItem(id="ing-moonpetal", name="Moonpetal", price=CurrencyAmount(silver=40), quantity=30, restock_quantity=30),
            ShopItem(id="ing-brinewort", name="Brinewort", price=CurrencyAmount(silver=15), quantity=50, restock_quantity=50),
            ShopItem(id="ing-frostcap", name="Frostcap", price=CurrencyAmount(gold=1, silver=20), quantity=10),
            ShopItem(id="ing-ashroot", name="Ashroot", price=CurrencyAmount(silver=60), quantity=20),
            # The shop buys these back
            ShopItem(id="ing-emberdust-bounty", name="Ember Dust Bounty", price=CurrencyAmount(gold=-2)),
        ],
    ),
    Shop(
        _id="shop-registry",
        title="City Registry",
        description="Permits, licences and papers.",
        default_item_category=DOCUMENTS,
        items=[
            ShopItem(
                id="doc-alchemy-licence",
                name="Alchemy Licence",
                price=CurrencyAmount(gold=25),
                is_single_purchase=True,
            ),
            ShopItem(
                id="ing-wyrmscale",
                name="Wyrm Scale",
                price=CurrencyAmount(platinum=1),
                quantity=3,
                restock_quantity=3,
                inventory_tag=INGREDIENTS,
                required_document="Alchemy Licence",
            ),
            ShopItem(
                id="misc-lantern",
                name="Street Lantern",
                price=CurrencyAmount(silver=5),
                inventory_tag=OTHER,
                is_hidden=True,
            ),
        ],
    ),
]
