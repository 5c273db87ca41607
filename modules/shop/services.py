from fractions import Fraction

from core.database import Database, SHOPS
from core.errors import (
    AlreadyOwned, GameError, InsufficientFunds, InsufficientStock, InsufficientTillFunds, InvalidQuantity,
    ItemNotFound, MissingDocument, NothingToWithdraw, NotRestockable, PermissionDenied,
    RaceExcluded, ShopHasNoOwner, ShopNotFound,
)
from core.logger import setup_logger
from core.models.currency import CurrencyAmount
from core.models.user import InventoryItem
from core.transactions import Transaction, run_transaction
from modules.economy import ledger
from modules.economy.services import find_character, load_user, save_user
from modules.inventory.services import DOCUMENTS, OTHER, add_to_stack, owns_item
from modules.shop.models import Shop, ShopItem

logger = setup_logger("shop_service")

RESTOCK_COST_RATE = Fraction(3, 10)


async def _load_shop(transaction: Transaction, shop_id: str) -> Shop:
    doc = await transaction.get(SHOPS, shop_id)
    if doc is None:
        raise ShopNotFound(shop_id)
    return Shop(**doc)


def _save_shop(transaction: Transaction, shop: Shop):
    shop.touch()
    transaction.set(SHOPS, shop.id, shop.to_mongo())


def _get_item(shop: Shop, item_id: str) -> ShopItem:
    item = shop.get_item(item_id)
    if item is None:
        raise ItemNotFound(item_id)
    return item


def _require_owner(shop: Shop, actor_user_id: str):
    if shop.owner_user_id != actor_user_id:
        raise PermissionDenied("Only the shop owner can do this.")


def restock_cost(item: ShopItem) -> CurrencyAmount:
    """30% of the positive part of the price, rounded up per denomination."""
    positive = CurrencyAmount(**{c.value: max(value, 0) for c, value in item.price.items()})
    return ledger.scale_ceil(positive, RESTOCK_COST_RATE)


def _has_document(inventory, document: str) -> bool:
    return any(
        stack.quantity > 0 and document in (stack.id, stack.name)
        for stack in inventory.get(DOCUMENTS, [])
    )


class ShopService:
    @staticmethod
    async def get_shop(shop_id: str) -> Shop:
        async def _read(transaction: Transaction) -> Shop:
            return await _load_shop(transaction, shop_id)

        return await run_transaction(Database.store(), _read)

    @staticmethod
    async def purchase(
            shop_id: str,
            item_id: str,
            buyer_user_id: str,
            buyer_character_id: str,
            quantity: int,
    ) -> CurrencyAmount:
        """
        Sell ``quantity`` of an item to a character.

        The buyer pays the positive price components and receives the negative
        ones; the till moves the other way. Every precondition is checked on the
        freshly read shop and buyer. Returns the signed total the buyer was charged.
        """
        async def _purchase(transaction: Transaction) -> CurrencyAmount:
            if quantity < 1:
                raise InvalidQuantity("Quantity must be at least 1.")
            shop = await _load_shop(transaction, shop_id)
            item = _get_item(shop, item_id)
            user = await load_user(transaction, buyer_user_id)
            buyer = find_character(user, buyer_character_id)

            if not item.is_unlimited and item.quantity < quantity:
                raise InsufficientStock(quantity, item.quantity)
            if item.is_single_purchase:
                if quantity > 1:
                    raise InvalidQuantity(f"'{item.name}' can only be bought once.")
                if owns_item(buyer.inventory, item.id):
                    raise AlreadyOwned(item.name)
            if buyer.race and buyer.race in item.excluded_races:
                raise RaceExcluded(buyer.race)
            if item.required_document and not _has_document(buyer.inventory, item.required_document):
                raise MissingDocument(item.required_document)

            total = ledger.scale(item.price, quantity)
            if not ledger.is_affordable(buyer.bank_account, total):
                raise InsufficientFunds("The character cannot afford this purchase.")
            if not ledger.is_affordable(shop.bank_account, ledger.payout(total)):
                raise InsufficientTillFunds("The shop till cannot cover the payout for this item.")

            reason = f"{item.name} x{quantity}"
            ledger.post(buyer.bank_account, ledger.negate(total), f"Purchase: {reason}")
            ledger.post(shop.bank_account, total, f"Sale: {reason}")

            if not item.is_unlimited:
                item.quantity -= quantity
            item.purchase_count += quantity
            shop.purchase_count += quantity

            category = item.inventory_tag or shop.default_item_category or OTHER
            add_to_stack(
                buyer.inventory,
                category,
                InventoryItem(
                    id=item.id,
                    name=item.name,
                    description=item.description or None,
                    image=item.image,
                    is_single_purchase=item.is_single_purchase,
                ),
                quantity,
            )

            save_user(transaction, user)
            _save_shop(transaction, shop)
            return total

        try:
            total = await run_transaction(Database.store(), _purchase)
        except GameError as e:
            logger.warning(
                f"Purchase of {item_id} x{quantity} from shop {shop_id} by character {buyer_character_id} "
                f"rejected: {e.message}"
            )
            raise
        logger.info(
            f"Character {buyer_character_id} bought {item_id} x{quantity} from shop {shop_id} "
            f"for {ledger.format_amount(total)}"
        )
        return total

    @staticmethod
    async def restock(actor_user_id: str, shop_id: str, item_id: str) -> CurrencyAmount:
        """Refill a sold-out item, paid from the till. Returns the cost."""

        async def _restock(transaction: Transaction) -> CurrencyAmount:
            shop = await _load_shop(transaction, shop_id)
            _require_owner(shop, actor_user_id)
            item = _get_item(shop, item_id)
            if item.quantity != 0:
                raise NotRestockable()

            cost = restock_cost(item)
            if not ledger.is_affordable(shop.bank_account, cost):
                raise InsufficientTillFunds("The shop till cannot cover the restock cost.")

            ledger.post(shop.bank_account, ledger.negate(cost), f"Restock: {item.name}")
            item.quantity = item.restock_quantity
            _save_shop(transaction, shop)
            return cost

        try:
            cost = await run_transaction(Database.store(), _restock)
        except GameError as e:
            logger.warning(f"Restock of {item_id} in shop {shop_id} by user {actor_user_id} rejected: {e.message}")
            raise
        logger.info(f"Shop {shop_id} restocked {item_id} for {ledger.format_amount(cost)}")
        return cost

    @staticmethod
    async def withdraw_till(actor_user_id: str, shop_id: str) -> CurrencyAmount:
        """Move the whole till to the owner's character. Returns the amount moved."""

        async def _withdraw(transaction: Transaction) -> CurrencyAmount:
            shop = await _load_shop(transaction, shop_id)
            _require_owner(shop, actor_user_id)
            if not shop.owner_character_id:
                raise ShopHasNoOwner()

            amount = shop.bank_account.balance()
            if amount.is_zero():
                raise NothingToWithdraw()

            user = await load_user(transaction, shop.owner_user_id)
            owner = find_character(user, shop.owner_character_id)

            ledger.post(shop.bank_account, ledger.negate(amount), "Till withdrawal")
            ledger.post(owner.bank_account, amount, f"Withdrawal from shop: {shop.title}")

            save_user(transaction, user)
            _save_shop(transaction, shop)
            return amount

        try:
            amount = await run_transaction(Database.store(), _withdraw)
        except GameError as e:
            logger.warning(f"Till withdrawal from shop {shop_id} by user {actor_user_id} rejected: {e.message}")
            raise
        logger.info(f"Shop {shop_id} till withdrawn: {ledger.format_amount(amount)}")
        return amount
