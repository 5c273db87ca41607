from typing import Dict, Tuple

from core.database import Database, USERS
from core.errors import CharacterNotFound, GameError, InvalidArgument, UserNotFound
from core.logger import setup_logger
from core.models.currency import BankAccount, Currency, CurrencyAmount
from core.models.user import Character, User
from core.transactions import Transaction, run_transaction
from modules.economy import ledger

logger = setup_logger("economy_service")


class UserSet:
    """
    The user documents touched by one transaction.

    Each user is read at most once and written back at most once, so two
    characters of the same user can be changed in one transaction without
    one rewrite clobbering the other.
    """

    def __init__(self, transaction: Transaction):
        self._transaction = transaction
        self._users: Dict[str, User] = {}

    async def load(self, user_id: str) -> User:
        if user_id not in self._users:
            self._users[user_id] = await load_user(self._transaction, user_id)
        return self._users[user_id]

    async def character(self, user_id: str, character_id: str) -> Tuple[User, Character]:
        user = await self.load(user_id)
        return user, find_character(user, character_id)

    def save(self):
        for user in self._users.values():
            save_user(self._transaction, user)


async def load_user(transaction: Transaction, user_id: str) -> User:
    doc = await transaction.get(USERS, user_id)
    if doc is None:
        raise UserNotFound(user_id)
    return User(**doc)


def find_character(user: User, character_id: str) -> Character:
    character = user.get_character(character_id)
    if character is None:
        raise CharacterNotFound(character_id)
    return character


def save_user(transaction: Transaction, user: User):
    """Rewrite the whole user document, characters included."""
    user.touch()
    transaction.set(USERS, user.id, user.to_mongo())


class EconomyService:
    @staticmethod
    async def get_balance(user_id: str, character_id: str) -> BankAccount:
        async def _read(transaction: Transaction) -> BankAccount:
            user = await load_user(transaction, user_id)
            return find_character(user, character_id).bank_account

        return await run_transaction(Database.store(), _read)

    @staticmethod
    async def transfer_currency(
            user_id: str,
            source_character_id: str,
            target_user_id: str,
            target_character_id: str,
            currency: Currency,
            amount: int,
            reason: str = "Direct transfer",
    ) -> None:
        """Move coins of one denomination from one of the caller's characters to any character."""

        async def _transfer(transaction: Transaction):
            if amount <= 0:
                raise InvalidArgument("Amount must be positive.")
            if user_id == target_user_id and source_character_id == target_character_id:
                raise InvalidArgument("Cannot transfer to the same character.")
            delta = CurrencyAmount.of(ledger.parse_currency(currency), amount)

            users = UserSet(transaction)
            _, source = await users.character(user_id, source_character_id)
            _, target = await users.character(target_user_id, target_character_id)

            ledger.post(source.bank_account, ledger.negate(delta), f"Transfer to {target.name}: {reason}")
            ledger.post(target.bank_account, delta, f"Transfer from {source.name}: {reason}")
            users.save()

        try:
            await run_transaction(Database.store(), _transfer)
        except GameError as e:
            logger.warning(
                f"Transfer of {amount} from {source_character_id} to {target_character_id} "
                f"rejected: {e.message}"
            )
            raise
        logger.info(
            f"Transferred {amount} {ledger.parse_currency(currency).value} "
            f"from {source_character_id} to {target_character_id}"
        )
