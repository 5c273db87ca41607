from typing import List, Optional, Tuple

from core.database import Database, EXCHANGE_REQUESTS
from core.errors import GameError, InsufficientFunds, InvalidArgument, PermissionDenied, RequestNotFound
from core.logger import setup_logger
from core.models.currency import Currency, CurrencyAmount
from core.transactions import Transaction, run_transaction
from modules.economy import ledger
from modules.economy.services import UserSet, find_character, load_user, save_user
from modules.exchange.models import ExchangeRequest

logger = setup_logger("exchange_service")


def _validate_offer(from_currency, from_amount: int, to_currency, to_amount: int) -> Tuple[Currency, Currency]:
    from_currency = ledger.parse_currency(from_currency)
    to_currency = ledger.parse_currency(to_currency)
    if from_amount <= 0 or to_amount <= 0:
        raise InvalidArgument("Exchange amounts must be positive.")
    if from_currency == to_currency:
        raise InvalidArgument("Pick two different currencies to exchange.")
    return from_currency, to_currency


async def _load_request(transaction: Transaction, request_id: str) -> ExchangeRequest:
    doc = await transaction.get(EXCHANGE_REQUESTS, request_id)
    if doc is None:
        raise RequestNotFound(request_id)
    return ExchangeRequest(**doc)


class ExchangeService:
    @staticmethod
    async def create(
            user_id: str,
            character_id: str,
            from_currency: Currency,
            from_amount: int,
            to_currency: Currency,
            to_amount: int,
    ) -> ExchangeRequest:
        """Escrow the offered coins and open a request, atomically."""

        async def _create(transaction: Transaction) -> ExchangeRequest:
            user = await load_user(transaction, user_id)
            character = find_character(user, character_id)

            offered = CurrencyAmount.of(from_currency, from_amount)
            if not ledger.is_affordable(character.bank_account, offered):
                raise InsufficientFunds("Insufficient funds to create the exchange request.")
            ledger.post(character.bank_account, ledger.negate(offered), "Exchange request created")

            request = ExchangeRequest(
                creator_user_id=user.id,
                creator_name=user.name,
                creator_character_id=character.id,
                creator_character_name=character.name,
                from_currency=from_currency,
                from_amount=from_amount,
                to_currency=to_currency,
                to_amount=to_amount,
            )
            save_user(transaction, user)
            transaction.create(EXCHANGE_REQUESTS, request.id, request.to_mongo())
            return request

        try:
            from_currency, to_currency = _validate_offer(from_currency, from_amount, to_currency, to_amount)
            request = await run_transaction(Database.store(), _create)
        except GameError as e:
            logger.warning(f"Exchange request by character {character_id} rejected: {e.message}")
            raise
        logger.info(
            f"Exchange request {request.id} opened by {character_id}: "
            f"{from_amount} {from_currency.value} for {to_amount} {to_currency.value}"
        )
        return request

    @staticmethod
    async def accept(acceptor_user_id: str, request_id: str, acceptor_character_id: Optional[str] = None) -> None:
        """
        Swap funds between the acceptor and the creator and close the request.
        The request is re-read inside the transaction, so of two racing
        acceptors only one can succeed; the other sees it gone.
        """

        async def _accept(transaction: Transaction):
            request = await _load_request(transaction, request_id)
            users = UserSet(transaction)

            acceptor_user = await users.load(acceptor_user_id)
            character_id = acceptor_character_id
            if character_id is None:
                if not acceptor_user.characters:
                    raise InvalidArgument("You have no character to accept with.")
                character_id = acceptor_user.characters[0].id
            acceptor = find_character(acceptor_user, character_id)
            _, creator = await users.character(request.creator_user_id, request.creator_character_id)

            wanted = request.wanted()
            if not ledger.is_affordable(acceptor.bank_account, wanted):
                raise InsufficientFunds("The selected character cannot afford this exchange.")

            ledger.post(
                acceptor.bank_account,
                ledger.add(ledger.negate(wanted), request.offered()),
                f"Exchange with {request.creator_character_name}",
            )
            ledger.post(creator.bank_account, wanted, f"Exchange with {acceptor.name}")

            users.save()
            transaction.delete(EXCHANGE_REQUESTS, request.id)
            return acceptor.id

        try:
            character_id = await run_transaction(Database.store(), _accept)
        except GameError as e:
            logger.warning(f"Accepting exchange request {request_id} by user {acceptor_user_id} rejected: {e.message}")
            raise
        logger.info(f"Exchange request {request_id} accepted by character {character_id}")

    @staticmethod
    async def cancel(actor_user_id: str, request_id: str) -> None:
        """Refund the escrow to the creator and delete the request."""

        async def _cancel(transaction: Transaction):
            request = await _load_request(transaction, request_id)
            if request.creator_user_id != actor_user_id:
                raise PermissionDenied("Only the creator can cancel this exchange request.")

            user = await load_user(transaction, request.creator_user_id)
            creator = find_character(user, request.creator_character_id)
            ledger.post(creator.bank_account, request.offered(), "Exchange request cancelled")

            save_user(transaction, user)
            transaction.delete(EXCHANGE_REQUESTS, request.id)

        try:
            await run_transaction(Database.store(), _cancel)
        except GameError as e:
            logger.warning(f"Cancelling exchange request {request_id} by user {actor_user_id} rejected: {e.message}")
            raise
        logger.info(f"Exchange request {request_id} cancelled")

    @staticmethod
    async def list_open() -> List[ExchangeRequest]:
        """Open requests, newest first."""
        docs = await Database.store().list(EXCHANGE_REQUESTS)
        requests = [ExchangeRequest(**doc) for doc in docs]
        requests.sort(key=lambda r: r.created_at, reverse=True)
        return requests
