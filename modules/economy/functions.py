from pydantic import Field

from core.functions import CallContext, CallableRequest, callable_function, parse_request, require_auth
from core.models.currency import Currency
from modules.economy.services import EconomyService


class TransferCurrencyRequest(CallableRequest):
    source_character_id: str = Field(min_length=1)
    target_user_id: str = Field(min_length=1)
    target_character_id: str = Field(min_length=1)
    currency: Currency
    amount: int = Field(gt=0)
    reason: str = Field(default="Direct transfer", max_length=200)


@callable_function("transferCurrency")
async def transfer_currency(context: CallContext, data: dict) -> None:
    uid = require_auth(context)
    request = parse_request(TransferCurrencyRequest, data)
    await EconomyService.transfer_currency(
        uid,
        request.source_character_id,
        request.target_user_id,
        request.target_character_id,
        request.currency,
        request.amount,
        request.reason,
    )
