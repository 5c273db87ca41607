from typing import Optional

from pydantic import Field

from core.functions import CallContext, CallableRequest, callable_function, parse_request, require_auth
from core.models.currency import Currency
from modules.exchange.services import ExchangeService


class CreateExchangeRequest(CallableRequest):
    character_id: str = Field(min_length=1)
    from_currency: Currency
    from_amount: int = Field(gt=0)
    to_currency: Currency
    to_amount: int = Field(gt=0)


class AcceptExchangeRequest(CallableRequest):
    request_id: str = Field(min_length=1)
    character_id: Optional[str] = None


class CancelExchangeRequest(CallableRequest):
    request_id: str = Field(min_length=1)


@callable_function("createExchangeRequest")
async def create_exchange_request(context: CallContext, data: dict) -> dict:
    uid = require_auth(context)
    request = parse_request(CreateExchangeRequest, data)
    created = await ExchangeService.create(
        uid,
        request.character_id,
        request.from_currency,
        request.from_amount,
        request.to_currency,
        request.to_amount,
    )
    return created.to_mongo()


@callable_function("acceptExchangeRequest")
async def accept_exchange_request(context: CallContext, data: dict) -> None:
    uid = require_auth(context)
    request = parse_request(AcceptExchangeRequest, data)
    await ExchangeService.accept(uid, request.request_id, request.character_id)


@callable_function("cancelExchangeRequest")
async def cancel_exchange_request(context: CallContext, data: dict) -> None:
    uid = require_auth(context)
    request = parse_request(CancelExchangeRequest, data)
    await ExchangeService.cancel(uid, request.request_id)


@callable_function("listExchangeRequests")
async def list_exchange_requests(context: CallContext, data: dict) -> list:
    require_auth(context)
    return [r.to_mongo() for r in await ExchangeService.list_open()]
