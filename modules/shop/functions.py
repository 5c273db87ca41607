from pydantic import Field

from core.functions import CallContext, CallableRequest, callable_function, parse_request, require_auth
from modules.shop.services import ShopService


class PurchaseShopItemRequest(CallableRequest):
    shop_id: str = Field(min_length=1)
    item_id: str = Field(min_length=1)
    buyer_character_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)


class RestockShopItemRequest(CallableRequest):
    shop_id: str = Field(min_length=1)
    item_id: str = Field(min_length=1)


class WithdrawFromShopTillRequest(CallableRequest):
    shop_id: str = Field(min_length=1)


@callable_function("purchaseShopItem")
async def purchase_shop_item(context: CallContext, data: dict) -> dict:
    uid = require_auth(context)
    request = parse_request(PurchaseShopItemRequest, data)
    charged = await ShopService.purchase(
        request.shop_id, request.item_id, uid, request.buyer_character_id, request.quantity
    )
    return {"charged": charged.model_dump()}


@callable_function("restockShopItem")
async def restock_shop_item(context: CallContext, data: dict) -> dict:
    uid = require_auth(context)
    request = parse_request(RestockShopItemRequest, data)
    cost = await ShopService.restock(uid, request.shop_id, request.item_id)
    return {"cost": cost.model_dump()}


@callable_function("withdrawFromShopTill")
async def withdraw_from_shop_till(context: CallContext, data: dict) -> dict:
    uid = require_auth(context)
    request = parse_request(WithdrawFromShopTillRequest, data)
    withdrawn = await ShopService.withdraw_till(uid, request.shop_id)
    return {"withdrawn": withdrawn.model_dump()}
