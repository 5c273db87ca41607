from typing import List

from pydantic import Field

from core.functions import CallContext, CallableRequest, callable_function, parse_request, require_auth
from modules.alchemy.models import RecipeComponent
from modules.alchemy.services import AlchemyService


class IngredientEntry(CallableRequest):
    ingredient_id: str = Field(min_length=1)
    qty: int = Field(ge=1)


class BrewPotionRequest(CallableRequest):
    character_id: str = Field(min_length=1)
    ingredients: List[IngredientEntry] = Field(min_length=1)
    heat_level: int


@callable_function("brewPotion")
async def brew_potion(context: CallContext, data: dict) -> dict:
    uid = require_auth(context)
    request = parse_request(BrewPotionRequest, data)
    user = await AlchemyService.brew(
        uid,
        request.character_id,
        [RecipeComponent(ingredient_id=i.ingredient_id, qty=i.qty) for i in request.ingredients],
        request.heat_level,
    )
    return user.to_mongo()
