from enum import Enum
from typing import List, Optional

from core.database import Database
from core.errors import CatalogError, GameError, InsufficientIngredient
from core.logger import setup_logger
from core.models.user import InventoryItem, User
from core.transactions import Transaction, run_transaction
from modules.alchemy import resolver
from modules.alchemy.data import default_catalog
from modules.alchemy.models import RecipeCatalog
from modules.economy.services import find_character, load_user, save_user
from modules.inventory.services import INGREDIENTS, POTIONS, add_to_stack, remove_from_stack, total_quantity

logger = setup_logger("alchemy_service")


class BrewStage(str, Enum):
    PENDING = "pending"
    INGREDIENTS_VALIDATED = "ingredients_validated"
    INGREDIENTS_CONSUMED = "ingredients_consumed"
    POTION_GRANTED = "potion_granted"
    COMMITTED = "committed"
    ABORTED = "aborted"


class AlchemyService:
    @staticmethod
    async def recipe_book(
            user_id: str,
            character_id: str,
            catalog: Optional[RecipeCatalog] = None,
    ) -> List[resolver.RecipeAvailability]:
        """What the character could brew right now."""
        catalog = catalog or default_catalog()

        async def _read(transaction: Transaction):
            user = await load_user(transaction, user_id)
            return resolver.available_recipes(find_character(user, character_id), catalog)

        return await run_transaction(Database.store(), _read)

    @staticmethod
    async def brew(
            user_id: str,
            character_id: str,
            ingredients: resolver.Submitted,
            heat_level: int,
            catalog: Optional[RecipeCatalog] = None,
    ) -> User:
        """
        Turn a character's ingredients into a potion in one transaction.
        Every component is checked before any is consumed, so a failure leaves
        the inventory untouched. Returns the updated user.
        """
        catalog = catalog or default_catalog()
        ingredients = list(ingredients)
        stage = BrewStage.PENDING

        async def _brew(transaction: Transaction) -> User:
            nonlocal stage
            user = await load_user(transaction, user_id)
            character = find_character(user, character_id)
            inventory = character.inventory

            recipe = resolver.resolve(ingredients, heat_level, catalog)
            potion = catalog.potion(recipe.result_potion_id)
            if potion is None:
                raise CatalogError(f"Result potion '{recipe.result_potion_id}' of recipe '{recipe.id}' is missing.")

            for component in recipe.components:
                if total_quantity(inventory, INGREDIENTS, component.ingredient_id) < component.qty:
                    ingredient = catalog.ingredient(component.ingredient_id)
                    raise InsufficientIngredient(component.ingredient_id, ingredient.name if ingredient else None)
            stage = BrewStage.INGREDIENTS_VALIDATED

            for component in recipe.components:
                remove_from_stack(inventory, INGREDIENTS, component.ingredient_id, component.qty)
            stage = BrewStage.INGREDIENTS_CONSUMED

            add_to_stack(
                inventory,
                POTIONS,
                InventoryItem(id=potion.id, name=potion.name, description=potion.description),
                recipe.output_qty,
            )
            stage = BrewStage.POTION_GRANTED

            save_user(transaction, user)
            logger.info(
                f"Character {character_id} brewing {recipe.id} at heat {heat_level}: "
                f"+{recipe.output_qty} {potion.id}"
            )
            return user

        try:
            user = await run_transaction(Database.store(), _brew)
        except GameError as e:
            logger.warning(
                f"Brew {BrewStage.ABORTED.value} after {stage.value} for character {character_id}: {e.message}"
            )
            raise
        stage = BrewStage.COMMITTED
        logger.info(f"Brew {stage.value} for character {character_id}")
        return user
