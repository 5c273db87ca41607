"""Matching submitted ingredients against the recipe catalog.

A submission matches a recipe only when both hold exactly the same ingredient
ids with exactly the same quantities; order never matters. There are no
partial or superset matches.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from core.errors import HeatOutOfRange, InvalidQuantity, RecipeNotFound
from core.models.user import Character
from modules.alchemy.models import AlchemyRecipe, RecipeCatalog, RecipeComponent
from modules.inventory.services import INGREDIENTS, total_quantity

Submitted = Iterable[Union[RecipeComponent, Tuple[str, int]]]


def normalize_ingredients(submitted: Submitted) -> Counter:
    """Collapse a submission into an ``{ingredient_id: qty}`` multiset, summing repeated ids."""
    counts = Counter()
    for entry in submitted:
        if isinstance(entry, RecipeComponent):
            ingredient_id, qty = entry.ingredient_id, entry.qty
        else:
            ingredient_id, qty = entry
        if qty < 1:
            raise InvalidQuantity(f"Ingredient quantity must be at least 1 (got {qty} for {ingredient_id}).")
        counts[ingredient_id] += qty
    if not counts:
        raise InvalidQuantity("No ingredients submitted.")
    return counts


def match_recipe(submitted: Submitted, catalog: RecipeCatalog) -> AlchemyRecipe:
    """First recipe whose component multiset equals the submission."""
    wanted = normalize_ingredients(submitted)
    for recipe in catalog.recipes:
        if recipe.component_counts() == wanted:
            return recipe
    raise RecipeNotFound()


def validate_heat(recipe: AlchemyRecipe, heat_level: int) -> bool:
    return recipe.min_heat <= heat_level <= recipe.max_heat


def resolve(submitted: Submitted, heat_level: int, catalog: RecipeCatalog) -> AlchemyRecipe:
    recipe = match_recipe(submitted, catalog)
    if not validate_heat(recipe, heat_level):
        raise HeatOutOfRange(heat_level, recipe.min_heat, recipe.max_heat)
    return recipe


@dataclass
class ComponentStatus:
    ingredient_id: str
    name: str
    required: int
    owned: int

    @property
    def satisfied(self) -> bool:
        return self.owned >= self.required


@dataclass
class RecipeAvailability:
    recipe: AlchemyRecipe
    components: List[ComponentStatus]

    @property
    def can_craft(self) -> bool:
        return all(c.satisfied for c in self.components)


def available_recipes(character: Character, catalog: RecipeCatalog) -> List[RecipeAvailability]:
    """Every recipe with what the character holds against what it needs."""
    result = []
    for recipe in catalog.recipes:
        components = []
        for component in recipe.components:
            ingredient = catalog.ingredient(component.ingredient_id)
            components.append(ComponentStatus(
                ingredient_id=component.ingredient_id,
                name=ingredient.name if ingredient else component.ingredient_id,
                required=component.qty,
                owned=total_quantity(character.inventory, INGREDIENTS, component.ingredient_id),
            ))
        result.append(RecipeAvailability(recipe=recipe, components=components))
    return result
