from collections import Counter
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CatalogItem(BaseModel):
    """Static definition of an ingredient or potion."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""


class RecipeComponent(BaseModel):
    model_config = ConfigDict(frozen=True)

    ingredient_id: str
    qty: int = Field(ge=1)


class AlchemyRecipe(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    components: Tuple[RecipeComponent, ...]
    min_heat: int
    max_heat: int
    result_potion_id: str
    output_qty: int = Field(default=1, ge=1)
    difficulty: int = Field(default=1, ge=1, le=10)

    @field_validator("components")
    @classmethod
    def unique_ingredients(cls, components):
        ids = [c.ingredient_id for c in components]
        if not ids:
            raise ValueError("A recipe needs at least one component")
        if len(ids) != len(set(ids)):
            raise ValueError("Ingredient ids must be unique within a recipe")
        return components

    @model_validator(mode="after")
    def heat_window(self):
        if self.min_heat > self.max_heat:
            raise ValueError("min_heat must not exceed max_heat")
        return self

    def component_counts(self) -> Counter:
        return Counter({c.ingredient_id: c.qty for c in self.components})


class RecipeCatalog:
    """Read-only lookup table of recipes, potions and ingredients."""

    def __init__(self, recipes: List[AlchemyRecipe], potions: List[CatalogItem], ingredients: List[CatalogItem]):
        self._recipes: Tuple[AlchemyRecipe, ...] = tuple(recipes)
        self._potions: Dict[str, CatalogItem] = {p.id: p for p in potions}
        self._ingredients: Dict[str, CatalogItem] = {i.id: i for i in ingredients}

    @property
    def recipes(self) -> Tuple[AlchemyRecipe, ...]:
        return self._recipes

    def potion(self, potion_id: str) -> Optional[CatalogItem]:
        return self._potions.get(potion_id)

    def ingredient(self, ingredient_id: str) -> Optional[CatalogItem]:
        return self._ingredients.get(ingredient_id)

    def duplicate_component_sets(self) -> List[Tuple[str, ...]]:
        """Groups of recipe ids sharing an identical component multiset.

        The resolver takes the first match, so any group returned here makes
        the later recipes unreachable.
        """
        groups: Dict[frozenset, List[str]] = {}
        for recipe in self._recipes:
            key = frozenset(recipe.component_counts().items())
            groups.setdefault(key, []).append(recipe.id)
        return [tuple(ids) for ids in groups.values() if len(ids) > 1]
