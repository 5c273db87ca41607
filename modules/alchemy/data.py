# Static alchemy content. Edit here, never at runtime.
from modules.alchemy.models import AlchemyRecipe, CatalogItem, RecipeCatalog, RecipeComponent

INGREDIENTS = [
    CatalogItem(id="ing-moonpetal", name="Moonpetal", description="Silver petals that only open at night."),
    CatalogItem(id="ing-ashroot", name="Ashroot", description="A charred root that never stops smouldering."),
    CatalogItem(id="ing-brinewort", name="Brinewort", description="Sea herb, salty and bitter."),
    CatalogItem(id="ing-emberdust", name="Ember Dust", description="Fine red powder, warm to the touch."),
    CatalogItem(id="ing-frostcap", name="Frostcap", description="A mushroom rimed with permanent frost."),
    CatalogItem(id="ing-wyrmscale", name="Wyrm Scale", description="Shed scale of a young wyrm."),
]

POTIONS = [
    CatalogItem(id="potion-minor-healing", name="Minor Healing Potion", description="Closes small wounds."),
    CatalogItem(id="potion-fire-ward", name="Fire Ward Draught", description="Dulls the bite of flame for an hour."),
    CatalogItem(id="potion-clarity", name="Elixir of Clarity", description="Sharpens the mind, briefly."),
    CatalogItem(id="potion-wyrmblood", name="Wyrmblood Tonic", description="Dangerous, potent, expensive."),
]

RECIPES = [
    AlchemyRecipe(
        id="recipe-minor-healing",
        name="Minor Healing Potion",
        components=(
            RecipeComponent(ingredient_id="ing-moonpetal", qty=2),
            RecipeComponent(ingredient_id="ing-brinewort", qty=1),
        ),
        min_heat=2,
        max_heat=4,
        result_potion_id="potion-minor-healing",
        output_qty=1,
        difficulty=1,
    ),
    AlchemyRecipe(
        id="recipe-fire-ward",
        name="Fire Ward Draught",
        components=(
            RecipeComponent(ingredient_id="ing-frostcap", qty=1),
            RecipeComponent(ingredient_id="ing-ashroot", qty=1),
            RecipeComponent(ingredient_id="ing-brinewort", qty=1),
        ),
        min_heat=5,
        max_heat=7,
        result_potion_id="potion-fire-ward",
        output_qty=2,
        difficulty=4,
    ),
    AlchemyRecipe(
        id="recipe-clarity",
        name="Elixir of Clarity",
        components=(
            RecipeComponent(ingredient_id="ing-moonpetal", qty=1),
            RecipeComponent(ingredient_id="ing-frostcap", qty=2),
        ),
        min_heat=1,
        max_heat=3,
        result_potion_id="potion-clarity",
        output_qty=1,
        difficulty=3,
    ),
    AlchemyRecipe(
        id="recipe-wyrmblood",
        name="Wyrmblood Tonic",
        components=(
            RecipeComponent(ingredient_id="ing-wyrmscale", qty=1),
            RecipeComponent(ingredient_id="ing-emberdust", qty=3),
            RecipeComponent(ingredient_id="ing-ashroot", qty=2),
        ),
        min_heat=8,
        max_heat=10,
        result_potion_id="potion-wyrmblood",
        output_qty=1,
        difficulty=9,
    ),
]

_DEFAULT_CATALOG = RecipeCatalog(RECIPES, POTIONS, INGREDIENTS)


def default_catalog() -> RecipeCatalog:
    return _DEFAULT_CATALOG
