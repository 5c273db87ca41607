import discord
from discord import app_commands
from discord.ext import commands
from loguru import logger

from core.embed_builder import embed_builder, error_embed
from core.errors import GameError
from core.functions import CallContext, CallableError, invoke
from modules.alchemy.services import AlchemyService
from modules.inventory.services import POTIONS


def parse_ingredients(text: str) -> list[dict]:
    """
    Parse ``"ing-moonpetal:2, ing-brinewort"`` into callable payload entries.
    A missing quantity means 1.
    """
    entries = []
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        ingredient_id, _, qty = chunk.partition(":")
        qty = qty.strip() or "1"
        if not qty.isdigit():
            raise ValueError(f"Bad quantity in '{chunk}'")
        entries.append({"ingredientId": ingredient_id.strip(), "qty": int(qty)})
    if not entries:
        raise ValueError("List at least one ingredient, e.g. `ing-moonpetal:2, ing-brinewort:1`")
    return entries


class AlchemyCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    alchemy_group = app_commands.Group(name="alchemy", description="Brew potions from your ingredients")

    @alchemy_group.command(name="brew", description="Brew a potion")
    @app_commands.describe(
        character_id="Character who brews",
        ingredients="ingredient-id:qty pairs separated by commas",
        heat="Heat level of the cauldron",
    )
    async def brew(self, interaction: discord.Interaction, character_id: str, ingredients: str, heat: int):
        try:
            payload = {"characterId": character_id, "ingredients": parse_ingredients(ingredients), "heatLevel": heat}
        except ValueError as e:
            await interaction.response.send_message(f"❌ {e}", ephemeral=True)
            return

        try:
            user = await invoke("brewPotion", CallContext(str(interaction.user.id)), payload)
        except CallableError as e:
            await interaction.response.send_message(embed=error_embed(e), ephemeral=True)
            return

        character = next(c for c in user["characters"] if c["id"] == character_id)
        potions = character["inventory"].get(POTIONS, [])
        lines = [f"**{p['name']}** x{p['quantity']}" for p in potions] or ["None"]
        embed = embed_builder(
            title="⚗️ Brewing complete",
            description="The cauldron settles.",
            color=discord.Color.green(),
            fields=[("Potions", "\n".join(lines), False)],
        )
        await interaction.response.send_message(embed=embed)

    @alchemy_group.command(name="recipes", description="Show the recipes and what you are missing")
    async def recipes(self, interaction: discord.Interaction, character_id: str):
        try:
            book = await AlchemyService.recipe_book(str(interaction.user.id), character_id)
        except GameError as e:
            await interaction.response.send_message(f"❌ {e.message}", ephemeral=True)
            return
        except Exception as e:
            logger.error(f"Error in /alchemy recipes: {e}")
            await interaction.response.send_message("Failed to load recipes.", ephemeral=True)
            return

        fields = []
        for entry in book:
            recipe = entry.recipe
            parts = [f"{'✅' if c.satisfied else '❌'} {c.name} {c.owned}/{c.required}" for c in entry.components]
            fields.append((
                f"{recipe.name or recipe.id} (heat {recipe.min_heat}-{recipe.max_heat})",
                "\n".join(parts),
                False,
            ))
        await interaction.response.send_message(embed=embed_builder(title="📖 Recipe book", fields=fields), ephemeral=True)


async def setup(bot):
    await bot.add_cog(AlchemyCog(bot))
