import discord
from discord import app_commands
from discord.ext import commands
from loguru import logger

from core.embed_builder import amount_text, embed_builder, error_embed
from core.errors import GameError
from core.functions import CallContext, CallableError, invoke
from modules.economy import ledger
from modules.shop.services import ShopService, restock_cost


class ShopCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    shop_group = app_commands.Group(name="shop", description="Buy from and manage shops")

    async def _call(self, interaction: discord.Interaction, name: str, payload: dict):
        try:
            return True, await invoke(name, CallContext(str(interaction.user.id)), payload)
        except CallableError as e:
            await interaction.response.send_message(embed=error_embed(e), ephemeral=True)
            return False, None

    @shop_group.command(name="view", description="Show a shop's items")
    async def view(self, interaction: discord.Interaction, shop_id: str):
        try:
            shop = await ShopService.get_shop(shop_id)
        except GameError as e:
            await interaction.response.send_message(f"❌ {e.message}", ephemeral=True)
            return

        owner = str(interaction.user.id) == shop.owner_user_id
        fields = []
        for item in shop.items:
            if item.is_hidden and not owner:
                continue
            stock = "∞" if item.is_unlimited else ("Sold out" if item.quantity == 0 else f"{item.quantity} left")
            value = f"{ledger.format_amount(item.price)} · {stock}\n`{item.id}`"
            if owner and item.quantity == 0:
                value += f"\nRestock cost: {ledger.format_amount(restock_cost(item))}"
            fields.append((item.name, value, False))

        embed = embed_builder(title=f"🛒 {shop.title}", description=shop.description or None, fields=fields[:25])
        if owner:
            embed.set_footer(text=f"Till: {ledger.format_amount(shop.bank_account)}")
        await interaction.response.send_message(embed=embed, ephemeral=owner)

    @shop_group.command(name="buy", description="Buy an item")
    async def buy(self, interaction: discord.Interaction, shop_id: str, item_id: str,
                  character_id: str, quantity: app_commands.Range[int, 1, 999] = 1):
        ok, result = await self._call(interaction, "purchaseShopItem", {
            "shopId": shop_id, "itemId": item_id, "buyerCharacterId": character_id, "quantity": quantity,
        })
        if not ok:
            return
        await interaction.response.send_message(embed=embed_builder(
            title="✅ Purchase complete",
            description=f"Charged: **{amount_text(result['charged'])}**",
            color=discord.Color.green(),
        ))

    @shop_group.command(name="restock", description="Restock a sold-out item from the till")
    async def restock(self, interaction: discord.Interaction, shop_id: str, item_id: str):
        ok, result = await self._call(interaction, "restockShopItem", {"shopId": shop_id, "itemId": item_id})
        if ok:
            await interaction.response.send_message(
                f"📦 Restocked for **{amount_text(result['cost'])}**.", ephemeral=True
            )

    @shop_group.command(name="withdraw", description="Move the till to your character")
    async def withdraw(self, interaction: discord.Interaction, shop_id: str):
        ok, result = await self._call(interaction, "withdrawFromShopTill", {"shopId": shop_id})
        if ok:
            logger.info(f"User {interaction.user.id} withdrew the till of shop {shop_id}")
            await interaction.response.send_message(
                f"💰 Withdrew **{amount_text(result['withdrawn'])}**.", ephemeral=True
            )


async def setup(bot):
    await bot.add_cog(ShopCog(bot))
