import discord
from discord import app_commands
from discord.ext import commands

from core.embed_builder import embed_builder, error_embed
from core.errors import GameError
from core.functions import CallContext, CallableError, invoke
from core.logger import setup_logger
from modules.economy import ledger
from modules.economy.services import EconomyService
from modules.exchange.cog import CURRENCY_CHOICES

logger = setup_logger("economy_cog")


class EconomyCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    @app_commands.command(name="balance", description="Check a character's bank account")
    async def balance_command(self, interaction: discord.Interaction, character_id: str):
        try:
            account = await EconomyService.get_balance(str(interaction.user.id), character_id)
        except GameError as e:
            await interaction.response.send_message(f"❌ {e.message}", ephemeral=True)
            return
        except Exception as e:
            logger.error(f"Error in /balance: {e}")
            await interaction.response.send_message("Failed to fetch balance.", ephemeral=True)
            return

        recent = "\n".join(
            f"{entry.reason}: {ledger.format_amount(entry.amount)}" for entry in account.history[:5]
        ) or "No transactions yet."
        embed = embed_builder(
            title="💰 Bank account",
            fields=[(c.value.title(), f"{value:,}", True) for c, value in account.items()] + [("Recent", recent, False)],
            color=discord.Color.green(),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="pay", description="Send coins to another character")
    @app_commands.choices(currency=CURRENCY_CHOICES)
    async def pay_command(self, interaction: discord.Interaction, character_id: str, user: discord.User,
                          target_character_id: str, currency: app_commands.Choice[str], amount: int,
                          reason: str = "Direct transfer"):
        try:
            await invoke("transferCurrency", CallContext(str(interaction.user.id)), {
                "sourceCharacterId": character_id,
                "targetUserId": str(user.id),
                "targetCharacterId": target_character_id,
                "currency": currency.value,
                "amount": amount,
                "reason": reason,
            })
        except CallableError as e:
            await interaction.response.send_message(embed=error_embed(e), ephemeral=True)
            return
        await interaction.response.send_message(f"✅ Sent **{amount:,} {currency.value}** to {user.mention}!")


async def setup(bot):
    await bot.add_cog(EconomyCog(bot))
