import discord
from discord import app_commands
from discord.ext import commands

from core.embed_builder import embed_builder, error_embed
from core.errors import GameError
from core.functions import CallContext, CallableError, invoke
from modules.economy import ledger
from modules.exchange.services import ExchangeService

CURRENCY_CHOICES = [
    app_commands.Choice(name="Platinum", value="platinum"),
    app_commands.Choice(name="Gold", value="gold"),
    app_commands.Choice(name="Silver", value="silver"),
    app_commands.Choice(name="Copper", value="copper"),
]


class ExchangeCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    exchange_group = app_commands.Group(name="exchange", description="Trade currencies with other players")

    async def _call(self, interaction: discord.Interaction, name: str, payload: dict):
        try:
            return True, await invoke(name, CallContext(str(interaction.user.id)), payload)
        except CallableError as e:
            await interaction.response.send_message(embed=error_embed(e), ephemeral=True)
            return False, None

    @exchange_group.command(name="quote", description="Convert an amount at the official rate")
    @app_commands.choices(from_currency=CURRENCY_CHOICES, to_currency=CURRENCY_CHOICES)
    async def quote(self, interaction: discord.Interaction, amount: int,
                    from_currency: app_commands.Choice[str], to_currency: app_commands.Choice[str]):
        try:
            result = ledger.quote_exchange(
                amount, ledger.parse_currency(from_currency.value), ledger.parse_currency(to_currency.value)
            )
        except GameError as e:
            await interaction.response.send_message(f"❌ {e.message}", ephemeral=True)
            return
        await interaction.response.send_message(
            f"💱 {amount:,} {from_currency.value} ≈ **{result:,} {to_currency.value}**", ephemeral=True
        )

    @exchange_group.command(name="create", description="Offer coins in exchange for another currency")
    @app_commands.choices(from_currency=CURRENCY_CHOICES, to_currency=CURRENCY_CHOICES)
    async def create(self, interaction: discord.Interaction, character_id: str,
                     from_currency: app_commands.Choice[str], from_amount: int,
                     to_currency: app_commands.Choice[str], to_amount: int):
        ok, request = await self._call(interaction, "createExchangeRequest", {
            "characterId": character_id,
            "fromCurrency": from_currency.value,
            "fromAmount": from_amount,
            "toCurrency": to_currency.value,
            "toAmount": to_amount,
        })
        if not ok:
            return
        await interaction.response.send_message(embed=embed_builder(
            title="💱 Exchange request opened",
            description=f"Offering **{from_amount:,} {from_currency.value}** for **{to_amount:,} {to_currency.value}**.",
            color=discord.Color.green(),
            footer=f"Request ID: {request['_id']}",
        ))

    @exchange_group.command(name="accept", description="Accept an open exchange request")
    async def accept(self, interaction: discord.Interaction, request_id: str, character_id: str):
        ok, _ = await self._call(interaction, "acceptExchangeRequest",
                                 {"requestId": request_id, "characterId": character_id})
        if ok:
            await interaction.response.send_message("✅ Exchange completed.")

    @exchange_group.command(name="cancel", description="Cancel your exchange request and get the coins back")
    async def cancel(self, interaction: discord.Interaction, request_id: str):
        ok, _ = await self._call(interaction, "cancelExchangeRequest", {"requestId": request_id})
        if ok:
            await interaction.response.send_message("✅ Exchange request cancelled, coins refunded.", ephemeral=True)

    @exchange_group.command(name="list", description="Show open exchange requests")
    async def list_requests(self, interaction: discord.Interaction):
        requests = await ExchangeService.list_open()
        fields = [
            (
                f"{r.creator_character_name or r.creator_character_id}",
                f"{r.from_amount:,} {r.from_currency.value} → {r.to_amount:,} {r.to_currency.value}\n`{r.id}`",
                False,
            )
            for r in requests[:25]
        ]
        await interaction.response.send_message(embed=embed_builder(
            title="💱 Open exchange requests",
            description=None if fields else "No open requests.",
            fields=fields,
        ))


async def setup(bot):
    await bot.add_cog(ExchangeCog(bot))
