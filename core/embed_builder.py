import discord

from core.functions import CallableError
from core.models.currency import CurrencyAmount
from modules.economy.ledger import format_amount


def embed_builder(
        title: str,
        description: str = None,
        color: discord.Color = discord.Color.gold(),
        fields: list[tuple[str, str, bool]] = None,
        footer: str = None,
) -> discord.Embed:
    embed = discord.Embed(
        title=title,
        description=description if description else None,
        color=color
    )
    if fields:
        for name, value, inline in fields:
            embed.add_field(name=name, value=value, inline=inline)

    if footer:
        embed.set_footer(text=footer)

    return embed


def amount_text(amount: dict | CurrencyAmount) -> str:
    if isinstance(amount, dict):
        amount = CurrencyAmount(**amount)
    return format_amount(amount)


def error_embed(error: CallableError) -> discord.Embed:
    return embed_builder(
        title="❌ Request failed",
        description=error.message,
        color=discord.Color.red(),
        footer=error.code,
    )
