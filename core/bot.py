import os

import discord
from discord.ext import commands
from loguru import logger

from core.config import settings
from core.database import Database
from core.functions import load_functions

# Module files that never hold a cog
NON_EXTENSION_FILES = {
    "models.py", "services.py", "functions.py", "data.py", "ledger.py", "resolver.py", "__init__.py",
}


class EconomyBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,
            owner_id=settings.owner_id
        )

    async def setup_hook(self):
        """Called when bot is logging in."""
        logger.info("Starting up...")

        await Database.connect()
        load_functions()
        await self.load_modules()

        logger.info("Syncing commands...")
        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} command(s).")
        except Exception as e:
            logger.error(f"Failed to sync commands: {e}")

    async def load_modules(self):
        """Load every cog under 'modules'."""
        if not os.path.exists("modules"):
            return
        for root, dirs, files in os.walk("modules"):
            for file in files:
                if not file.endswith(".py") or file in NON_EXTENSION_FILES:
                    continue

                rel_path = os.path.relpath(os.path.join(root, file), ".")
                module_name = rel_path.replace(os.path.sep, ".")[:-3]

                try:
                    await self.load_extension(module_name)
                    logger.info(f"Loaded extension: {module_name}")
                except commands.NoEntryPointError:
                    pass
                except Exception as e:
                    logger.error(f"Failed to load extension {module_name}: {e}")

    async def on_ready(self):
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        await self.change_presence(activity=discord.Game(name="Brewing and bartering"))

    async def close(self):
        """Called when bot is shutting down."""
        logger.info("Shutting down...")
        await Database.close()
        await super().close()
