"""
KZ Bot — Discord Bot Client

Core bot setup and wiring. All slash commands live in Cogs (bot/cogs/);
argument resolution lives in tools/ and is shared by every cog.

Startup order:
    1. config + logging
    2. services (UserStore, GlobalAPIClient, resolvers) attached to the bot
    3. setup_hook: connect MongoDB, load the global map list (fatal on failure),
       load cogs
    4. on_ready: sync the slash command tree
"""

import os
import asyncio
import logging

import discord
from discord.ext import commands

from bot.config import BotConfig
from clients.global_api import GlobalAPIClient
from tools.map_resolver import load_global_maps
from tools.mode_resolver import ModeResolver
from tools.target_resolver import TargetResolver
from tools.user_store import UserStore

logger = logging.getLogger("KZ_Bot")

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------
config = BotConfig.from_env()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
os.makedirs(config.log_dir, exist_ok=True)

logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.FileHandler(os.path.join(config.log_dir, "kz_bot.log"), encoding="utf-8"),
        logging.StreamHandler(),
    ],
)

# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
user_store = UserStore(uri=config.mongodb_uri, db_name=config.mongodb_db)
global_api = GlobalAPIClient(base_url=config.global_api_url, kzgo_url=config.kzgo_api_url)
target_resolver = TargetResolver(user_store, global_api.search_player_by_name)
mode_resolver = ModeResolver(user_store)

COGS = (
    "bot.cogs.settings_cog",
    "bot.cogs.records_cog",
    "bot.cogs.players_cog",
    "bot.cogs.utility_cog",
)


class KZBot(commands.Bot):
    """commands.Bot with the shared services attached so cogs reach them via self.bot."""

    def __init__(self):
        intents = discord.Intents.default()
        super().__init__(command_prefix="!", intents=intents, help_command=None)
        self.config = config
        self.user_store = user_store
        self.global_api = global_api
        self.target_resolver = target_resolver
        self.mode_resolver = mode_resolver
        self.map_index = None  # set in setup_hook, immutable afterwards

    async def setup_hook(self):
        if await self.user_store.connect():
            logger.info("UserStore connected — /setsteam and /mode are available.")
        else:
            logger.warning("UserStore unavailable — commands needing saved preferences will fail.")

        await self.global_api.connect()
        # Raises MapListUnavailableError; without maps nothing useful works.
        self.map_index = await load_global_maps(self.global_api)

        for extension in COGS:
            await self.load_extension(extension)
        logger.info("All Cogs loaded.")

    async def on_ready(self):
        logger.info(f"Logged in as {self.user.name} ({self.user.id})")
        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} slash command(s).")
        except discord.HTTPException as e:
            logger.error(f"Slash command sync failed: {e}")

    async def close(self):
        await self.global_api.close()
        await self.user_store.close()
        await super().close()


bot = KZBot()


# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------
async def main():
    """Async entry point — start the bot; setup_hook does the rest."""
    async with bot:
        await bot.start(config.discord_token)


def run():
    """Synchronous entry point for scripts."""
    if not config.discord_token:
        print("Error: DISCORD_BOT_TOKEN not found via os.getenv")
        return
    asyncio.run(main())


if __name__ == "__main__":
    run()
