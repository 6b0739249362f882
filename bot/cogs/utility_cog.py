"""
Utility Cog — small commands that need no player resolution.

Commands:
  /random   — a random global map, optionally of one tier
  /nocrouch — approximate the distance of a jump had it been crouched
  /ping     — liveness check
  /help     — list every slash command (ephemeral)
"""

import logging
import random
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot.replies import report_error, send
from tools.resolution_errors import MapNotFoundError

logger = logging.getLogger("Utility_Cog")

TICKRATE = 128
NOCROUCH_FACTOR = 4.0


def approximate_nocrouch(distance: float, max_speed: float) -> float:
    """Distance a nocrouch jump would have reached with a crouch."""
    return distance + (max_speed / TICKRATE) * NOCROUCH_FACTOR


class UtilityCog(commands.Cog, name="Utility"):
    """Random maps, jump maths and bot housekeeping."""

    def __init__(self, bot: commands.Bot, rng: Optional[random.Random] = None):
        self.bot = bot
        self.rng = rng or random.Random()

    @property
    def map_index(self):
        return self.bot.map_index

    async def cog_app_command_error(self, interaction: discord.Interaction, error):
        await report_error(interaction, error)

    # ------------------------------------------------------------------
    # Reply builders
    # ------------------------------------------------------------------

    def random_reply(self, tier: Optional[int] = None) -> str:
        pool = [m for m in self.map_index if tier is None or m.tier == tier]
        if not pool:
            raise MapNotFoundError(f"tier {tier}")
        chosen = self.rng.choice(pool)
        return f"🎲 {chosen.name} (T{chosen.tier})"

    def nocrouch_reply(self, distance: float, max_speed: float) -> str:
        return f"Approximated distance: `{approximate_nocrouch(distance, max_speed):.4f}`"

    def help_reply(self) -> str:
        lines = ["KZ bot commands (player accepts a SteamID, a name or an @mention):"]
        for command in sorted(self.bot.tree.get_commands(), key=lambda c: c.name):
            lines.append(f"/{command.name} — {command.description}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Slash commands
    # ------------------------------------------------------------------

    @app_commands.command(name="random", description="Get a random global map")
    @app_commands.describe(tier="Filter by tier")
    async def random_cmd(self, interaction: discord.Interaction,
                         tier: Optional[app_commands.Range[int, 1, 7]] = None):
        await send(interaction, self.random_reply(tier))

    @app_commands.command(name="nocrouch", description="Approximate the distance of a nocrouch jump")
    @app_commands.describe(distance="The distance of your jump", max_speed="The max speed of your jump")
    async def nocrouch_cmd(self, interaction: discord.Interaction, distance: float, max_speed: float):
        await send(interaction, self.nocrouch_reply(distance, max_speed))

    @app_commands.command(name="ping", description="Check whether the bot is alive")
    async def ping_cmd(self, interaction: discord.Interaction):
        await send(interaction, "Pong!", ephemeral=True)

    @app_commands.command(name="help", description="List the bot's commands")
    async def help_cmd(self, interaction: discord.Interaction):
        await send(interaction, self.help_reply(), ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(UtilityCog(bot))
