"""
Settings Cog — per-user preferences.

Commands:
  /setsteam <steam_id> — save your SteamID so `player` can be omitted
  /mode [mode]         — save (or clear) your preferred mode
"""

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot.replies import report_error, send
from models.players import ModeChoice
from tools.identifier_parser import parse_steam_id

logger = logging.getLogger("Settings_Cog")


class SettingsCog(commands.Cog, name="Settings"):
    """Save a SteamID and a preferred mode."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.user_store = bot.user_store

    async def cog_app_command_error(self, interaction: discord.Interaction, error):
        await report_error(interaction, error)

    async def set_steam_reply(self, user_id: int, user_name: str, raw: str) -> str:
        steam_id = parse_steam_id(raw)
        if not await self.user_store.set_steam_id(user_id, user_name, steam_id):
            return "You already have this SteamID set."
        return f"Successfully set SteamID `{steam_id}` for <@{user_id}>!"

    async def set_mode_reply(self, user_id: int, user_name: str, mode: Optional[ModeChoice]) -> str:
        if not await self.user_store.set_mode(user_id, user_name, mode):
            return "You already have this mode set."
        if mode is None:
            return f"Successfully cleared Mode for <@{user_id}>!"
        return f"Successfully set Mode `{mode}` for <@{user_id}>!"

    @app_commands.command(name="setsteam", description="Save your SteamID in the bot's database")
    @app_commands.describe(steam_id="Your SteamID, e.g. STEAM_1:1:161178172")
    async def setsteam_cmd(self, interaction: discord.Interaction, steam_id: str):
        await interaction.response.defer()
        reply = await self.set_steam_reply(interaction.user.id, interaction.user.name, steam_id)
        await send(interaction, reply)

    @app_commands.command(name="mode", description="Save your preferred mode")
    @app_commands.describe(mode="KZT/SKZ/VNL, or None to clear")
    @app_commands.choices(mode=[
        app_commands.Choice(name="None", value=0),
        app_commands.Choice(name="KZTimer", value=ModeChoice.KZTIMER.code),
        app_commands.Choice(name="SimpleKZ", value=ModeChoice.SIMPLEKZ.code),
        app_commands.Choice(name="Vanilla", value=ModeChoice.VANILLA.code),
    ])
    async def mode_cmd(self, interaction: discord.Interaction, mode: app_commands.Choice[int]):
        await interaction.response.defer()
        selected = ModeChoice.from_code(mode.value) if mode.value else None
        reply = await self.set_mode_reply(interaction.user.id, interaction.user.name, selected)
        await send(interaction, reply)


async def setup(bot: commands.Bot):
    await bot.add_cog(SettingsCog(bot))
