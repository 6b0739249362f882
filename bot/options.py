"""
Slash command option helpers shared by the cogs: mode / runtype choices
and map-name autocomplete.
"""

from typing import List, Optional

import discord
from discord import app_commands

from models.players import ModeChoice, Runtype

MODE_CHOICES = [
    app_commands.Choice(name="KZTimer", value=ModeChoice.KZTIMER.code),
    app_commands.Choice(name="SimpleKZ", value=ModeChoice.SIMPLEKZ.code),
    app_commands.Choice(name="Vanilla", value=ModeChoice.VANILLA.code),
]
RUNTYPE_CHOICES = [
    app_commands.Choice(name="TP", value=Runtype.TP.value),
    app_commands.Choice(name="PRO", value=Runtype.PRO.value),
]


def mode_option(choice: Optional[app_commands.Choice]) -> Optional[ModeChoice]:
    return ModeChoice.from_code(choice.value) if choice is not None else None


def runtype_option(choice: Optional[app_commands.Choice]) -> Optional[Runtype]:
    return Runtype(choice.value) if choice is not None else None


async def map_autocomplete(interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
    index = getattr(interaction.client, "map_index", None)
    if index is None:
        return []
    return [app_commands.Choice(name=name, value=name) for name in index.autocomplete(current)]
