"""
Interaction reply helpers shared by the cogs.

Every ResolutionError has a user-facing line; anything else is logged
with its traceback and answered generically.
"""

import logging

import discord
from discord import app_commands

from clients.global_api_errors import GlobalAPIError
from tools.formatting import chunk_message
from tools.resolution_errors import RemoteApiFailureError, ResolutionError

logger = logging.getLogger("Replies")

GENERIC_FAILURE = "Failed to execute command."


def error_message(error: Exception) -> str:
    """The chat line for an error raised inside a command."""
    if isinstance(error, app_commands.CommandInvokeError):
        error = error.original
    if isinstance(error, ResolutionError):
        return error.user_message
    if isinstance(error, GlobalAPIError):
        return RemoteApiFailureError.user_message
    return GENERIC_FAILURE


async def send(interaction: discord.Interaction, content: str, ephemeral: bool = False):
    """Send content, as a followup if the interaction was already deferred/answered."""
    for chunk in chunk_message(content):
        if interaction.response.is_done():
            await interaction.followup.send(chunk, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(chunk, ephemeral=ephemeral)


async def report_error(interaction: discord.Interaction, error: Exception):
    message = error_message(error)
    original = getattr(error, "original", error)
    if message == GENERIC_FAILURE:
        logger.error(f"Command failed: {original}", exc_info=original)
    else:
        logger.info(f"Handled error with `{message}` ({original})")
    try:
        await send(interaction, message, ephemeral=message == GENERIC_FAILURE)
    except discord.HTTPException as e:
        logger.error(f"Failed to respond to slash command: {e}")
