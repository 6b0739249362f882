"""
Records Cog — GlobalAPI lookups.

Commands:
  /pb /bpb         — a player's personal best (main course / bonus), TP and PRO
  /wr /bwr         — world record (main course / bonus), TP and PRO
  /maptop /bmaptop — top 10 of a map (main course / bonus)
  /map             — map details
  /unfinished      — maps a player has not completed yet
  /apistatus       — is the GlobalAPI answering?

Every command resolves its arguments through the shared resolvers attached
to the bot (map index, TargetResolver, ModeResolver) before calling the API.
The *_reply methods hold the logic and return the reply text; the slash
command wrappers only translate Discord options and send.
"""

import logging
from typing import Optional, Tuple

import discord
from discord import app_commands
from discord.ext import commands

from bot.options import MODE_CHOICES, RUNTYPE_CHOICES, map_autocomplete, mode_option, runtype_option
from bot.replies import report_error, send
from clients.global_api import gather_runtypes
from clients.global_api_errors import GlobalAPIError
from models.players import ModeChoice, PlayerIdentifier, Runtype
from models.records import Record
from tools.formatting import fmt_time, format_record
from tools.resolution_errors import NoRecordsError, RemoteApiFailureError

logger = logging.getLogger("Records_Cog")

MAPTOP_LINES = 10
UNFINISHED_LINES = 10


def _check(possible: bool) -> str:
    return "✅" if possible else "❌"


class RecordsCog(commands.Cog, name="Records"):
    """Personal bests, world records, leaderboards and map info."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.global_api = bot.global_api
        self.target_resolver = bot.target_resolver
        self.mode_resolver = bot.mode_resolver

    @property
    def map_index(self):
        return self.bot.map_index

    async def cog_app_command_error(self, interaction: discord.Interaction, error):
        await report_error(interaction, error)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    async def _fetch_pair(
        self,
        map_name: str,
        mode: ModeChoice,
        player: Optional[PlayerIdentifier],
        course: int,
    ) -> Tuple[Optional[Record], Optional[Record]]:
        """TP and PRO best records, fetched concurrently.

        Either half may fail or be empty without sinking the other.
        """
        tp, pro = await gather_runtypes(
            lambda runtype: self.global_api.get_record(map_name, mode, runtype, player=player, course=course),
            f"{map_name} ({mode.short})",
        )
        if tp is None and pro is None:
            raise NoRecordsError()
        return tp, pro

    # ------------------------------------------------------------------
    # Reply builders
    # ------------------------------------------------------------------

    async def pb_reply(
        self,
        user_id: int,
        map_name: str,
        mode: Optional[ModeChoice] = None,
        player: Optional[str] = None,
        course: int = 0,
    ) -> str:
        global_map = self.map_index.resolve_map(map_name)
        mode = await self.mode_resolver.resolve_mode(mode, user_id)
        target = await self.target_resolver.resolve_input(player, user_id)

        tp, pro = await self._fetch_pair(global_map.name, mode, target, course)
        holder = (tp or pro).player_name or str(target)
        title = "BPB" if course else "PB"
        course_tag = f" B{course}" if course else ""
        return "\n".join([
            f"[{title}] {global_map.name}{course_tag} ({mode.short}) — {holder}",
            format_record("TP", tp),
            format_record("PRO", pro),
        ])

    async def wr_reply(
        self,
        user_id: int,
        map_name: str,
        mode: Optional[ModeChoice] = None,
        course: int = 0,
    ) -> str:
        global_map = self.map_index.resolve_map(map_name)
        mode = await self.mode_resolver.resolve_mode(mode, user_id)

        tp, pro = await self._fetch_pair(global_map.name, mode, None, course)
        title = "BWR" if course else "WR"
        course_tag = f" B{course}" if course else ""
        return "\n".join([
            f"[{title}] {global_map.name}{course_tag} ({mode.short})",
            format_record("TP", tp),
            format_record("PRO", pro),
        ])

    async def maptop_reply(
        self,
        user_id: int,
        map_name: str,
        mode: Optional[ModeChoice] = None,
        runtype: Optional[Runtype] = None,
        course: int = 0,
    ) -> str:
        command = "bmaptop" if course else "maptop"
        global_map = self.map_index.resolve_map(map_name)
        mode = await self.mode_resolver.resolve_mode(mode, user_id)
        runtype = self.mode_resolver.resolve_runtype(runtype, command)

        try:
            records = await self.global_api.get_maptop(global_map.name, mode, runtype, course=course)
        except GlobalAPIError as e:
            raise RemoteApiFailureError(str(e)) from e
        if not records:
            raise NoRecordsError()

        course_tag = f" B{course}" if course else ""
        lines = [f"[Top {MAPTOP_LINES} {runtype}] {global_map.name}{course_tag} ({mode.short})"]
        for place, record in enumerate(records[:MAPTOP_LINES], start=1):
            teleports = f" ({record.teleports} TPs)" if record.teleports else ""
            lines.append(f"#{place} {record.player_name or 'unknown'} — {fmt_time(record.time)}{teleports}")
        return "\n".join(lines)

    def map_reply(self, map_name: str) -> str:
        global_map = self.map_index.resolve_map(map_name)
        lines = [f"{global_map.name} (id {global_map.id}) — Tier {global_map.tier}"]
        # Bonus count, mappers and filters come from KZ:GO and may be unknown.
        if global_map.mapper_name:
            lines.append(f"Mapper(s): {global_map.mapper_name}")
        if global_map.bonus_count is not None:
            lines.append(f"Bonuses: {global_map.bonus_count}")
        if global_map.skz_possible is not None and global_map.vnl_possible is not None:
            lines.append(
                f"Filters: KZT ✅ SKZ {_check(global_map.skz_possible)} VNL {_check(global_map.vnl_possible)}"
            )
        if global_map.updated_on:
            lines.append(f"Last updated: {global_map.updated_on:%Y-%m-%d}")
        lines.append(global_map.url)
        return "\n".join(lines)

    async def unfinished_reply(
        self,
        user_id: int,
        mode: Optional[ModeChoice] = None,
        runtype: Optional[Runtype] = None,
        tier: Optional[int] = None,
        player: Optional[str] = None,
    ) -> str:
        mode = await self.mode_resolver.resolve_mode(mode, user_id)
        runtype = self.mode_resolver.resolve_runtype(runtype, "unfinished")
        target = await self.target_resolver.resolve_input(player, user_id, require_steam_id=True)

        try:
            maps = await self.global_api.get_unfinished(
                target, mode, runtype, self.map_index.maps, tier=tier
            )
        except GlobalAPIError as e:
            raise RemoteApiFailureError(str(e)) from e

        tier_tag = f" T{tier}" if tier else ""
        header = f"[Unfinished {runtype}{tier_tag}] {target} ({mode.short})"
        if not maps:
            return f"{header}\nCongrats! You have no maps left to finish 🥳"
        lines = [f"{header} — {len(maps)} left"]
        lines.extend(m.name for m in maps[:UNFINISHED_LINES])
        if len(maps) > UNFINISHED_LINES:
            lines.append(f"...and {len(maps) - UNFINISHED_LINES} more")
        return "\n".join(lines)

    async def apistatus_reply(self) -> str:
        if await self.global_api.health_check():
            return "GlobalAPI is up."
        return "GlobalAPI is not responding."

    # ------------------------------------------------------------------
    # Slash commands
    # ------------------------------------------------------------------

    @app_commands.command(name="pb", description="Check a player's personal best on a map")
    @app_commands.describe(map_name="Map name", mode="KZT/SKZ/VNL", player="SteamID, name or @mention")
    @app_commands.choices(mode=MODE_CHOICES)
    @app_commands.autocomplete(map_name=map_autocomplete)
    async def pb_cmd(self, interaction: discord.Interaction, map_name: str,
                     mode: Optional[app_commands.Choice[int]] = None,
                     player: Optional[str] = None):
        await interaction.response.defer()
        await send(interaction, await self.pb_reply(interaction.user.id, map_name, mode_option(mode), player))

    @app_commands.command(name="bpb", description="Check a player's personal best on a bonus")
    @app_commands.describe(map_name="Map name", course="Bonus number", mode="KZT/SKZ/VNL",
                           player="SteamID, name or @mention")
    @app_commands.choices(mode=MODE_CHOICES)
    @app_commands.autocomplete(map_name=map_autocomplete)
    async def bpb_cmd(self, interaction: discord.Interaction, map_name: str,
                      course: app_commands.Range[int, 1, 100] = 1,
                      mode: Optional[app_commands.Choice[int]] = None,
                      player: Optional[str] = None):
        await interaction.response.defer()
        await send(interaction, await self.pb_reply(interaction.user.id, map_name, mode_option(mode), player, course))

    @app_commands.command(name="wr", description="Check the world record on a map")
    @app_commands.describe(map_name="Map name", mode="KZT/SKZ/VNL")
    @app_commands.choices(mode=MODE_CHOICES)
    @app_commands.autocomplete(map_name=map_autocomplete)
    async def wr_cmd(self, interaction: discord.Interaction, map_name: str,
                     mode: Optional[app_commands.Choice[int]] = None):
        await interaction.response.defer()
        await send(interaction, await self.wr_reply(interaction.user.id, map_name, mode_option(mode)))

    @app_commands.command(name="bwr", description="Check the world record on a bonus")
    @app_commands.describe(map_name="Map name", course="Bonus number", mode="KZT/SKZ/VNL")
    @app_commands.choices(mode=MODE_CHOICES)
    @app_commands.autocomplete(map_name=map_autocomplete)
    async def bwr_cmd(self, interaction: discord.Interaction, map_name: str,
                      course: app_commands.Range[int, 1, 100] = 1,
                      mode: Optional[app_commands.Choice[int]] = None):
        await interaction.response.defer()
        await send(interaction, await self.wr_reply(interaction.user.id, map_name, mode_option(mode), course))

    @app_commands.command(name="maptop", description="Top records on a map")
    @app_commands.describe(map_name="Map name", mode="KZT/SKZ/VNL", runtype="TP/PRO")
    @app_commands.choices(mode=MODE_CHOICES, runtype=RUNTYPE_CHOICES)
    @app_commands.autocomplete(map_name=map_autocomplete)
    async def maptop_cmd(self, interaction: discord.Interaction, map_name: str,
                         mode: Optional[app_commands.Choice[int]] = None,
                         runtype: Optional[app_commands.Choice[str]] = None):
        await interaction.response.defer()
        reply = await self.maptop_reply(interaction.user.id, map_name, mode_option(mode), runtype_option(runtype))
        await send(interaction, reply)

    @app_commands.command(name="bmaptop", description="Top records on a bonus")
    @app_commands.describe(map_name="Map name", course="Bonus number", mode="KZT/SKZ/VNL", runtype="TP/PRO")
    @app_commands.choices(mode=MODE_CHOICES, runtype=RUNTYPE_CHOICES)
    @app_commands.autocomplete(map_name=map_autocomplete)
    async def bmaptop_cmd(self, interaction: discord.Interaction, map_name: str,
                          course: app_commands.Range[int, 1, 100] = 1,
                          mode: Optional[app_commands.Choice[int]] = None,
                          runtype: Optional[app_commands.Choice[str]] = None):
        await interaction.response.defer()
        reply = await self.maptop_reply(interaction.user.id, map_name, mode_option(mode), runtype_option(runtype), course)
        await send(interaction, reply)

    @app_commands.command(name="map", description="Details about a global map")
    @app_commands.describe(map_name="Map name")
    @app_commands.autocomplete(map_name=map_autocomplete)
    async def map_cmd(self, interaction: discord.Interaction, map_name: str):
        await send(interaction, self.map_reply(map_name))

    @app_commands.command(name="unfinished", description="Maps a player has not finished yet")
    @app_commands.describe(mode="KZT/SKZ/VNL", runtype="TP/PRO", tier="Filter by tier",
                           player="SteamID, name or @mention")
    @app_commands.choices(mode=MODE_CHOICES, runtype=RUNTYPE_CHOICES)
    async def unfinished_cmd(self, interaction: discord.Interaction,
                             mode: Optional[app_commands.Choice[int]] = None,
                             runtype: Optional[app_commands.Choice[str]] = None,
                             tier: Optional[app_commands.Range[int, 1, 7]] = None,
                             player: Optional[str] = None):
        await interaction.response.defer()
        reply = await self.unfinished_reply(interaction.user.id, mode_option(mode), runtype_option(runtype), tier, player)
        await send(interaction, reply)

    @app_commands.command(name="apistatus", description="Check whether the GlobalAPI is up")
    async def apistatus_cmd(self, interaction: discord.Interaction):
        await interaction.response.defer()
        await send(interaction, await self.apistatus_reply())


async def setup(bot: commands.Bot):
    await bot.add_cog(RecordsCog(bot))
