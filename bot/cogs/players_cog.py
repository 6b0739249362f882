"""
Players Cog — player-centred GlobalAPI lookups.

Commands:
  /top /btop — players ranked by world records (main course / bonuses)
  /recent    — a player's most recent personal best
  /profile   — completion per tier, points and world records in one mode

Like the Records cog, arguments go through the shared resolvers first and
the *_reply methods return plain reply text.
"""

import logging
from datetime import timezone
from typing import Dict, List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from bot.options import MODE_CHOICES, RUNTYPE_CHOICES, mode_option, runtype_option
from bot.replies import report_error, send
from clients.global_api import gather_runtypes
from clients.global_api_errors import GlobalAPIError
from models.players import ModeChoice, Runtype, SteamIdIdentifier
from models.records import Record
from tools.formatting import fmt_time
from tools.resolution_errors import DatabaseAccessError, NoRecordsError, RemoteApiFailureError

logger = logging.getLogger("Players_Cog")

TOP_LINES = 20
BONUS_STAGES = range(1, 101)
WORLD_RECORD_POINTS = 1000
TIERS = range(1, 8)


def _mode_tag(api_name: str) -> str:
    try:
        return ModeChoice.from_input(api_name).short
    except ValueError:
        return api_name or "?"


def _percent(done: int, possible: int) -> str:
    if not possible:
        return "0.00%"
    return f"{done / possible * 100:.2f}%"


class PlayersCog(commands.Cog, name="Players"):
    """World record leaderboards, recent runs and player profiles."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.global_api = bot.global_api
        self.user_store = bot.user_store
        self.target_resolver = bot.target_resolver
        self.mode_resolver = bot.mode_resolver

    @property
    def map_index(self):
        return self.bot.map_index

    async def cog_app_command_error(self, interaction: discord.Interaction, error):
        await report_error(interaction, error)

    # ------------------------------------------------------------------
    # Reply builders
    # ------------------------------------------------------------------

    async def top_reply(
        self,
        user_id: int,
        mode: Optional[ModeChoice] = None,
        runtype: Optional[Runtype] = None,
        bonus: bool = False,
    ) -> str:
        command = "btop" if bonus else "top"
        mode = await self.mode_resolver.resolve_mode(mode, user_id)
        runtype = self.mode_resolver.resolve_runtype(runtype, command)
        stages = BONUS_STAGES if bonus else (0,)

        try:
            holders = await self.global_api.get_world_record_leaderboard(mode, runtype, stages)
        except GlobalAPIError as e:
            raise RemoteApiFailureError(str(e)) from e
        if not holders:
            raise NoRecordsError()

        title = "BTop" if bonus else "Top"
        lines = [f"[{title} 100 {runtype}] World Records ({mode.short})"]
        for place, holder in enumerate(holders[:TOP_LINES], start=1):
            lines.append(f"#{place} {holder.player_name or 'unknown'} — {holder.count}")
        return "\n".join(lines)

    async def recent_reply(self, user_id: int, player: Optional[str] = None) -> str:
        target = await self.target_resolver.resolve_input(player, user_id, require_steam_id=True)

        try:
            record = await self.global_api.get_recent(target)
        except GlobalAPIError as e:
            raise RemoteApiFailureError(str(e)) from e
        if record is None:
            raise NoRecordsError()

        place = None
        try:
            place = await self.global_api.get_place(record.id)
        except GlobalAPIError as e:
            logger.warning(f"No leaderboard place for record {record.id}: {e}")

        global_map = self.map_index.get_by_name(record.map_name)
        tier = f" (T{global_map.tier})" if global_map else ""
        runtype = Runtype.from_bool(record.teleports > 0)
        place_tag = f" [#{place}]" if place else ""
        teleports = f" ({record.teleports} TPs)" if record.teleports else ""

        lines = [
            f"[Recent] {record.player_name or target} on {record.map_name}{tier}",
            f"{_mode_tag(record.mode)} {runtype}: {fmt_time(record.time)}{place_tag}{teleports}",
        ]
        if record.created_on is not None:
            created = record.created_on
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            lines.append(f"Set <t:{int(created.timestamp())}:R>")
        if record.replay_link:
            lines.append(record.replay_link)
        return "\n".join(lines)

    def _completion(self, records: List[Record]) -> Dict[int, int]:
        """Finished global maps per tier. Records on non-global maps are ignored."""
        finished: Dict[int, int] = {}
        seen = set()
        for record in records:
            global_map = self.map_index.get_by_name(record.map_name)
            if global_map is None or global_map.name in seen:
                continue
            seen.add(global_map.name)
            finished[global_map.tier] = finished.get(global_map.tier, 0) + 1
        return finished

    async def _preferred_mode(self, target) -> str:
        if not isinstance(target, SteamIdIdentifier):
            return "unknown"
        try:
            user = await self.user_store.find_by_steam_id(target.steam_id)
        except DatabaseAccessError as e:
            logger.warning(f"Preferred mode lookup failed for {target}: {e}")
            return "unknown"
        if user is None or user.mode is None:
            return "unknown"
        return user.mode.long

    async def profile_reply(
        self,
        user_id: int,
        mode: Optional[ModeChoice] = None,
        player: Optional[str] = None,
    ) -> str:
        mode = await self.mode_resolver.resolve_mode(mode, user_id)
        target = await self.target_resolver.resolve_input(player, user_id, require_steam_id=True)

        tp, pro = await gather_runtypes(
            lambda runtype: self.global_api.get_player_records(target, mode, runtype),
            f"profile of {target} ({mode.short})",
        )
        tp, pro = tp or [], pro or []
        if not tp and not pro:
            raise NoRecordsError()

        name = next((r.player_name for r in tp + pro if r.player_name), str(target))
        possible = self.map_index.count_by_tier()
        total_possible = sum(possible.values())
        tp_done, pro_done = self._completion(tp), self._completion(pro)
        tp_points, pro_points = sum(r.points for r in tp), sum(r.points for r in pro)
        tp_wrs = sum(1 for r in tp if r.points == WORLD_RECORD_POINTS)
        pro_wrs = sum(1 for r in pro if r.points == WORLD_RECORD_POINTS)

        lines = [
            f"[Profile] {name} ({mode.short}) — {target}",
            f"Points: TP {tp_points} / PRO {pro_points} (total {tp_points + pro_points})",
            f"World records: TP {tp_wrs} / PRO {pro_wrs}",
            f"Completion: TP {sum(tp_done.values())}/{total_possible} "
            f"({_percent(sum(tp_done.values()), total_possible)}) | "
            f"PRO {sum(pro_done.values())}/{total_possible} "
            f"({_percent(sum(pro_done.values()), total_possible)})",
        ]
        for tier in TIERS:
            if not possible.get(tier):
                continue
            lines.append(
                f"T{tier}: TP {tp_done.get(tier, 0)}/{possible[tier]} | "
                f"PRO {pro_done.get(tier, 0)}/{possible[tier]}"
            )
        lines.append(f"Preferred mode: {await self._preferred_mode(target)}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Slash commands
    # ------------------------------------------------------------------

    @app_commands.command(name="top", description="Players with the most world records")
    @app_commands.describe(mode="KZT/SKZ/VNL", runtype="TP/PRO")
    @app_commands.choices(mode=MODE_CHOICES, runtype=RUNTYPE_CHOICES)
    async def top_cmd(self, interaction: discord.Interaction,
                      mode: Optional[app_commands.Choice[int]] = None,
                      runtype: Optional[app_commands.Choice[str]] = None):
        await interaction.response.defer()
        await send(interaction, await self.top_reply(interaction.user.id, mode_option(mode), runtype_option(runtype)))

    @app_commands.command(name="btop", description="Players with the most bonus world records")
    @app_commands.describe(mode="KZT/SKZ/VNL", runtype="TP/PRO")
    @app_commands.choices(mode=MODE_CHOICES, runtype=RUNTYPE_CHOICES)
    async def btop_cmd(self, interaction: discord.Interaction,
                       mode: Optional[app_commands.Choice[int]] = None,
                       runtype: Optional[app_commands.Choice[str]] = None):
        await interaction.response.defer()
        reply = await self.top_reply(interaction.user.id, mode_option(mode), runtype_option(runtype), bonus=True)
        await send(interaction, reply)

    @app_commands.command(name="recent", description="A player's most recent personal best")
    @app_commands.describe(player="SteamID, name or @mention")
    async def recent_cmd(self, interaction: discord.Interaction, player: Optional[str] = None):
        await interaction.response.defer()
        await send(interaction, await self.recent_reply(interaction.user.id, player))

    @app_commands.command(name="profile", description="A player's completion, points and world records")
    @app_commands.describe(mode="KZT/SKZ/VNL", player="SteamID, name or @mention")
    @app_commands.choices(mode=MODE_CHOICES)
    async def profile_cmd(self, interaction: discord.Interaction,
                          mode: Optional[app_commands.Choice[int]] = None,
                          player: Optional[str] = None):
        await interaction.response.defer()
        await send(interaction, await self.profile_reply(interaction.user.id, mode_option(mode), player))


async def setup(bot: commands.Bot):
    await bot.add_cog(PlayersCog(bot))
