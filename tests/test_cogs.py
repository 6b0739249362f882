"""
Tests for bot/cogs — the *_reply builders behind the slash commands.

The bot is a MagicMock carrying real resolvers wired to the in-memory
fakes from conftest; only the GlobalAPI client is mocked.
"""

import asyncio
import random
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from bot.cogs.players_cog import PlayersCog
from bot.cogs.records_cog import RecordsCog
from bot.cogs.settings_cog import SettingsCog
from bot.cogs.utility_cog import UtilityCog, approximate_nocrouch
from clients.global_api_errors import GlobalAPIConnectionError
from models.maps import GlobalMap, KZGOMap
from models.players import ModeChoice, Runtype
from models.records import Record, WorldRecordHolder
from tools.map_resolver import MapIndex
from tools.mode_resolver import ModeResolver
from tools.resolution_errors import (
    InvalidSteamIdError,
    MapNotFoundError,
    MissingModeError,
    NoRecordsError,
    RemoteApiFailureError,
)
from tools.target_resolver import TargetResolver

ALPHA = "STEAM_1:1:161178172"


def _record(runtype: Runtype, time: float, name: str = "AlphaKeks") -> Record:
    return Record(
        id=1, player_name=name, steam_id=ALPHA, map_name="kz_lionharder",
        time=time, teleports=5 if runtype is Runtype.TP else 0,
    )


@pytest.fixture
def bot(user_store, player_search, map_index):
    bot = MagicMock()
    bot.user_store = user_store
    bot.map_index = map_index
    bot.target_resolver = TargetResolver(user_store, player_search)
    bot.mode_resolver = ModeResolver(user_store)
    bot.global_api = MagicMock()
    user_store.add(1, "AlphaKeks", steam_id=ALPHA, mode=ModeChoice.SIMPLEKZ)
    return bot


def _records_by_runtype(bot, tp, pro):
    async def get_record(map_name, mode, runtype, player=None, course=0):
        result = tp if runtype is Runtype.TP else pro
        if isinstance(result, Exception):
            raise result
        return result

    bot.global_api.get_record = AsyncMock(side_effect=get_record)


class TestPersonalBest:

    def test_both_runtypes(self, bot):
        _records_by_runtype(bot, _record(Runtype.TP, 60.0), _record(Runtype.PRO, 83.125))
        reply = asyncio.run(RecordsCog(bot).pb_reply(1, "lionharder"))
        assert reply.splitlines() == [
            "[PB] kz_lionharder (SKZ) — AlphaKeks",
            "TP: 01:00.000 by AlphaKeks (5 TPs)",
            "PRO: 01:23.125 by AlphaKeks",
        ]

    def test_uses_saved_steam_id_and_mode(self, bot):
        _records_by_runtype(bot, None, _record(Runtype.PRO, 10.0))
        asyncio.run(RecordsCog(bot).pb_reply(1, "lionharder"))
        kwargs = bot.global_api.get_record.await_args.kwargs
        args = bot.global_api.get_record.await_args.args
        assert args[:2] == ("kz_lionharder", ModeChoice.SIMPLEKZ)
        assert str(kwargs["player"]) == ALPHA

    def test_one_half_missing(self, bot):
        _records_by_runtype(bot, None, _record(Runtype.PRO, 10.0))
        reply = asyncio.run(RecordsCog(bot).pb_reply(1, "lionharder"))
        assert "TP: no record" in reply

    def test_one_half_failing(self, bot):
        _records_by_runtype(bot, GlobalAPIConnectionError("down"), _record(Runtype.PRO, 10.0))
        reply = asyncio.run(RecordsCog(bot).pb_reply(1, "lionharder"))
        assert "TP: no record" in reply
        assert "PRO: 00:10.000" in reply

    def test_no_records(self, bot):
        _records_by_runtype(bot, None, None)
        with pytest.raises(NoRecordsError):
            asyncio.run(RecordsCog(bot).pb_reply(1, "lionharder"))

    def test_both_halves_failing(self, bot):
        _records_by_runtype(bot, GlobalAPIConnectionError("a"), GlobalAPIConnectionError("b"))
        with pytest.raises(RemoteApiFailureError):
            asyncio.run(RecordsCog(bot).pb_reply(1, "lionharder"))

    def test_unknown_map_skips_api(self, bot):
        _records_by_runtype(bot, None, None)
        with pytest.raises(MapNotFoundError):
            asyncio.run(RecordsCog(bot).pb_reply(1, "kz_doesnotexist_xyz"))
        bot.global_api.get_record.assert_not_awaited()

    def test_missing_mode(self, bot, user_store):
        user_store.add(2, "NoPrefs", steam_id=ALPHA)
        _records_by_runtype(bot, None, None)
        with pytest.raises(MissingModeError):
            asyncio.run(RecordsCog(bot).pb_reply(2, "lionharder"))

    def test_bonus(self, bot):
        _records_by_runtype(bot, None, _record(Runtype.PRO, 10.0))
        reply = asyncio.run(RecordsCog(bot).pb_reply(1, "reach", ModeChoice.KZTIMER, course=2))
        assert reply.startswith("[BPB] kz_reach_v2 B2 (KZT)")
        assert bot.global_api.get_record.await_args.kwargs["course"] == 2


class TestWorldRecord:

    def test_no_player_filter(self, bot):
        _records_by_runtype(bot, _record(Runtype.TP, 50.0, "GameChaos"), None)
        reply = asyncio.run(RecordsCog(bot).wr_reply(1, "grotto"))
        assert reply.splitlines()[0] == "[WR] kz_grotto (SKZ)"
        assert bot.global_api.get_record.await_args.kwargs["player"] is None


class TestMaptop:

    def test_defaults_to_pro(self, bot):
        bot.global_api.get_maptop = AsyncMock(return_value=[
            _record(Runtype.PRO, 80.0, "GameChaos"),
            _record(Runtype.PRO, 83.125),
        ])
        reply = asyncio.run(RecordsCog(bot).maptop_reply(1, "lionharder"))
        args = bot.global_api.get_maptop.await_args.args
        assert args == ("kz_lionharder", ModeChoice.SIMPLEKZ, Runtype.PRO)
        assert "#1 GameChaos" in reply
        assert "#2 AlphaKeks" in reply

    def test_empty(self, bot):
        bot.global_api.get_maptop = AsyncMock(return_value=[])
        with pytest.raises(NoRecordsError):
            asyncio.run(RecordsCog(bot).maptop_reply(1, "lionharder", runtype=Runtype.TP))


class TestUnfinished:

    def test_defaults_to_tp(self, bot, map_index):
        bot.global_api.get_unfinished = AsyncMock(return_value=list(map_index.maps[:2]))
        reply = asyncio.run(RecordsCog(bot).unfinished_reply(1))
        args = bot.global_api.get_unfinished.await_args.args
        assert args[1:3] == (ModeChoice.SIMPLEKZ, Runtype.TP)
        assert "2 left" in reply

    def test_unverifiable_name_fails(self, bot):
        bot.global_api.get_unfinished = AsyncMock(return_value=[])
        with pytest.raises(RemoteApiFailureError):
            asyncio.run(RecordsCog(bot).unfinished_reply(1, player="nobody"))
        bot.global_api.get_unfinished.assert_not_awaited()

    def test_nothing_left(self, bot):
        bot.global_api.get_unfinished = AsyncMock(return_value=[])
        reply = asyncio.run(RecordsCog(bot).unfinished_reply(1))
        assert "no maps left" in reply


class TestMapAndStatus:

    def test_map_reply(self, bot):
        reply = RecordsCog(bot).map_reply("992")
        assert reply.startswith("kz_lionharder (id 992) — Tier 5")
        assert reply.endswith("https://kzgo.eu/maps/kz_lionharder")

    def test_map_reply_omits_unknown_details(self, bot):
        reply = RecordsCog(bot).map_reply("grotto")
        assert "Bonuses" not in reply
        assert "Courses" not in reply
        assert "Mapper" not in reply

    def test_map_reply_with_kzgo_details(self, bot):
        reach = GlobalMap(id=227, name="kz_reach_v2", tier=6).with_kzgo(KZGOMap(
            id=227, name="kz_reach_v2", bonuses=2, sp=True, vp=False, mapperNames=["Sikari"],
        ))
        bot.map_index = MapIndex([reach])
        assert RecordsCog(bot).map_reply("reach").splitlines()[:4] == [
            "kz_reach_v2 (id 227) — Tier 6",
            "Mapper(s): Sikari",
            "Bonuses: 2",
            "Filters: KZT ✅ SKZ ✅ VNL ❌",
        ]

    def test_apistatus(self, bot):
        bot.global_api.health_check = AsyncMock(return_value=False)
        assert asyncio.run(RecordsCog(bot).apistatus_reply()) == "GlobalAPI is not responding."


class TestSettings:

    def test_set_steam(self, bot):
        cog = SettingsCog(bot)
        reply = asyncio.run(cog.set_steam_reply(5, "New", "STEAM_0:1:161178172"))
        assert reply == f"Successfully set SteamID `{ALPHA}` for <@5>!"
        again = asyncio.run(cog.set_steam_reply(5, "New", ALPHA))
        assert again == "You already have this SteamID set."

    def test_set_steam_invalid(self, bot):
        with pytest.raises(InvalidSteamIdError):
            asyncio.run(SettingsCog(bot).set_steam_reply(5, "New", "not-a-steamid"))

    def test_set_and_clear_mode(self, bot):
        cog = SettingsCog(bot)
        assert asyncio.run(cog.set_mode_reply(1, "AlphaKeks", ModeChoice.SIMPLEKZ)) == (
            "You already have this mode set."
        )
        assert asyncio.run(cog.set_mode_reply(1, "AlphaKeks", ModeChoice.VANILLA)) == (
            "Successfully set Mode `Vanilla` for <@1>!"
        )
        assert asyncio.run(cog.set_mode_reply(1, "AlphaKeks", None)) == (
            "Successfully cleared Mode for <@1>!"
        )


class TestTop:

    def test_defaults_to_pro_main_course(self, bot):
        bot.global_api.get_world_record_leaderboard = AsyncMock(return_value=[
            WorldRecordHolder(player_name="GameChaos", count=420),
            WorldRecordHolder(player_name=None, count=7),
        ])
        reply = asyncio.run(PlayersCog(bot).top_reply(1))
        assert bot.global_api.get_world_record_leaderboard.await_args.args == (
            ModeChoice.SIMPLEKZ, Runtype.PRO, (0,)
        )
        assert reply.splitlines() == [
            "[Top 100 PRO] World Records (SKZ)",
            "#1 GameChaos — 420",
            "#2 unknown — 7",
        ]

    def test_bonus_leaderboard(self, bot):
        bot.global_api.get_world_record_leaderboard = AsyncMock(return_value=[
            WorldRecordHolder(player_name="GameChaos", count=3),
        ])
        reply = asyncio.run(PlayersCog(bot).top_reply(1, ModeChoice.KZTIMER, Runtype.TP, bonus=True))
        args = bot.global_api.get_world_record_leaderboard.await_args.args
        assert args[:2] == (ModeChoice.KZTIMER, Runtype.TP)
        assert list(args[2]) == list(range(1, 101))
        assert reply.startswith("[BTop 100 TP] World Records (KZT)")

    def test_empty(self, bot):
        bot.global_api.get_world_record_leaderboard = AsyncMock(return_value=[])
        with pytest.raises(NoRecordsError):
            asyncio.run(PlayersCog(bot).top_reply(1))

    def test_api_failure(self, bot):
        bot.global_api.get_world_record_leaderboard = AsyncMock(side_effect=GlobalAPIConnectionError("down"))
        with pytest.raises(RemoteApiFailureError):
            asyncio.run(PlayersCog(bot).top_reply(1))

    def test_missing_mode(self, bot, user_store):
        user_store.add(2, "NoPrefs")
        bot.global_api.get_world_record_leaderboard = AsyncMock(return_value=[])
        with pytest.raises(MissingModeError):
            asyncio.run(PlayersCog(bot).top_reply(2))
        bot.global_api.get_world_record_leaderboard.assert_not_awaited()


def _recent_record() -> Record:
    return Record(
        id=5, player_name="AlphaKeks", steam_id=ALPHA, map_name="kz_lionharder",
        mode="kz_simple", time=83.125, created_on=datetime(2023, 6, 1, 12, 0),
    )


class TestRecent:

    def test_recent_with_place(self, bot):
        bot.global_api.get_recent = AsyncMock(return_value=_recent_record())
        bot.global_api.get_place = AsyncMock(return_value=3)
        reply = asyncio.run(PlayersCog(bot).recent_reply(1))
        assert reply.splitlines() == [
            "[Recent] AlphaKeks on kz_lionharder (T5)",
            "SKZ PRO: 01:23.125 [#3]",
            "Set <t:1685620800:R>",
        ]
        assert str(bot.global_api.get_recent.await_args.args[0]) == ALPHA
        bot.global_api.get_place.assert_awaited_once_with(5)

    def test_place_failure_is_not_fatal(self, bot):
        bot.global_api.get_recent = AsyncMock(return_value=_recent_record())
        bot.global_api.get_place = AsyncMock(side_effect=GlobalAPIConnectionError("down"))
        reply = asyncio.run(PlayersCog(bot).recent_reply(1))
        assert "SKZ PRO: 01:23.125" in reply
        assert "[#" not in reply

    def test_no_records(self, bot):
        bot.global_api.get_recent = AsyncMock(return_value=None)
        with pytest.raises(NoRecordsError):
            asyncio.run(PlayersCog(bot).recent_reply(1))

    def test_unverifiable_name_fails(self, bot):
        bot.global_api.get_recent = AsyncMock(return_value=None)
        with pytest.raises(RemoteApiFailureError):
            asyncio.run(PlayersCog(bot).recent_reply(1, player="nobody"))
        bot.global_api.get_recent.assert_not_awaited()


def _player_records_by_runtype(bot, tp, pro):
    async def get_player_records(player, mode, runtype):
        return tp if runtype is Runtype.TP else pro

    bot.global_api.get_player_records = AsyncMock(side_effect=get_player_records)


def _points_record(map_name: str, points: int) -> Record:
    return Record(id=1, player_name="AlphaKeks", steam_id=ALPHA, map_name=map_name, time=1.0, points=points)


class TestProfile:

    def test_profile(self, bot):
        _player_records_by_runtype(
            bot,
            [
                _points_record("kz_lionharder", 1000),
                _points_record("kz_grotto", 500),
                _points_record("kz_not_global", 100),
            ],
            [_points_record("kz_lionharder", 800)],
        )
        lines = asyncio.run(PlayersCog(bot).profile_reply(1)).splitlines()
        assert lines[:4] == [
            f"[Profile] AlphaKeks (SKZ) — {ALPHA}",
            "Points: TP 1600 / PRO 800 (total 2400)",
            "World records: TP 1 / PRO 0",
            "Completion: TP 2/6 (33.33%) | PRO 1/6 (16.67%)",
        ]
        assert "T4: TP 1/1 | PRO 0/1" in lines
        assert "T5: TP 1/1 | PRO 1/1" in lines
        assert "T7" not in "\n".join(lines)
        assert lines[-1] == "Preferred mode: SimpleKZ"

    def test_no_records(self, bot):
        _player_records_by_runtype(bot, [], [])
        with pytest.raises(NoRecordsError):
            asyncio.run(PlayersCog(bot).profile_reply(1))

    def test_preferred_mode_database_failure(self, bot, failing_user_store):
        _player_records_by_runtype(bot, [_points_record("kz_grotto", 10)], [])
        cog = PlayersCog(bot)
        cog.user_store = failing_user_store
        reply = asyncio.run(cog.profile_reply(1, ModeChoice.KZTIMER, player=ALPHA))
        assert reply.endswith("Preferred mode: unknown")


class TestUtility:

    def test_random_with_tier(self, bot):
        assert UtilityCog(bot).random_reply(5) == "🎲 kz_lionharder (T5)"

    def test_random_any_tier(self, bot, map_index):
        reply = UtilityCog(bot, rng=random.Random(0)).random_reply()
        assert reply.split()[1] in map_index.names

    def test_random_empty_tier(self, bot):
        with pytest.raises(MapNotFoundError):
            UtilityCog(bot).random_reply(7)

    def test_nocrouch(self, bot):
        assert approximate_nocrouch(250.0, 384.0) == 262.0
        assert UtilityCog(bot).nocrouch_reply(250.0, 384.0) == "Approximated distance: `262.0000`"

    def test_help_lists_commands(self, bot):
        bot.tree.get_commands.return_value = [
            SimpleNamespace(name="pb", description="Check a player's personal best on a map"),
            SimpleNamespace(name="apistatus", description="Check whether the GlobalAPI is up"),
        ]
        lines = UtilityCog(bot).help_reply().splitlines()
        assert lines[1:] == [
            "/apistatus — Check whether the GlobalAPI is up",
            "/pb — Check a player's personal best on a map",
        ]

    def test_ping_is_ephemeral(self, bot):
        interaction = MagicMock()
        interaction.response.is_done = MagicMock(return_value=False)
        interaction.response.send_message = AsyncMock()
        asyncio.run(UtilityCog.ping_cmd.callback(UtilityCog(bot), interaction))
        interaction.response.send_message.assert_awaited_once_with("Pong!", ephemeral=True)
