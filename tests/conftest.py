"""
Shared pytest fixtures for the KZ bot test suite.

Fakes stand in for MongoDB and the GlobalAPI so resolver tests stay pure
and can count how often each collaborator was hit.
"""

from typing import Dict, Optional

import pytest

from models.maps import GlobalMap
from models.players import ModeChoice, SteamID
from models.records import PlayerRecord
from models.users import UserPreference
from tools.map_resolver import MapIndex
from tools.resolution_errors import DatabaseAccessError, RemoteApiFailureError


# ---------------------------------------------------------------------------
# Fake collaborators (reusable classes)
# ---------------------------------------------------------------------------

class FakeUserStore:
    """In-memory UserStore with call counters.

    Usage:
        store = FakeUserStore()
        store.add(1, "AlphaKeks", steam_id="STEAM_1:1:161178172")
        user = await store.find_by_discord_id(1)
    """

    def __init__(self, fail: bool = False):
        self.users: Dict[int, UserPreference] = {}
        self.fail = fail
        self.calls = {"find_by_discord_id": 0, "find_by_name": 0}

    def add(self, discord_id: int, name: str, steam_id: Optional[str] = None,
            mode: Optional[ModeChoice] = None) -> UserPreference:
        user = UserPreference(name=name, discord_id=discord_id, steam_id=steam_id, mode=mode)
        self.users[discord_id] = user
        return user

    def _check(self):
        if self.fail:
            raise DatabaseAccessError("database is down")

    async def find_by_discord_id(self, discord_id: int) -> Optional[UserPreference]:
        self.calls["find_by_discord_id"] += 1
        self._check()
        return self.users.get(discord_id)

    async def find_by_name(self, name: str) -> Optional[UserPreference]:
        self.calls["find_by_name"] += 1
        self._check()
        for user in self.users.values():
            if user.name.lower() == name.lower():
                return user
        return None

    async def find_by_steam_id(self, steam_id: SteamID) -> Optional[UserPreference]:
        self._check()
        for user in self.users.values():
            if user.steam_id == steam_id:
                return user
        return None

    async def set_steam_id(self, discord_id: int, name: str, steam_id: SteamID) -> bool:
        existing = self.users.get(discord_id)
        if existing is not None and existing.steam_id == steam_id:
            return False
        mode = existing.mode if existing else None
        self.add(discord_id, name, steam_id=str(steam_id), mode=mode)
        return True

    async def set_mode(self, discord_id: int, name: str, mode: Optional[ModeChoice]) -> bool:
        existing = self.users.get(discord_id)
        if existing is not None and existing.mode == mode:
            return False
        steam_id = str(existing.steam_id) if existing and existing.steam_id else None
        self.add(discord_id, name, steam_id=steam_id, mode=mode)
        return True


class FakePlayerSearch:
    """Async callable name -> PlayerRecord, counting invocations."""

    def __init__(self, players: Optional[Dict[str, str]] = None):
        self.players = players or {}
        self.calls = 0

    async def __call__(self, name: str) -> PlayerRecord:
        self.calls += 1
        for player_name, steam_id in self.players.items():
            if player_name.lower() == name.lower():
                return PlayerRecord(name=player_name, steam_id=steam_id)
        raise RemoteApiFailureError(f"No player named {name!r}")


def make_map(map_id: int, name: str, tier: int = 3, course_count: Optional[int] = None) -> GlobalMap:
    return GlobalMap(id=map_id, name=name, tier=tier, course_count=course_count)


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def user_store():
    return FakeUserStore()


@pytest.fixture
def player_search():
    return FakePlayerSearch({"GameChaos": "STEAM_1:0:102468802"})


@pytest.fixture
def global_maps():
    return [
        make_map(992, "kz_lionharder", tier=5),
        make_map(1002, "kz_beginnerblock_go", tier=1),
        make_map(227, "kz_reach_v2", tier=6, course_count=2),
        make_map(861, "kz_grotto", tier=4),
        make_map(1108, "kz_ladderall", tier=3),
        make_map(200, "bkz_apricity_v3", tier=2),
    ]


@pytest.fixture
def map_index(global_maps):
    return MapIndex(global_maps)


@pytest.fixture
def failing_user_store():
    return FakeUserStore(fail=True)


@pytest.fixture
def player_search_factory():
    """Builds extra FakePlayerSearch instances for search-chain tests."""
    return FakePlayerSearch
