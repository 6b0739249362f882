"""
Pydantic v2 data models and value types — the contract between the
resolvers, the user store and the GlobalAPI client.
"""

from models.players import (
    SteamID,
    ModeChoice,
    Runtype,
    SteamIdIdentifier,
    NameIdentifier,
    PlayerIdentifier,
    Unspecified,
    Mention,
    ExplicitSteamId,
    ExplicitName,
    Target,
)
from models.users import UserPreference
from models.maps import GlobalMap, KZGOMap
from models.records import PlayerRecord, Record, WorldRecordHolder

__all__ = [
    "SteamID",
    "ModeChoice",
    "Runtype",
    "SteamIdIdentifier",
    "NameIdentifier",
    "PlayerIdentifier",
    "Unspecified",
    "Mention",
    "ExplicitSteamId",
    "ExplicitName",
    "Target",
    "UserPreference",
    "GlobalMap",
    "KZGOMap",
    "PlayerRecord",
    "Record",
    "WorldRecordHolder",
]
