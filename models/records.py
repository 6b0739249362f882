"""
GlobalAPI response schemas — players and records.

Only the fields the bot reads are declared; everything else is ignored.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PlayerRecord(BaseModel):
    """An entry from the GlobalAPI `/players` endpoint."""

    name: str
    steam_id: str
    steamid64: Optional[str] = None
    is_banned: bool = False
    total_records: int = 0

    model_config = {"extra": "ignore"}


class Record(BaseModel):
    """An entry from `/records/top`."""

    id: int
    player_name: Optional[str] = None
    steam_id: Optional[str] = None
    map_id: Optional[int] = None
    map_name: str = ""
    mode: str = ""
    stage: int = 0
    time: float
    teleports: int = 0
    points: int = 0
    server_name: Optional[str] = None
    replay_id: int = 0
    created_on: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    @property
    def replay_link(self) -> Optional[str]:
        if not self.replay_id:
            return None
        return f"https://kztimerglobal.com/api/v2/records/replay/{self.replay_id}"


class WorldRecordHolder(BaseModel):
    """An entry from `/records/top/world_records`: a player and their WR count."""

    player_name: Optional[str] = None
    steam_id: Optional[str] = None
    steamid64: Optional[str] = None
    count: int = 0

    model_config = {"extra": "ignore"}
