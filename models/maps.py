"""
GlobalMap schema — a validated global map, as loaded once at startup.

Instances are frozen. The map list is fetched once and never mutated;
a fresh list needs a restart.

The GlobalAPI only knows id, name, tier and timestamps. Bonus count,
mapper names and which modes a map is possible in come from KZ:GO and
are merged in at load time (GlobalMap.with_kzgo); until then they are
None, meaning "unknown".
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

KZGO_MAP_URL = "https://kzgo.eu/maps/{name}"
MAP_THUMBNAIL_URL = "https://raw.githubusercontent.com/KZGlobalTeam/map-images/master/images/{name}.jpg"


def _is_number(value: str) -> bool:
    return value.isascii() and value.isdigit()


class KZGOMap(BaseModel):
    """Schema for a KZ:GO `/api/maps` entry."""

    id: int
    name: str
    tier: int = 0
    bonuses: int = Field(default=0, ge=0)
    skz_possible: bool = Field(default=True, alias="sp")
    vnl_possible: bool = Field(default=False, alias="vp")
    mapper_names: List[str] = Field(default_factory=list, alias="mapperNames")
    mapper_ids: List[str] = Field(default_factory=list, alias="mapperIds")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class GlobalMap(BaseModel):
    """Schema for a global map."""

    id: int
    name: str
    tier: int = Field(default=0, ge=0, le=7)
    course_count: Optional[int] = Field(default=None, ge=1)
    validated: bool = True
    mapper_name: Optional[str] = None
    mapper_steam_id64: Optional[int] = None
    skz_possible: Optional[bool] = None
    vnl_possible: Optional[bool] = None
    filesize: int = 0
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def url(self) -> str:
        return KZGO_MAP_URL.format(name=self.name)

    @property
    def thumbnail(self) -> str:
        return MAP_THUMBNAIL_URL.format(name=self.name)

    @property
    def bonus_count(self) -> Optional[int]:
        return None if self.course_count is None else self.course_count - 1

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "GlobalMap":
        """Build from a GlobalAPI `/maps` entry (difficulty -> tier)."""
        mapper_id = data.get("approved_by_steamid64")
        return cls(
            id=data["id"],
            name=data["name"],
            tier=data.get("difficulty") or 0,
            validated=data.get("validated", True),
            mapper_steam_id64=int(mapper_id) if mapper_id and _is_number(str(mapper_id)) else None,
            filesize=int(data.get("filesize") or 0),
            created_on=data.get("created_on"),
            updated_on=data.get("updated_on"),
        )

    def with_kzgo(self, kzgo: KZGOMap) -> "GlobalMap":
        """A copy carrying the KZ:GO details. Tier stays the GlobalAPI's."""
        mapper_id = kzgo.mapper_ids[0] if kzgo.mapper_ids else None
        return self.model_copy(update={
            "course_count": kzgo.bonuses + 1,
            "mapper_name": ", ".join(kzgo.mapper_names) or self.mapper_name,
            "mapper_steam_id64": (
                int(mapper_id) if mapper_id and _is_number(mapper_id) else self.mapper_steam_id64
            ),
            "skz_possible": kzgo.skz_possible,
            "vnl_possible": kzgo.vnl_possible,
        })
