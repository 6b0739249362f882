"""
UserPreference schema — one document per Discord user in the `users` collection.

Stored values are kept loose (strings / ints) so a bad row never crashes a
lookup: an unparseable SteamID or an unknown mode code loads as None.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

from models.players import ModeChoice, SteamID


class UserPreference(BaseModel):
    """A Discord user's saved SteamID and preferred mode."""

    name: str
    discord_id: int
    steam_id: Optional[SteamID] = None
    mode: Optional[ModeChoice] = None

    model_config = {"arbitrary_types_allowed": True, "extra": "ignore"}

    @field_validator("steam_id", mode="before")
    @classmethod
    def parse_steam_id(cls, v):
        if v is None or isinstance(v, SteamID):
            return v
        return SteamID.try_parse(str(v))

    @field_validator("mode", mode="before")
    @classmethod
    def parse_mode(cls, v):
        if v is None or isinstance(v, ModeChoice):
            return v
        try:
            return ModeChoice.from_code(int(v))
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserPreference":
        doc = {k: v for k, v in doc.items() if k != "_id"}
        return cls.model_validate(doc)

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "discord_id": self.discord_id,
            "steam_id": str(self.steam_id) if self.steam_id else None,
            "mode": self.mode.code if self.mode else None,
        }
