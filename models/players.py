"""
Player-facing value types — SteamIDs, modes, runtypes, targets and identifiers.

Target is what the user typed (or didn't type) for a `player` argument.
PlayerIdentifier is what the GlobalAPI gets after resolution.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from tools.resolution_errors import InvalidSteamIdError

# Offset between a SteamID64 and the 32-bit account id of the same account.
STEAM_ID64_BASE = 76561197960265728

_STEAM_ID_RE = re.compile(r"^STEAM_(?P<universe>[01]):(?P<y>[01]):(?P<z>[0-9]+)$", re.IGNORECASE)
_STEAM_ID64_RE = re.compile(r"^[0-9]{17}$")


@dataclass(frozen=True)
class SteamID:
    """A validated Steam account id, always rendered as STEAM_1:Y:Z."""

    y: int
    z: int

    def __post_init__(self):
        if self.y not in (0, 1) or self.z < 0 or self.account_id >= 2 ** 32:
            raise InvalidSteamIdError(f"STEAM_1:{self.y}:{self.z}")

    @classmethod
    def parse(cls, raw: str) -> "SteamID":
        """Parse `STEAM_X:Y:Z` or a 64-bit SteamID. Raises InvalidSteamIdError."""
        text = (raw or "").strip()

        match = _STEAM_ID_RE.match(text)
        if match:
            return cls(y=int(match.group("y")), z=int(match.group("z")))

        if _STEAM_ID64_RE.match(text):
            account_id = int(text) - STEAM_ID64_BASE
            if 0 <= account_id < 2 ** 32:
                return cls(y=account_id % 2, z=account_id // 2)

        raise InvalidSteamIdError(raw)

    @classmethod
    def try_parse(cls, raw: Optional[str]) -> Optional["SteamID"]:
        if raw is None:
            return None
        try:
            return cls.parse(str(raw))
        except InvalidSteamIdError:
            return None

    @property
    def account_id(self) -> int:
        return self.z * 2 + self.y

    @property
    def steam_id64(self) -> int:
        return STEAM_ID64_BASE + self.account_id

    def __str__(self) -> str:
        return f"STEAM_1:{self.y}:{self.z}"


class ModeChoice(Enum):
    """The three GOKZ rule-sets. Values are the GlobalAPI mode ids."""

    KZTIMER = 200
    SIMPLEKZ = 201
    VANILLA = 202

    @property
    def code(self) -> int:
        return self.value

    @property
    def short(self) -> str:
        return _MODE_NAMES[self][0]

    @property
    def long(self) -> str:
        return _MODE_NAMES[self][1]

    @property
    def api_name(self) -> str:
        return _MODE_NAMES[self][2]

    @classmethod
    def from_code(cls, code: int) -> "ModeChoice":
        return cls(int(code))

    @classmethod
    def from_input(cls, raw: Union[str, int]) -> "ModeChoice":
        """Accept a mode id, short (SKZ), long (SimpleKZ) or API (kz_simple) name."""
        key = str(raw).strip().lower()
        for mode, names in _MODE_NAMES.items():
            if key == str(mode.value) or key in (n.lower() for n in names):
                return mode
        raise ValueError(f"Unknown mode: {raw!r}")

    def __str__(self) -> str:
        return self.long


_MODE_NAMES: Dict[ModeChoice, tuple] = {
    ModeChoice.KZTIMER: ("KZT", "KZTimer", "kz_timer"),
    ModeChoice.SIMPLEKZ: ("SKZ", "SimpleKZ", "kz_simple"),
    ModeChoice.VANILLA: ("VNL", "Vanilla", "kz_vanilla"),
}


class Runtype(Enum):
    """Whether a run used teleports (TP) or not (PRO)."""

    TP = "TP"
    PRO = "PRO"

    @property
    def has_teleports(self) -> bool:
        return self is Runtype.TP

    @classmethod
    def from_bool(cls, has_teleports: bool) -> "Runtype":
        return cls.TP if has_teleports else cls.PRO

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# PlayerIdentifier: the resolved form
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SteamIdIdentifier:
    steam_id: SteamID

    def api_params(self) -> Dict[str, str]:
        return {"steam_id": str(self.steam_id)}

    def __str__(self) -> str:
        return str(self.steam_id)


@dataclass(frozen=True)
class NameIdentifier:
    name: str

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("NameIdentifier requires a non-empty name")

    def api_params(self) -> Dict[str, str]:
        return {"player_name": self.name}

    def __str__(self) -> str:
        return self.name


PlayerIdentifier = Union[SteamIdIdentifier, NameIdentifier]


# ---------------------------------------------------------------------------
# Target: the raw form, before resolution
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Unspecified:
    """No `player` argument; the requester means themselves."""
    requesting_user_id: int


@dataclass(frozen=True)
class Mention:
    user_id: int


@dataclass(frozen=True)
class ExplicitSteamId:
    steam_id: SteamID


@dataclass(frozen=True)
class ExplicitName:
    name: str


Target = Union[Unspecified, Mention, ExplicitSteamId, ExplicitName]
