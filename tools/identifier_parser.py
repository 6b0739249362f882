"""
Identifier Parser — classify a raw `player` argument into a Target.

Pure Python — no discord imports, no I/O. Precedence is fixed:
SteamID, then @mention, then free-text name. A missing or blank
argument means the requester is targeting themselves.
"""

import re
import logging
from typing import Optional

from models.players import (
    SteamID,
    Target,
    Unspecified,
    Mention,
    ExplicitSteamId,
    ExplicitName,
)

logger = logging.getLogger("IdentifierParser")

# <@123> or the legacy nickname form <@!123>
_MENTION_RE = re.compile(r"^<@!?(?P<user_id>[0-9]+)>$")


def parse_steam_id(raw: str) -> SteamID:
    """Validate a SteamID for explicit entry points like /setsteam.

    Raises:
        InvalidSteamIdError: if raw is neither STEAM_X:Y:Z nor a SteamID64.
    """
    return SteamID.parse(raw)


def parse_mention(raw: str) -> Optional[int]:
    """Return the user id of a Discord mention, or None."""
    match = _MENTION_RE.match(raw.strip())
    if match is None:
        return None
    return int(match.group("user_id"))


def parse_target(raw: Optional[str], requesting_user_id: int) -> Target:
    """Turn a raw `player` argument into a Target. Total; never raises."""
    if raw is None or not raw.strip():
        return Unspecified(requesting_user_id)

    text = raw.strip()

    steam_id = SteamID.try_parse(text)
    if steam_id is not None:
        logger.debug(f"Parsed '{text}' as SteamID {steam_id}")
        return ExplicitSteamId(steam_id)

    user_id = parse_mention(text)
    if user_id is not None:
        logger.debug(f"Parsed '{text}' as mention of {user_id}")
        return Mention(user_id)

    return ExplicitName(text)
