"""
Mode / Runtype Normalization — effective mode and runtype for a command.

An explicit mode always wins; otherwise the requester's saved /mode
preference is used, and if there is none the command fails with
MissingModeError. Runtype never touches the database: omitted means the
command's own default.
"""

import logging
from typing import Dict, Optional

from models.players import ModeChoice, Runtype
from tools.resolution_errors import MissingModeError

logger = logging.getLogger("ModeResolver")

# Per-command default when no runtype is given. These differ on purpose
# (unfinished has always listed TP); do not unify without checking with users.
RUNTYPE_DEFAULTS: Dict[str, Runtype] = {
    "maptop": Runtype.PRO,
    "bmaptop": Runtype.PRO,
    "top": Runtype.PRO,
    "btop": Runtype.PRO,
    "unfinished": Runtype.TP,
}
FALLBACK_RUNTYPE = Runtype.PRO


def resolve_runtype(explicit: Optional[Runtype], command: str) -> Runtype:
    if explicit is not None:
        return explicit
    return RUNTYPE_DEFAULTS.get(command, FALLBACK_RUNTYPE)


class ModeResolver:
    """Resolve modes against the user store's saved preferences."""

    def __init__(self, user_store):
        self.user_store = user_store

    async def resolve_mode(
        self,
        explicit: Optional[ModeChoice],
        requesting_user_id: int,
    ) -> ModeChoice:
        """Return the explicit mode, else the saved preference.

        Raises:
            MissingModeError: nothing given and nothing saved.
            DatabaseAccessError: the user store failed.
        """
        if explicit is not None:
            return explicit

        user = await self.user_store.find_by_discord_id(requesting_user_id)
        if user is None or user.mode is None:
            logger.info(f"No mode preference for {requesting_user_id}")
            raise MissingModeError()
        return user.mode

    def resolve_runtype(self, explicit: Optional[Runtype], command: str) -> Runtype:
        return resolve_runtype(explicit, command)
