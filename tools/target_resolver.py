"""
Target Resolution — turn a Target into a PlayerIdentifier.

Fallthrough order per Target kind:
    ExplicitSteamId  -> used as-is (no I/O)
    ExplicitName     -> stored user by name -> each player search in order -> the name itself
    Mention          -> stored user by Discord id, else MissingSteamIdError(blame_user=False)
    Unspecified      -> stored user by Discord id, else MissingSteamIdError(blame_user=True)

The user store and the player searches are injected, so the resolver
has no discord, motor or aiohttp imports of its own. The bot wires the
GlobalAPI search only; further directories slot in after it.
"""

import logging
from typing import Awaitable, Callable, Optional, Tuple

from models.players import (
    ExplicitName,
    ExplicitSteamId,
    Mention,
    NameIdentifier,
    PlayerIdentifier,
    SteamID,
    SteamIdIdentifier,
    Target,
    Unspecified,
)
from models.records import PlayerRecord
from tools.identifier_parser import parse_target
from tools.resolution_errors import MissingSteamIdError, RemoteApiFailureError

logger = logging.getLogger("TargetResolver")

PlayerSearch = Callable[[str], Awaitable[PlayerRecord]]


class TargetResolver:
    """Best-effort resolution of `player` arguments.

    Args:
        user_store: anything with async find_by_discord_id(id) and
            find_by_name(name) returning Optional[UserPreference].
            Failures must surface as DatabaseAccessError.
        player_searches: async callables name -> PlayerRecord, raising
            RemoteApiFailureError when nothing is found. Tried in order;
            the first one that finds the player wins.
    """

    def __init__(self, user_store, *player_searches: PlayerSearch):
        self.user_store = user_store
        self.player_searches: Tuple[PlayerSearch, ...] = player_searches

    async def resolve_input(
        self,
        raw: Optional[str],
        requesting_user_id: int,
        require_steam_id: bool = False,
    ) -> PlayerIdentifier:
        """Parse a raw `player` argument and resolve it in one go."""
        target = parse_target(raw, requesting_user_id)
        return await self.resolve_target(target, require_steam_id=require_steam_id)

    async def resolve_target(
        self,
        target: Target,
        require_steam_id: bool = False,
    ) -> PlayerIdentifier:
        """Resolve a Target.

        With require_steam_id=True, an ExplicitName that cannot be pinned to
        a SteamID raises instead of degrading to a NameIdentifier.

        Raises:
            MissingSteamIdError: no SteamID on file for a mention / the requester.
            DatabaseAccessError: the user store itself failed.
            RemoteApiFailureError: only when require_steam_id is set.
        """
        if isinstance(target, ExplicitSteamId):
            return SteamIdIdentifier(target.steam_id)

        if isinstance(target, ExplicitName):
            return await self._resolve_name(target.name, require_steam_id)

        if isinstance(target, (Unspecified, Mention)):
            blame_user = isinstance(target, Unspecified)
            user_id = target.requesting_user_id if blame_user else target.user_id
            user = await self.user_store.find_by_discord_id(user_id)
            if user is not None and user.steam_id is not None:
                return SteamIdIdentifier(user.steam_id)
            logger.info(f"No SteamID on file for {user_id} (blame_user={blame_user})")
            raise MissingSteamIdError(blame_user=blame_user)

        raise TypeError(f"Not a Target: {target!r}")

    async def _resolve_name(self, name: str, require_steam_id: bool) -> PlayerIdentifier:
        user = await self.user_store.find_by_name(name)
        if user is not None:
            if user.steam_id is not None:
                logger.debug(f"Resolved '{name}' via stored user {user.discord_id}")
                return SteamIdIdentifier(user.steam_id)
            if require_steam_id:
                raise MissingSteamIdError(blame_user=False)
            return NameIdentifier(name)

        failure: Optional[RemoteApiFailureError] = None
        for search in self.player_searches:
            try:
                player = await search(name)
            except RemoteApiFailureError as e:
                logger.info(f"Player search missed '{name}': {e}")
                failure = e
                continue
            steam_id = SteamID.try_parse(player.steam_id)
            if steam_id is not None:
                return SteamIdIdentifier(steam_id)
            logger.warning(f"Player search returned an invalid SteamID for '{name}': {player.steam_id!r}")
            failure = RemoteApiFailureError(f"Invalid SteamID for {name!r}")

        if require_steam_id:
            raise failure or RemoteApiFailureError(f"No player search configured for {name!r}")
        # TODO: surface "could not verify player" to the caller instead of
        # letting a later records query fail with a vaguer message.
        logger.warning(f"Could not verify player '{name}', using the name as-is")
        return NameIdentifier(name)
