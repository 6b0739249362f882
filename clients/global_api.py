"""
GlobalAPI Client — KZ records, maps and players (Async)

Talks to the public GOKZ GlobalAPI (https://kztimerglobal.com/api/v2.0),
and to KZ:GO (https://kzgo.eu/api) for map details the GlobalAPI lacks
(bonus count, mapper names, possible modes). No API key is needed for
either; both are read-only and rate limit aggressively, so retryable
failures back off exponentially.

Requires:
  - GLOBAL_API_URL: override the GlobalAPI base URL (optional)
  - KZGO_API_URL: override the KZ:GO base URL (optional)

All public methods are async. Callers must `await` every call.
"""

import os
import random
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import aiohttp
from pydantic import ValidationError

from clients.global_api_errors import (
    GlobalAPIError,
    GlobalAPIConnectionError,
    GlobalAPITimeoutError,
    GlobalAPIRateLimitError,
    GlobalAPINotFoundError,
    GlobalAPIDataError,
)
from models.maps import GlobalMap, KZGOMap
from models.players import ModeChoice, NameIdentifier, PlayerIdentifier, Runtype
from models.records import PlayerRecord, Record, WorldRecordHolder
from tools.resolution_errors import RemoteApiFailureError

logger = logging.getLogger("GlobalAPI")

DEFAULT_BASE_URL = "https://kztimerglobal.com/api/v2.0"
DEFAULT_KZGO_URL = "https://kzgo.eu/api"
TICKRATE = 128


def _flag(value: bool) -> str:
    return "true" if value else "false"


async def gather_runtypes(fetch: Callable[[Runtype], Awaitable[Any]], what: str) -> Tuple[Any, Any]:
    """Run fetch(Runtype.TP) and fetch(Runtype.PRO) concurrently.

    A failing half is logged and comes back as None; both failing raises
    RemoteApiFailureError. Anything that is not a GlobalAPIError propagates.
    """
    results = await asyncio.gather(fetch(Runtype.TP), fetch(Runtype.PRO), return_exceptions=True)
    failures = [r for r in results if isinstance(r, BaseException)]
    for failure in failures:
        if not isinstance(failure, GlobalAPIError):
            raise failure
        logger.warning(f"Lookup failed for {what}: {failure}")
    if len(failures) == len(results):
        raise RemoteApiFailureError(f"Both lookups failed for {what}")
    tp, pro = (None if isinstance(r, BaseException) else r for r in results)
    return tp, pro


class GlobalAPIClient:
    """Async client for the GlobalAPI.

    Usage:
        api = GlobalAPIClient()
        await api.connect()         # creates the aiohttp session
        maps = await api.get_maps()
        await api.close()           # cleans up the TCP session
    """

    def __init__(self, base_url: Optional[str] = None, kzgo_url: Optional[str] = None):
        self.base_url = (
            base_url or os.getenv("GLOBAL_API_URL", DEFAULT_BASE_URL)
        ).rstrip("/")
        self.kzgo_url = (
            kzgo_url or os.getenv("KZGO_API_URL", DEFAULT_KZGO_URL)
        ).rstrip("/")
        self._session: Optional[aiohttp.ClientSession] = None

        # Retry settings
        self.max_retries = 3
        self.base_delay = 1.0  # seconds; doubles each retry (1, 2, 4)

    # ------------------------------------------------------------------
    # Internal HTTP layer
    # ------------------------------------------------------------------

    async def _raise_for_status(self, resp: aiohttp.ClientResponse) -> None:
        """Map HTTP status codes to specific GlobalAPI error types."""
        if resp.status < 400:
            return
        body = await resp.text()
        if resp.status == 404:
            raise GlobalAPINotFoundError(f"Not found ({resp.status}): {body[:200]}")
        elif resp.status == 429:
            raise GlobalAPIRateLimitError(f"Rate limited ({resp.status})")
        elif resp.status >= 500:
            raise GlobalAPIConnectionError(f"Server error ({resp.status}): {body[:200]}")
        else:
            raise GlobalAPIError(f"HTTP {resp.status}: {body[:200]}")

    async def _raw_get(self, path: str, params: Any = None, timeout: int = 15,
                       base_url: Optional[str] = None) -> Any:
        """Execute a single GET request (no retry) and return the decoded JSON.

        `params` is a dict, or a list of pairs when a key repeats.
        """
        session = await self._ensure_session()
        url = f"{base_url or self.base_url}/{path.lstrip('/')}"
        client_timeout = aiohttp.ClientTimeout(total=timeout)

        try:
            async with session.get(url, params=params or {}, timeout=client_timeout) as resp:
                await self._raise_for_status(resp)
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise GlobalAPIDataError(f"Invalid JSON from {path}: {e}") from e
        except aiohttp.ClientError as e:
            raise GlobalAPIConnectionError(f"Network error: {e}") from e
        except asyncio.TimeoutError as e:
            raise GlobalAPITimeoutError(f"Request timed out after {timeout}s: {path}") from e

    async def _get(self, path: str, params: Any = None, timeout: int = 15,
                   base_url: Optional[str] = None) -> Any:
        """GET with retry on connection, timeout and rate-limit errors."""
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                return await self._raw_get(path, params=params, timeout=timeout, base_url=base_url)
            except (GlobalAPIConnectionError, GlobalAPITimeoutError, GlobalAPIRateLimitError) as e:
                last_error = e
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt) + random.uniform(0, 0.5)
                    logger.warning(
                        f"GlobalAPI request failed (attempt {attempt + 1}/{self.max_retries}), "
                        f"retrying in {delay:.1f}s: {e}"
                    )
                    await asyncio.sleep(delay)
            # Non-retryable errors (NotFound, Data) propagate immediately

        raise last_error  # type: ignore[misc]

    async def _get_list(self, path: str, params: Any,
                        base_url: Optional[str] = None) -> List[Dict[str, Any]]:
        data = await self._get(path, params=params, base_url=base_url)
        if not isinstance(data, list):
            raise GlobalAPIDataError(f"Expected a list from {path}, got {type(data).__name__}")
        return data

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={"Accept": "application/json"})
        return self._session

    async def connect(self) -> None:
        await self._ensure_session()
        logger.info(f"GlobalAPI client ready: {self.base_url}")

    async def close(self):
        """Shut down the aiohttp session cleanly."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def health_check(self) -> bool:
        """True if the API answers a trivial query."""
        try:
            await self._raw_get("modes", timeout=10)
            return True
        except GlobalAPIError as e:
            logger.warning(f"GlobalAPI health check failed: {e}")
            return False

    # ------------------------------------------------------------------
    # Maps
    # ------------------------------------------------------------------

    async def get_maps(self) -> List[GlobalMap]:
        """All validated global maps. Malformed entries are skipped."""
        data = await self._get_list("maps", {"is_validated": "true", "limit": 9999})
        maps = []
        for entry in data:
            try:
                maps.append(GlobalMap.from_api(entry))
            except (KeyError, ValueError, ValidationError) as e:
                logger.warning(f"Skipping malformed map entry {entry.get('name')!r}: {e}")
        return maps

    async def get_kzgo_maps(self) -> List[KZGOMap]:
        """Map details from KZ:GO (bonuses, mappers, possible modes)."""
        data = await self._get_list("maps", None, base_url=self.kzgo_url)
        maps = []
        for entry in data:
            try:
                maps.append(KZGOMap.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping malformed KZ:GO map entry {entry.get('name')!r}: {e}")
        return maps

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    async def get_player(self, player: PlayerIdentifier) -> Optional[PlayerRecord]:
        """Look up a single player by SteamID or name. None if unknown."""
        if isinstance(player, NameIdentifier):
            params = {"name": player.name}
        else:
            params = player.api_params()
        data = await self._get_list("players", {**params, "limit": 1})
        if not data:
            return None
        try:
            return PlayerRecord.model_validate(data[0])
        except ValidationError as e:
            raise GlobalAPIDataError(f"Invalid player entry: {e}") from e

    async def search_player_by_name(self, name: str) -> PlayerRecord:
        """Resolve a free-text name to a player.

        Raises:
            RemoteApiFailureError: the API failed or knows no such player.
        """
        try:
            player = await self.get_player(NameIdentifier(name))
        except GlobalAPIError as e:
            raise RemoteApiFailureError(f"Player search for {name!r} failed: {e}") from e
        if player is None:
            raise RemoteApiFailureError(f"No player named {name!r}")
        return player

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _record_params(
        self,
        mode: ModeChoice,
        runtype: Runtype,
        course: int,
        limit: int,
        map_name: Optional[str] = None,
        player: Optional[PlayerIdentifier] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "tickrate": TICKRATE,
            "stage": course,
            "modes_list_string": mode.api_name,
            "has_teleports": _flag(runtype.has_teleports),
            "limit": limit,
        }
        if map_name is not None:
            params["map_name"] = map_name
        if player is not None:
            params.update(player.api_params())
        return params

    async def _get_records(self, params: Dict[str, Any]) -> List[Record]:
        data = await self._get_list("records/top", params)
        try:
            return [Record.model_validate(entry) for entry in data]
        except ValidationError as e:
            raise GlobalAPIDataError(f"Invalid record entry: {e}") from e

    async def get_record(
        self,
        map_name: str,
        mode: ModeChoice,
        runtype: Runtype,
        player: Optional[PlayerIdentifier] = None,
        course: int = 0,
    ) -> Optional[Record]:
        """The best record on a map: the world record, or a player's PB."""
        records = await self._get_records(
            self._record_params(mode, runtype, course, 1, map_name=map_name, player=player)
        )
        return records[0] if records else None

    async def get_maptop(
        self,
        map_name: str,
        mode: ModeChoice,
        runtype: Runtype,
        course: int = 0,
        limit: int = 100,
    ) -> List[Record]:
        return await self._get_records(
            self._record_params(mode, runtype, course, limit, map_name=map_name)
        )

    async def get_player_records(
        self,
        player: PlayerIdentifier,
        mode: ModeChoice,
        runtype: Runtype,
    ) -> List[Record]:
        """Every main-course record a player holds in one mode/runtype."""
        return await self._get_records(
            self._record_params(mode, runtype, 0, 9999, player=player)
        )

    async def get_unfinished(
        self,
        player: PlayerIdentifier,
        mode: ModeChoice,
        runtype: Runtype,
        maps: Sequence[GlobalMap],
        tier: Optional[int] = None,
    ) -> List[GlobalMap]:
        """Maps from `maps` the player has no main-course record on."""
        records = await self.get_player_records(player, mode, runtype)
        finished = {record.map_name for record in records}
        return [
            m for m in maps
            if m.name not in finished and (tier is None or m.tier == tier)
        ]

    async def get_recent(self, player: PlayerIdentifier) -> Optional[Record]:
        """A player's most recent main-course record across every mode and runtype."""
        combos = [(mode, runtype) for mode in ModeChoice for runtype in Runtype]
        results = await asyncio.gather(
            *(self.get_player_records(player, mode, runtype) for mode, runtype in combos),
            return_exceptions=True,
        )
        records: List[Record] = []
        failures = []
        for (mode, runtype), result in zip(combos, results):
            if isinstance(result, GlobalAPIError):
                logger.warning(f"Recent lookup failed for {player} ({mode.short} {runtype}): {result}")
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                records.extend(result)
        if len(failures) == len(combos):
            raise failures[0]

        dated = [record for record in records if record.created_on is not None]
        if not dated:
            return None
        return max(dated, key=lambda record: record.created_on)

    async def get_place(self, record_id: int) -> int:
        """Leaderboard position of a record (1 = world record)."""
        data = await self._get(f"records/place/{record_id}")
        if isinstance(data, bool) or not isinstance(data, int):
            raise GlobalAPIDataError(f"Expected a place for record {record_id}, got {data!r}")
        return data

    # ------------------------------------------------------------------
    # Leaderboards
    # ------------------------------------------------------------------

    async def get_world_record_leaderboard(
        self,
        mode: ModeChoice,
        runtype: Runtype,
        stages: Iterable[int] = (0,),
        limit: int = 100,
    ) -> List[WorldRecordHolder]:
        """Players ranked by how many world records they hold on `stages`."""
        params = [("stages", stage) for stage in stages]
        params += [
            ("mode_ids", mode.code),
            ("tickrates", TICKRATE),
            ("has_teleports", _flag(runtype.has_teleports)),
            ("limit", limit),
        ]
        data = await self._get_list("records/top/world_records", params)
        try:
            return [WorldRecordHolder.model_validate(entry) for entry in data]
        except ValidationError as e:
            raise GlobalAPIDataError(f"Invalid world record entry: {e}") from e
