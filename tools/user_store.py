"""
UserStore — Async MongoDB service for per-user preferences.

One document per Discord user in the `users` collection:
    {name, discord_id, steam_id, mode}

Every write passes through UserPreference validation. Lookups return
None for "no such user" and raise DatabaseAccessError when MongoDB itself
fails; callers must never treat the two the same way.

Requires:
  - MONGODB_URI in .env (default: mongodb://localhost:27017)
  - Database name: kz_bot (configurable)
"""

import os
import re
import logging
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from models.players import ModeChoice, SteamID
from models.users import UserPreference
from tools.resolution_errors import DatabaseAccessError

logger = logging.getLogger("UserStore")


class UserStore:
    """Async MongoDB-backed store for UserPreference documents."""

    def __init__(
        self,
        uri: Optional[str] = None,
        db_name: str = "kz_bot",
        collection: str = "users",
    ):
        self.uri = uri or os.getenv("MONGODB_URI", "mongodb://localhost:27017")
        self.db_name = db_name
        self.collection_name = collection
        self._client: Any = None
        self._db: Any = None

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Connect to MongoDB. Returns True on success."""
        try:
            self._client = AsyncIOMotorClient(self.uri)
            # Verify connectivity
            await self._client.admin.command("ping")
            self._db = self._client[self.db_name]
            await self._users.create_index("discord_id", unique=True)
            logger.info(f"UserStore connected to MongoDB: {self.db_name}.{self.collection_name}")
            return True
        except PyMongoError as e:
            logger.error(f"MongoDB connection failed: {e}")
            self._client = None
            self._db = None
            return False

    async def close(self):
        """Close the MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def _users(self):
        return self._db[self.collection_name]

    def _require_connection(self):
        if not self.is_connected:
            raise DatabaseAccessError("UserStore is not connected to MongoDB.")

    async def _find_one(self, query: Dict[str, Any]) -> Optional[UserPreference]:
        self._require_connection()
        try:
            doc = await self._users.find_one(query)
        except PyMongoError as e:
            logger.error(f"User lookup failed for {query}: {e}")
            raise DatabaseAccessError(str(e)) from e
        if doc is None:
            return None
        return UserPreference.from_document(doc)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_by_discord_id(self, discord_id: int) -> Optional[UserPreference]:
        return await self._find_one({"discord_id": int(discord_id)})

    async def find_by_name(self, name: str) -> Optional[UserPreference]:
        """Exact (case-insensitive) name first, then any name containing it."""
        exact = await self._find_one(
            {"name": {"$regex": f"^{re.escape(name)}$", "$options": "i"}}
        )
        if exact is not None:
            return exact
        return await self._find_one(
            {"name": {"$regex": re.escape(name), "$options": "i"}}
        )

    async def find_by_steam_id(self, steam_id: SteamID) -> Optional[UserPreference]:
        return await self._find_one({"steam_id": str(steam_id)})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _upsert(self, discord_id: int, name: str, updates: Dict[str, Any]) -> None:
        self._require_connection()
        # Validate the merged document before anything is written.
        UserPreference.model_validate({"name": name, "discord_id": discord_id, **updates})
        try:
            await self._users.update_one(
                {"discord_id": int(discord_id)},
                {"$set": {"name": name, **updates}},
                upsert=True,
            )
        except PyMongoError as e:
            logger.error(f"User update failed for {discord_id}: {e}")
            raise DatabaseAccessError(str(e)) from e

    async def set_steam_id(self, discord_id: int, name: str, steam_id: SteamID) -> bool:
        """Save a SteamID. Returns False if the user already had this one."""
        existing = await self.find_by_discord_id(discord_id)
        if existing is not None and existing.steam_id == steam_id:
            return False
        await self._upsert(discord_id, name, {"steam_id": str(steam_id)})
        logger.info(f"Saved SteamID {steam_id} for {name} ({discord_id})")
        return True

    async def set_mode(self, discord_id: int, name: str, mode: Optional[ModeChoice]) -> bool:
        """Save (or clear, with None) a mode preference. False if unchanged."""
        existing = await self.find_by_discord_id(discord_id)
        if existing is not None and existing.mode == mode:
            return False
        await self._upsert(discord_id, name, {"mode": mode.code if mode else None})
        logger.info(f"Saved mode {mode} for {name} ({discord_id})")
        return True
