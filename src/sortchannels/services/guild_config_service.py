"""
Guild record upkeep.

Keeps one stored record per guild the bot has seen. These are best-effort
syncs: failures are logged and reported as False, never raised, because a
missing record only costs the guild its display name in the store.
"""

from __future__ import annotations

from typing import Optional

from sortchannels.database.guild_store import GuildStore
from sortchannels.datatypes.guild_config import GuildConfig
from sortchannels.errors import StoreError
from sortchannels.util.logger import get_logger

logger = get_logger("guild_config_service")


class GuildConfigService:
    """Creates and updates stored guild records."""

    def __init__(self, store: GuildStore) -> None:
        self._store = store

    async def ensure_guild(self, guild_id: int, name: str = "") -> bool:
        """Make sure a record exists for ``guild_id``. Returns False if the store failed."""
        try:
            await self._store.create_guild_if_absent(guild_id, name)
        except StoreError as exc:
            logger.error("[GUILD CONFIG] Could not create record for guild %s: %s", guild_id, exc)
            return False
        return True

    async def sync_guild_name(self, guild_id: int, name: str) -> bool:
        """Store the guild's current display name. Other stored fields are left as they are."""
        try:
            changed = await self._store.set_guild_name(guild_id, name)
        except StoreError as exc:
            logger.error("[GUILD CONFIG] Could not sync name for guild %s: %s", guild_id, exc)
            return False

        if changed:
            logger.debug("[GUILD CONFIG] Guild %s renamed to %r", guild_id, name)
        return True

    async def get_config(self, guild_id: int) -> Optional[GuildConfig]:
        """Return the stored record, or None if there is none.

        Raises:
            StoreReadError: if the store cannot be read
        """
        return await self._store.get_guild_config(guild_id)
