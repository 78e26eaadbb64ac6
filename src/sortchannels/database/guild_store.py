"""
Durable guild records.

Each guild has one row in ``guilds`` plus its ordered channel lists in
``guild_channel_lists``. Every database error is wrapped: failed reads raise
:class:`StoreReadError`, failed writes raise :class:`StoreWriteError`.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sortchannels.database.db_connection import ConnectionManager
from sortchannels.database.db_schema import CHANNEL_LIST_NAMES
from sortchannels.datatypes.guild_config import GuildConfig
from sortchannels.errors import StoreReadError, StoreWriteError
from sortchannels.util.logger import get_logger

logger = get_logger("guild_store")


class GuildStore:
    """CRUD for guild records on top of a shared :class:`ConnectionManager`."""

    def __init__(self, connection: ConnectionManager) -> None:
        self._connection = connection

    async def create_guild_if_absent(self, guild_id: int, name: str = "") -> bool:
        """Insert a record for ``guild_id`` unless one exists.

        Returns:
            True if a record was created, False if it already existed
        """
        try:
            async with self._connection.transaction() as conn:
                cursor = await conn.execute(
                    "INSERT INTO guilds (guild_id, name) VALUES (?, ?) ON CONFLICT(guild_id) DO NOTHING",
                    (int(guild_id), name or ""),
                )
                created = cursor.rowcount == 1
                await cursor.close()
        except Exception as exc:
            raise StoreWriteError(f"could not create record for guild {guild_id}") from exc

        if created:
            logger.info("[GUILD STORE] Created record for guild %s", guild_id)
        return created

    async def get_all_prefixes(self) -> Dict[int, str]:
        """Return every stored prefix keyed by guild id. Guilds without one are absent."""
        try:
            async with self._connection.read() as conn:
                rows = await conn.execute_fetchall(
                    "SELECT guild_id, prefix FROM guilds WHERE prefix IS NOT NULL"
                )
        except Exception as exc:
            raise StoreReadError("could not load guild prefixes") from exc

        return {int(row[0]): str(row[1]) for row in rows}

    async def set_prefix(self, guild_id: int, prefix: str) -> None:
        """Store ``prefix`` for ``guild_id``, creating the record if needed."""
        try:
            async with self._connection.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO guilds (guild_id, prefix) VALUES (?, ?)
                    ON CONFLICT(guild_id) DO UPDATE SET prefix = excluded.prefix
                    """,
                    (int(guild_id), prefix),
                )
        except Exception as exc:
            raise StoreWriteError(f"could not store prefix for guild {guild_id}") from exc

        logger.debug("[GUILD STORE] Stored prefix %r for guild %s", prefix, guild_id)

    async def set_guild_name(self, guild_id: int, name: str) -> bool:
        """Store the display name for ``guild_id``, creating the record if needed.

        Only the ``name`` column is written, so a concurrent prefix change is kept.

        Returns:
            True if a row was inserted or the name changed
        """
        try:
            async with self._connection.transaction() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO guilds (guild_id, name) VALUES (?, ?)
                    ON CONFLICT(guild_id) DO UPDATE SET name = excluded.name
                    WHERE guilds.name IS NOT excluded.name
                    """,
                    (int(guild_id), name or ""),
                )
                changed = cursor.rowcount == 1
                await cursor.close()
        except Exception as exc:
            raise StoreWriteError(f"could not store name for guild {guild_id}") from exc

        if changed:
            logger.debug("[GUILD STORE] Stored name %r for guild %s", name, guild_id)
        return changed

    async def get_guild_config(self, guild_id: int) -> Optional[GuildConfig]:
        """Return the stored record for ``guild_id`` or None if there is none."""
        try:
            async with self._connection.read() as conn:
                rows = await conn.execute_fetchall(
                    "SELECT guild_id, name, prefix FROM guilds WHERE guild_id = ?",
                    (int(guild_id),),
                )
                if not rows:
                    return None
                list_rows = await conn.execute_fetchall(
                    """
                    SELECT list_name, channel_id FROM guild_channel_lists
                    WHERE guild_id = ?
                    ORDER BY list_name, position
                    """,
                    (int(guild_id),),
                )
        except Exception as exc:
            raise StoreReadError(f"could not load record for guild {guild_id}") from exc

        row = rows[0]
        lists: Dict[str, List[int]] = {name: [] for name in CHANNEL_LIST_NAMES}
        for list_name, channel_id in list_rows:
            lists.setdefault(list_name, []).append(int(channel_id))

        return GuildConfig(
            guild_id=int(row[0]),
            name=row[1] or "",
            prefix=row[2],
            always_on_top=lists["always_on_top"],
            always_on_bottom=lists["always_on_bottom"],
            ignore=lists["ignore"],
        )

    async def update_guild_config(self, config: GuildConfig) -> None:
        """Replace the stored record for ``config.guild_id`` with ``config``.

        The row is created if missing. Channel lists are rewritten in full so
        their stored order matches the given order.
        """
        guild_id = int(config.guild_id)
        lists = {
            "always_on_top": config.always_on_top,
            "always_on_bottom": config.always_on_bottom,
            "ignore": config.ignore,
        }
        try:
            async with self._connection.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO guilds (guild_id, name, prefix) VALUES (?, ?, ?)
                    ON CONFLICT(guild_id) DO UPDATE SET
                        name   = excluded.name,
                        prefix = excluded.prefix
                    """,
                    (guild_id, config.name or "", config.prefix),
                )
                await conn.execute("DELETE FROM guild_channel_lists WHERE guild_id = ?", (guild_id,))
                await conn.executemany(
                    """
                    INSERT INTO guild_channel_lists (guild_id, list_name, position, channel_id)
                    VALUES (?, ?, ?, ?)
                    """,
                    [
                        (guild_id, list_name, position, int(channel_id))
                        for list_name, channel_ids in lists.items()
                        for position, channel_id in enumerate(channel_ids)
                    ],
                )
        except Exception as exc:
            raise StoreWriteError(f"could not update record for guild {guild_id}") from exc

        logger.debug("[GUILD STORE] Updated record for guild %s", guild_id)
