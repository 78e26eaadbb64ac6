"""
Database lifecycle for sort-channels.

:class:`Database` opens the SQLite file, creates the schema and hands out the
:class:`GuildStore` used by the prefix cache and the guild config service.

Lifecycle:
    1. ``await database.initialize()`` at startup
    2. use ``database.guilds``
    3. ``await database.shutdown()`` at exit
"""

from __future__ import annotations

from pathlib import Path

from sortchannels.database.db_connection import ConnectionManager
from sortchannels.database.db_schema import SchemaManager
from sortchannels.database.guild_store import GuildStore
from sortchannels.util.logger import get_logger

logger = get_logger("database")


class Database:
    """Owns the connection and the guild store built on it."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.connection = ConnectionManager()
        self.guilds = GuildStore(self.connection)
        self._initialized = False

    async def initialize(self) -> None:
        """Open the database and create the schema.

        Raises:
            Exception: whatever aiosqlite raised; startup cannot continue without storage.
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return

        await self.connection.open(self.db_path)
        try:
            async with self.connection.transaction() as conn:
                await SchemaManager.initialize_schema(conn)
        except Exception:
            await self.connection.close()
            raise

        self._initialized = True
        logger.info("[DATABASE] Database initialized at %s", self.db_path)

    async def shutdown(self) -> None:
        if not self._initialized:
            return

        await self.connection.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")
