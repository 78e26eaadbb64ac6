"""
Database schema creation and version tracking.

Tables:
- guilds: one row per guild (id, display name, command prefix)
- guild_channel_lists: ordered channel ids for the always_on_top,
  always_on_bottom and ignore lists of each guild
- schema_version: applied schema versions
"""

import aiosqlite
from sortchannels.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1

CHANNEL_LIST_NAMES = ("always_on_top", "always_on_bottom", "ignore")


class SchemaManager:
    """Creates tables, indexes and triggers, and records the schema version."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables, indexes and triggers if they do not exist yet.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._create_triggers(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        # prefix is NULL until a guild sets one; the default is applied at resolve time
        await db.execute("""
            CREATE TABLE IF NOT EXISTS guilds (
                guild_id INTEGER PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                prefix TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS guild_channel_lists (
                guild_id INTEGER NOT NULL,
                list_name TEXT NOT NULL CHECK (list_name IN ('always_on_top', 'always_on_bottom', 'ignore')),
                position INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                PRIMARY KEY (guild_id, list_name, position),
                FOREIGN KEY (guild_id) REFERENCES guilds(guild_id) ON DELETE CASCADE
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_channel_lists_guild ON guild_channel_lists(guild_id)")

    @staticmethod
    async def _create_triggers(db: aiosqlite.Connection) -> None:
        await db.execute("""
            CREATE TRIGGER IF NOT EXISTS update_guilds_timestamp
            AFTER UPDATE OF name, prefix ON guilds
            FOR EACH ROW
            BEGIN
                UPDATE guilds SET updated_at = CURRENT_TIMESTAMP
                WHERE guild_id = NEW.guild_id;
            END
        """)

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
