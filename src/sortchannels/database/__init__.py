"""
Database package for sort-channels.

Public API:
    - Database: opens the SQLite file and creates the schema
    - GuildStore: durable guild records (prefix, name, channel lists)
"""

from sortchannels.database.database import Database
from sortchannels.database.guild_store import GuildStore

__all__ = ["Database", "GuildStore"]
