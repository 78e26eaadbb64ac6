"""
Per-guild command prefix cache.

The cache is seeded once from the guild store at startup and afterwards
updated write-through: the store is written first and the in-memory mapping
only changes once that write succeeded. A crash between the two leaves the
cache stale but the store correct, and the next startup reloads from the store.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol

from sortchannels.datatypes.guild_config import DEFAULT_PREFIX
from sortchannels.util.logger import get_logger

logger = get_logger("prefix_cache")

MAX_PREFIX_LENGTH = 10


class PrefixStore(Protocol):
    async def get_all_prefixes(self) -> Dict[int, str]:
        ...

    async def set_prefix(self, guild_id: int, prefix: str) -> None:
        ...


def validate_prefix(prefix: str) -> str:
    """Return ``prefix`` stripped, or raise ValueError if it cannot be used as a prefix."""
    value = (prefix or "").strip()
    if not value:
        raise ValueError("prefix must not be empty")
    if any(ch.isspace() for ch in value):
        raise ValueError("prefix must not contain whitespace")
    if len(value) > MAX_PREFIX_LENGTH:
        raise ValueError(f"prefix must be at most {MAX_PREFIX_LENGTH} characters")
    return value


class PrefixCache:
    """Maps guild ids to command prefixes, backed by a :class:`PrefixStore`."""

    def __init__(self, store: PrefixStore, default_prefix: str = DEFAULT_PREFIX) -> None:
        self._store = store
        self.default_prefix = default_prefix
        self._prefixes: Dict[int, str] = {}
        self._mutex = threading.Lock()

    async def load_all(self) -> Dict[int, str]:
        """Replace the cache with every prefix in the store and return a copy.

        Raises:
            StoreReadError: if the store cannot be read. Startup treats this as fatal.
        """
        prefixes = await self._store.get_all_prefixes()
        with self._mutex:
            self._prefixes = dict(prefixes)
        logger.info("[PREFIX CACHE] Loaded %d guild prefixes", len(prefixes))
        return dict(prefixes)

    def resolve_prefix(self, guild_id: Optional[int]) -> str:
        """Return the prefix for ``guild_id``, or the default for unknown guilds and DMs."""
        if guild_id is None:
            return self.default_prefix
        with self._mutex:
            return self._prefixes.get(guild_id, self.default_prefix)

    async def set_prefix(self, guild_id: int, prefix: str) -> str:
        """Persist and cache a new prefix for ``guild_id``.

        Returns:
            The prefix actually stored (stripped)

        Raises:
            ValueError: if ``prefix`` is not usable; nothing is written
            StoreWriteError: if the store write failed; the cache is unchanged
        """
        value = validate_prefix(prefix)
        await self._store.set_prefix(guild_id, value)
        with self._mutex:
            self._prefixes[guild_id] = value
        logger.info("[PREFIX CACHE] Guild %s prefix set to %r", guild_id, value)
        return value
