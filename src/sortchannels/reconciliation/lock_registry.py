"""
Per-guild gate that keeps reconciliation passes from overlapping.

The registry holds the set of guild ids with a pass in flight. Acquisition never
blocks and never queues: a second caller for the same guild is simply told no.
The internal mutex only protects the set for the instant of a membership
check/update and is never held across an ``await``.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import FrozenSet, Iterator, Set

from sortchannels.util.logger import get_logger

logger = get_logger("guild_lock_registry")


class GuildLockRegistry:
    """Tracks which guilds currently have a reconciliation pass running."""

    def __init__(self) -> None:
        self._locked: Set[int] = set()
        self._mutex = threading.Lock()

    def try_acquire(self, guild_id: int) -> bool:
        """Mark ``guild_id`` as locked if it is free. Returns False if it was already locked."""
        with self._mutex:
            if guild_id in self._locked:
                return False
            self._locked.add(guild_id)
        logger.debug("[LOCK REGISTRY] Acquired lock for guild %s", guild_id)
        return True

    def release(self, guild_id: int) -> None:
        """Unlock ``guild_id``. Releasing an unlocked guild is a no-op."""
        with self._mutex:
            self._locked.discard(guild_id)
        logger.debug("[LOCK REGISTRY] Released lock for guild %s", guild_id)

    def is_locked(self, guild_id: int) -> bool:
        with self._mutex:
            return guild_id in self._locked

    def locked_guilds(self) -> FrozenSet[int]:
        """Snapshot of the guild ids currently locked."""
        with self._mutex:
            return frozenset(self._locked)

    @contextmanager
    def hold(self, guild_id: int) -> Iterator[bool]:
        """Try to lock ``guild_id`` for the duration of the ``with`` block.

        Yields whether the lock was granted. A granted lock is released on every
        exit path, including exceptions; a denied one is left untouched so the
        current holder keeps it.

        Usage::

            with registry.hold(guild_id) as granted:
                if not granted:
                    return
                ...
        """
        granted = self.try_acquire(guild_id)
        try:
            yield granted
        finally:
            if granted:
                self.release(guild_id)
