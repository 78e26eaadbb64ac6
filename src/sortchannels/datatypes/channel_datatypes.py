"""
Channel snapshots and position edits used by the ordering code.

Snapshots are immutable copies of what the platform reported at fetch time;
the reconciliation path never mutates platform objects directly.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class ChannelKind(Enum):
    """Channel categories the ordering code distinguishes."""

    TEXT = "text"
    VOICE = "voice"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ChannelSnapshot:
    """Read-only view of a guild channel.

    Attributes:
        id: Platform channel identifier
        name: Channel name as shown in the client
        kind: Channel category; only TEXT channels are ever reordered
        position: Current ordering key, unique per guild but not necessarily dense
    """
    id: int
    name: str
    kind: ChannelKind
    position: int

    def moved_to(self, position: int) -> "ChannelSnapshot":
        """Return a copy of this snapshot at ``position``."""
        return replace(self, position=position)


@dataclass(frozen=True, slots=True)
class PositionEdit:
    """A single channel move produced by the orderer."""
    channel: ChannelSnapshot
    new_position: int

    @property
    def channel_id(self) -> int:
        return self.channel.id

    @property
    def old_position(self) -> int:
        return self.channel.position
