"""
Closed set of events the dispatcher understands.

The Discord cogs translate py-cord callbacks into one of these variants so
that all routing happens in a single ``match`` in
:class:`sortchannels.bot.dispatcher.EventDispatcher`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sortchannels.datatypes.channel_datatypes import ChannelSnapshot


@dataclass(frozen=True, slots=True)
class ChannelUpdated:
    """A channel was renamed, moved or otherwise edited."""
    guild_id: int
    channel: ChannelSnapshot


@dataclass(frozen=True, slots=True)
class ChannelCreated:
    """A channel was created in a guild."""
    guild_id: int
    channel: ChannelSnapshot


@dataclass(frozen=True, slots=True)
class GuildObserved:
    """The bot joined a guild (``is_new``) or saw it become available again."""
    guild_id: int
    name: str = ""
    is_new: bool = False


@dataclass(frozen=True, slots=True)
class GuildRenamed:
    """A guild's display name changed."""
    guild_id: int
    name: str


@dataclass(frozen=True, slots=True)
class CommandMessage:
    """An inbound chat message that may contain a command.

    ``guild_id`` is None for direct messages.
    """
    author_id: int
    guild_id: Optional[int]
    text: str


@dataclass(frozen=True, slots=True)
class CommandReply:
    """Text the gateway layer should send back to the command's author."""
    text: str


GuildEvent = Union[ChannelUpdated, ChannelCreated, GuildObserved, GuildRenamed, CommandMessage]
