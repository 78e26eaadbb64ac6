"""
py-cord adapter for the reconciliation engine.

:class:`DiscordGateway` implements both the channel source and the edit sink
the handler expects. Every request is bounded by ``request_timeout`` so a
stuck HTTP call cannot keep a guild locked forever.
"""

from __future__ import annotations

import asyncio
from typing import List

import discord

from sortchannels.datatypes.channel_datatypes import ChannelKind, ChannelSnapshot
from sortchannels.errors import GatewayError
from sortchannels.util.logger import get_logger

logger = get_logger("discord_gateway")

_VOICE_TYPES = frozenset({discord.ChannelType.voice, discord.ChannelType.stage_voice})


def channel_kind(channel_type: discord.ChannelType) -> ChannelKind:
    """Map a py-cord channel type onto the kinds the orderer knows about."""
    if channel_type == discord.ChannelType.text:
        return ChannelKind.TEXT
    if channel_type in _VOICE_TYPES:
        return ChannelKind.VOICE
    return ChannelKind.OTHER


def to_snapshot(channel: discord.abc.GuildChannel) -> ChannelSnapshot:
    """Copy the fields the orderer needs out of a py-cord guild channel."""
    return ChannelSnapshot(
        id=int(channel.id),
        name=str(channel.name),
        kind=channel_kind(channel.type),
        position=int(channel.position),
    )


class DiscordGateway:
    """Lists and moves guild channels through a py-cord client."""

    def __init__(self, bot: discord.Client, request_timeout: float = 30.0) -> None:
        self.bot = bot
        self.request_timeout = request_timeout

    async def list_channels(self, guild_id: int) -> List[ChannelSnapshot]:
        """Fetch the live channel list for ``guild_id`` over HTTP.

        Raises:
            GatewayError: if the guild is unknown, the request fails or times out
        """
        guild = self.bot.get_guild(guild_id)
        if guild is None:
            raise GatewayError(f"guild {guild_id} is not available")

        try:
            channels = await asyncio.wait_for(guild.fetch_channels(), timeout=self.request_timeout)
        except asyncio.TimeoutError as exc:
            raise GatewayError(f"listing channels of guild {guild_id} timed out") from exc
        except discord.HTTPException as exc:
            raise GatewayError(f"listing channels of guild {guild_id} failed: {exc}") from exc

        return [to_snapshot(channel) for channel in channels]

    async def set_channel_position(self, channel_id: int, position: int) -> None:
        """Move one channel to ``position``.

        Raises:
            GatewayError: if the channel is unknown, the edit is rejected or times out
        """
        try:
            channel = self.bot.get_channel(channel_id)
            if channel is None:
                channel = await asyncio.wait_for(self.bot.fetch_channel(channel_id), timeout=self.request_timeout)
            await asyncio.wait_for(
                channel.edit(position=position, reason="natural sort"),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise GatewayError(f"moving channel {channel_id} timed out") from exc
        except discord.HTTPException as exc:
            raise GatewayError(f"moving channel {channel_id} failed: {exc}") from exc

        logger.debug("[GATEWAY] Moved channel %s to position %s", channel_id, position)
