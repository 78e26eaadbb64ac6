"""Listener cog that feeds py-cord events into the dispatcher.

Channel creation and channel updates trigger a sort of the owning guild,
guild joins make sure a stored record exists, and chat messages are checked
for text commands. Position edits made by the bot itself come back as channel
updates; those passes find nothing left to move and stop there.
"""

from typing import Optional

import discord
from discord.ext import commands

from sortchannels.bot.dispatcher import EventDispatcher
from sortchannels.datatypes.events import (
    ChannelCreated,
    ChannelUpdated,
    CommandMessage,
    CommandReply,
    GuildEvent,
    GuildObserved,
    GuildRenamed,
)
from sortchannels.gateway.discord_gateway import to_snapshot
from sortchannels.util.logger import get_logger

logger = get_logger("sorting_listener_cog")


class SortingListenerCog(commands.Cog):
    """Translates gateway callbacks into dispatcher events."""

    def __init__(self, discord_bot_instance, dispatcher: EventDispatcher):
        self.bot = discord_bot_instance
        self.dispatcher = dispatcher
        logger.info("Sorting listener cog loaded")

    async def _dispatch(self, event: GuildEvent) -> Optional[CommandReply]:
        try:
            return await self.dispatcher.dispatch(event)
        except Exception:
            logger.exception("Error while handling %s", type(event).__name__)
            return None

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        if self.bot.user:
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

    @commands.Cog.listener(name="on_guild_channel_update")
    async def on_guild_channel_update(self, before: discord.abc.GuildChannel, after: discord.abc.GuildChannel):
        await self._dispatch(ChannelUpdated(guild_id=after.guild.id, channel=to_snapshot(after)))

    @commands.Cog.listener(name="on_guild_channel_create")
    async def on_guild_channel_create(self, channel: discord.abc.GuildChannel):
        await self._dispatch(ChannelCreated(guild_id=channel.guild.id, channel=to_snapshot(channel)))

    @commands.Cog.listener(name="on_guild_join")
    async def on_guild_join(self, guild: discord.Guild):
        await self._dispatch(GuildObserved(guild_id=guild.id, name=guild.name, is_new=True))

    @commands.Cog.listener(name="on_guild_available")
    async def on_guild_available(self, guild: discord.Guild):
        await self._dispatch(GuildObserved(guild_id=guild.id, name=guild.name, is_new=False))

    @commands.Cog.listener(name="on_guild_update")
    async def on_guild_update(self, before: discord.Guild, after: discord.Guild):
        if before.name != after.name:
            await self._dispatch(GuildRenamed(guild_id=after.id, name=after.name))

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        if message.author.bot:
            return

        guild_id = message.guild.id if message.guild else None
        reply = await self._dispatch(
            CommandMessage(author_id=message.author.id, guild_id=guild_id, text=message.content or "")
        )
        if reply is None:
            return

        try:
            await message.reply(reply.text, mention_author=False)
        except discord.HTTPException as exc:
            logger.error("Failed to send reply in channel %s: %s", getattr(message.channel, "id", "?"), exc)


def setup(discord_bot_instance, dispatcher: EventDispatcher):
    """Register the SortingListenerCog with the bot."""
    discord_bot_instance.add_cog(SortingListenerCog(discord_bot_instance, dispatcher))
