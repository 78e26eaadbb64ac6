"""Tests for SortingListenerCog: py-cord callbacks become dispatcher events."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from sortchannels.bot.cogs import sorting_listener
from sortchannels.datatypes.events import (
    ChannelCreated,
    ChannelUpdated,
    CommandMessage,
    CommandReply,
    GuildObserved,
    GuildRenamed,
)


def fake_channel(channel_id=5, name="general", position=0, guild_id=10):
    return SimpleNamespace(
        id=channel_id,
        name=name,
        position=position,
        type=discord.ChannelType.text,
        guild=SimpleNamespace(id=guild_id),
    )


def fake_message(content, guild_id=10, bot_author=False):
    return SimpleNamespace(
        content=content,
        author=SimpleNamespace(id=1, bot=bot_author),
        guild=SimpleNamespace(id=guild_id) if guild_id is not None else None,
        channel=SimpleNamespace(id=3),
        reply=AsyncMock(),
    )


@pytest.fixture
def dispatcher():
    return SimpleNamespace(dispatch=AsyncMock(return_value=None))


@pytest.fixture
def cog(dispatcher):
    return sorting_listener.SortingListenerCog(SimpleNamespace(user=None), dispatcher)


def test_setup_adds_cog(dispatcher):
    captured = {}
    fake_bot = SimpleNamespace(add_cog=lambda cog: captured.setdefault("cog", cog))

    sorting_listener.setup(fake_bot, dispatcher)

    assert isinstance(captured["cog"], sorting_listener.SortingListenerCog)
    assert captured["cog"].dispatcher is dispatcher


@pytest.mark.asyncio
async def test_channel_update(cog, dispatcher):
    await cog.on_guild_channel_update(fake_channel(name="old"), fake_channel(name="new"))

    event = dispatcher.dispatch.await_args.args[0]
    assert isinstance(event, ChannelUpdated)
    assert event.guild_id == 10
    assert event.channel.name == "new"


@pytest.mark.asyncio
async def test_channel_create(cog, dispatcher):
    await cog.on_guild_channel_create(fake_channel())
    assert isinstance(dispatcher.dispatch.await_args.args[0], ChannelCreated)


@pytest.mark.asyncio
async def test_guild_join_and_available(cog, dispatcher):
    guild = SimpleNamespace(id=10, name="Guild")

    await cog.on_guild_join(guild)
    assert dispatcher.dispatch.await_args.args[0] == GuildObserved(10, "Guild", True)

    await cog.on_guild_available(guild)
    assert dispatcher.dispatch.await_args.args[0] == GuildObserved(10, "Guild", False)


@pytest.mark.asyncio
async def test_guild_update_only_on_rename(cog, dispatcher):
    await cog.on_guild_update(SimpleNamespace(id=10, name="A"), SimpleNamespace(id=10, name="A"))
    dispatcher.dispatch.assert_not_awaited()

    await cog.on_guild_update(SimpleNamespace(id=10, name="A"), SimpleNamespace(id=10, name="B"))
    assert dispatcher.dispatch.await_args.args[0] == GuildRenamed(10, "B")


@pytest.mark.asyncio
async def test_message_reply_is_sent(cog, dispatcher):
    dispatcher.dispatch.return_value = CommandReply("Pong!")
    message = fake_message(".ping")

    await cog.on_message(message)

    assert dispatcher.dispatch.await_args.args[0] == CommandMessage(author_id=1, guild_id=10, text=".ping")
    message.reply.assert_awaited_once()
    assert message.reply.await_args.args[0] == "Pong!"


@pytest.mark.asyncio
async def test_direct_message_has_no_guild(cog, dispatcher):
    await cog.on_message(fake_message(".ping", guild_id=None))
    assert dispatcher.dispatch.await_args.args[0].guild_id is None


@pytest.mark.asyncio
async def test_bot_messages_are_ignored(cog, dispatcher):
    await cog.on_message(fake_message(".ping", bot_author=True))
    dispatcher.dispatch.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_reply_when_dispatcher_returns_none(cog):
    message = fake_message("just chatting")
    await cog.on_message(message)
    message.reply.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatcher_errors_do_not_escape(cog, dispatcher):
    dispatcher.dispatch.side_effect = RuntimeError("boom")
    message = fake_message(".ping")

    await cog.on_message(message)
    await cog.on_guild_channel_create(fake_channel())

    message.reply.assert_not_awaited()
