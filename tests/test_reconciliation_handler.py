"""Tests for ReconciliationHandler: locking, failure policy and convergence."""

import asyncio
from unittest.mock import MagicMock

import pytest

from conftest import FakeGuild, text, voice
from sortchannels.reconciliation import handler as handler_module
from sortchannels.reconciliation.handler import ReconcileOutcome, ReconciliationHandler
from sortchannels.reconciliation.lock_registry import GuildLockRegistry
from sortchannels.reconciliation.ordering import compute_target_order


class BlockingGuild(FakeGuild):
    """Fake guild whose channel listing waits until released."""

    def __init__(self, channels):
        super().__init__(channels)
        self.entered = asyncio.Event()
        self.proceed = asyncio.Event()

    async def list_channels(self, guild_id):
        self.entered.set()
        await self.proceed.wait()
        return await super().list_channels(guild_id)


class FailingSource:
    async def list_channels(self, guild_id):
        raise ConnectionError("gateway unavailable")


@pytest.fixture
def registry():
    return GuildLockRegistry()


@pytest.fixture
def handler(registry):
    return ReconciliationHandler(registry)


@pytest.mark.asyncio
async def test_reconcile_applies_edits(handler, registry, scenario_channels):
    guild = FakeGuild(scenario_channels)

    result = await handler.reconcile(1, guild, guild)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert result.ok and result.changed
    assert sorted(guild.edit_calls) == [(1, 1), (2, 2), (3, 3), (4, 0)]
    assert not registry.is_locked(1)


@pytest.mark.asyncio
async def test_reconcile_leaves_non_text_channels_alone(handler):
    guild = FakeGuild([text(1, "b", 0), text(2, "a", 1), voice(3, "0-voice", 5)])

    await handler.reconcile(1, guild, guild)

    assert 3 not in {channel_id for channel_id, _ in guild.edit_calls}
    assert guild.channels[3].position == 5


@pytest.mark.asyncio
async def test_edit_failures_are_skipped_not_fatal(handler, registry, scenario_channels):
    guild = FakeGuild(scenario_channels, failing_ids={1})

    result = await handler.reconcile(1, guild, guild)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert [f.edit.channel_id for f in result.failures] == [1]
    assert isinstance(result.failures[0].error, RuntimeError)
    assert {e.channel_id for e in result.applied} == {2, 3, 4}
    assert len(guild.edit_calls) == 4
    assert not registry.is_locked(1)


@pytest.mark.asyncio
async def test_fetch_failure_releases_lock(handler, registry):
    sink = FakeGuild([])

    result = await handler.reconcile(1, FailingSource(), sink)

    assert result.outcome is ReconcileOutcome.FETCH_FAILED
    assert isinstance(result.error, ConnectionError)
    assert sink.edit_calls == []
    assert not registry.is_locked(1)


@pytest.mark.asyncio
async def test_cancelled_pass_releases_lock(handler, registry):
    guild = BlockingGuild([text(1, "a", 0)])

    task = asyncio.create_task(handler.reconcile(1, guild, guild))
    await guild.entered.wait()
    assert registry.is_locked(1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert not registry.is_locked(1)


@pytest.mark.asyncio
async def test_concurrent_same_guild_one_runs_one_denied(handler):
    guild = BlockingGuild([text(1, "b", 0), text(2, "a", 1)])

    first = asyncio.create_task(handler.reconcile(1, guild, guild))
    await guild.entered.wait()
    second = await handler.reconcile(1, guild, guild)
    guild.proceed.set()
    first_result = await first

    assert second.outcome is ReconcileOutcome.ALREADY_IN_PROGRESS
    assert first_result.outcome is ReconcileOutcome.COMPLETED
    assert guild.list_calls == 1


@pytest.mark.asyncio
async def test_different_guilds_do_not_block_each_other(handler, registry):
    blocked = BlockingGuild([text(1, "b", 0), text(2, "a", 1)])
    other = FakeGuild([text(3, "d", 0), text(4, "c", 1)])

    first = asyncio.create_task(handler.reconcile(1, blocked, blocked))
    await blocked.entered.wait()

    result = await handler.reconcile(2, other, other)
    assert result.outcome is ReconcileOutcome.COMPLETED
    assert registry.is_locked(1)

    blocked.proceed.set()
    assert (await first).outcome is ReconcileOutcome.COMPLETED


@pytest.mark.asyncio
async def test_lock_is_free_again_after_pass(handler):
    guild = FakeGuild([text(1, "b", 0), text(2, "a", 1)])
    await handler.reconcile(1, guild, guild)
    result = await handler.reconcile(1, guild, guild)
    assert result.outcome is ReconcileOutcome.COMPLETED


@pytest.mark.asyncio
async def test_pass_with_nothing_to_move_logs_summary(handler, monkeypatch):
    fake_logger = MagicMock()
    monkeypatch.setattr(handler_module, "logger", fake_logger)
    guild = FakeGuild([text(1, "a", 0), text(2, "b", 1)])

    result = await handler.reconcile(1, guild, guild)

    assert result.outcome is ReconcileOutcome.COMPLETED
    assert not result.changed
    fake_logger.debug.assert_called_once()
    assert "nothing to move" in fake_logger.debug.call_args.args[0]
    fake_logger.info.assert_not_called()


class EchoingGuild(FakeGuild):
    """Re-triggers reconciliation for every edit, like the platform's channel-update event."""

    def __init__(self, channels, handler):
        super().__init__(channels)
        self.handler = handler
        self.pending = []

    async def set_channel_position(self, channel_id, position):
        await super().set_channel_position(channel_id, position)
        self.pending.append(asyncio.create_task(self.handler.reconcile(1, self, self)))


@pytest.mark.asyncio
async def test_self_triggered_events_terminate(handler, scenario_channels):
    guild = EchoingGuild(scenario_channels, handler)

    result = await handler.reconcile(1, guild, guild)
    assert len(result.applied) == 4

    rounds = 0
    while guild.pending:
        rounds += 1
        assert rounds < 10, "reconciliation did not settle"
        batch, guild.pending = guild.pending, []
        for follow_up in await asyncio.gather(*batch):
            assert follow_up.applied == []

    assert compute_target_order(list(guild.channels.values())) == []
    assert len(guild.edit_calls) == 4
