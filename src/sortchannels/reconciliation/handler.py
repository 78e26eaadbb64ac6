"""
One reconciliation pass: lock, fetch, order, apply, release.

The handler talks to the platform only through the :class:`ChannelSource` and
:class:`EditSink` protocols, so it can be driven by the Discord adapter in
production and by in-memory fakes in tests.

Failure policy
--------------
* Lock denied      -> ``ALREADY_IN_PROGRESS``; nothing is fetched or edited.
* Fetch failure    -> ``FETCH_FAILED``; lock released so a later trigger can retry.
* Edit failure     -> logged, recorded in ``failures``, remaining edits still run.

The result is always returned, never raised, so callers decide how loudly to
report it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from sortchannels.datatypes.channel_datatypes import ChannelSnapshot, PositionEdit
from sortchannels.reconciliation.lock_registry import GuildLockRegistry
from sortchannels.reconciliation.ordering import compute_target_order
from sortchannels.util.logger import get_logger

logger = get_logger("reconciliation_handler")


class ChannelSource(Protocol):
    async def list_channels(self, guild_id: int) -> Sequence[ChannelSnapshot]:
        ...


class EditSink(Protocol):
    async def set_channel_position(self, channel_id: int, position: int) -> None:
        ...


class ReconcileOutcome(Enum):
    """How a reconciliation pass ended."""

    COMPLETED = "completed"
    ALREADY_IN_PROGRESS = "already_in_progress"
    FETCH_FAILED = "fetch_failed"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class EditFailure:
    """An edit the platform refused, with the exception it raised."""
    edit: PositionEdit
    error: Exception


@dataclass(slots=True)
class ReconcileResult:
    """Outcome of a single pass for one guild.

    Attributes:
        guild_id: Guild the pass ran for
        outcome: How the pass ended
        applied: Edits the platform accepted, in the order they were sent
        failures: Edits that raised, in the order they were sent
        error: Fetch error when outcome is FETCH_FAILED
    """
    guild_id: int
    outcome: ReconcileOutcome
    applied: List[PositionEdit] = field(default_factory=list)
    failures: List[EditFailure] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        """True when the pass ran to completion, even if some edits failed."""
        return self.outcome is ReconcileOutcome.COMPLETED

    @property
    def changed(self) -> bool:
        return bool(self.applied)


class ReconciliationHandler:
    """Runs reconciliation passes, at most one per guild at a time."""

    def __init__(self, lock_registry: GuildLockRegistry) -> None:
        self.lock_registry = lock_registry

    async def reconcile(
        self,
        guild_id: int,
        channel_source: ChannelSource,
        edit_sink: EditSink,
    ) -> ReconcileResult:
        """Bring ``guild_id``'s text channels into natural sort order.

        Args:
            guild_id: Guild to reconcile
            channel_source: Provides the live channel list
            edit_sink: Applies individual position changes

        Returns:
            ReconcileResult describing what happened
        """
        with self.lock_registry.hold(guild_id) as granted:
            if not granted:
                logger.debug("[RECONCILE] Guild %s already being sorted; skipping", guild_id)
                return ReconcileResult(guild_id, ReconcileOutcome.ALREADY_IN_PROGRESS)

            try:
                channels = await channel_source.list_channels(guild_id)
            except Exception as exc:
                logger.warning("[RECONCILE] Failed to fetch channels for guild %s: %s", guild_id, exc)
                return ReconcileResult(guild_id, ReconcileOutcome.FETCH_FAILED, error=exc)

            result = ReconcileResult(guild_id, ReconcileOutcome.COMPLETED)
            for edit in compute_target_order(channels):
                try:
                    await edit_sink.set_channel_position(edit.channel_id, edit.new_position)
                except Exception as exc:
                    logger.error(
                        "[RECONCILE] Failed to move channel %s (%s) in guild %s from %s to %s: %s",
                        edit.channel_id, edit.channel.name, guild_id,
                        edit.old_position, edit.new_position, exc,
                    )
                    result.failures.append(EditFailure(edit, exc))
                    continue
                result.applied.append(edit)

        if result.applied or result.failures:
            logger.info(
                "[RECONCILE] Guild %s sorted: %d moved, %d failed",
                guild_id, len(result.applied), len(result.failures),
            )
        else:
            logger.debug("[RECONCILE] Guild %s already in order; nothing to move", guild_id)
        return result
