"""
Single routing point for gateway events and text commands.

Every py-cord callback the bot listens to is turned into one of the variants in
:mod:`sortchannels.datatypes.events` and handed to :meth:`EventDispatcher.dispatch`.
This is also the reporting boundary: results from the reconciliation engine
and the services are logged here, and only command replies ever reach users.

Commands (case-sensitive, directly after the guild's prefix):
    ping              -> "Pong!"
    sort              -> reconcile the invoking guild now
    prefix            -> show the current prefix
    prefix <value>    -> change the prefix
    config            -> show the stored guild record
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional, Protocol, Sequence, Tuple

from sortchannels.datatypes.channel_datatypes import ChannelSnapshot
from sortchannels.datatypes.events import (
    ChannelCreated,
    ChannelUpdated,
    CommandMessage,
    CommandReply,
    GuildEvent,
    GuildObserved,
    GuildRenamed,
)
from sortchannels.errors import StoreError
from sortchannels.reconciliation.handler import ReconcileOutcome, ReconcileResult, ReconciliationHandler
from sortchannels.services.guild_config_service import GuildConfigService
from sortchannels.services.prefix_cache import PrefixCache
from sortchannels.util.logger import get_logger

logger = get_logger("dispatcher")

SORT_IN_PROGRESS_REPLY = "sorting already in action"
SORT_FETCH_FAILED_REPLY = "could not fetch channels, try again later"
PREFIX_FAILED_REPLY = "failed to update prefix"
CONFIG_FAILED_REPLY = "failed to load config"

GUILD_ONLY_COMMANDS = frozenset({"sort", "prefix", "config"})


class Gateway(Protocol):
    async def list_channels(self, guild_id: int) -> Sequence[ChannelSnapshot]:
        ...

    async def set_channel_position(self, channel_id: int, position: int) -> None:
        ...


CommandHandler = Callable[[CommandMessage, str], Awaitable[Optional[CommandReply]]]


def parse_command(text: str, prefix: str) -> Optional[Tuple[str, str]]:
    """Split ``text`` into ``(command, arguments)`` if it starts with ``prefix``.

    The command token must follow the prefix directly; ``". ping"`` is not a command.
    """
    if not prefix or not text.startswith(prefix):
        return None
    rest = text[len(prefix):]
    if not rest or rest[0].isspace():
        return None
    parts = rest.split(None, 1)
    return parts[0], (parts[1].strip() if len(parts) > 1 else "")


class EventDispatcher:
    """Routes :data:`GuildEvent` variants to the engine and services."""

    def __init__(
        self,
        handler: ReconciliationHandler,
        prefix_cache: PrefixCache,
        guild_configs: GuildConfigService,
        gateway: Gateway,
    ) -> None:
        self.handler = handler
        self.prefix_cache = prefix_cache
        self.guild_configs = guild_configs
        self.gateway = gateway
        self._commands: Dict[str, CommandHandler] = {
            "ping": self._cmd_ping,
            "sort": self._cmd_sort,
            "prefix": self._cmd_prefix,
            "config": self._cmd_config,
        }

    async def dispatch(self, event: GuildEvent) -> Optional[CommandReply]:
        """Handle one event. Returns a reply only for commands that produce one."""
        match event:
            case ChannelUpdated(guild_id=guild_id) | ChannelCreated(guild_id=guild_id):
                await self.reconcile(guild_id)
                return None
            case GuildObserved(guild_id=guild_id, name=name, is_new=is_new):
                if is_new:
                    logger.info("[DISPATCH] Joined guild %s (%s)", guild_id, name)
                await self.guild_configs.ensure_guild(guild_id, name)
                return None
            case GuildRenamed(guild_id=guild_id, name=name):
                await self.guild_configs.sync_guild_name(guild_id, name)
                return None
            case CommandMessage():
                return await self.handle_command(event)
            case _:
                logger.warning("[DISPATCH] Ignoring unknown event %r", event)
                return None

    async def reconcile(self, guild_id: int) -> ReconcileResult:
        """Run one pass for ``guild_id`` against the gateway and log how it went."""
        result = await self.handler.reconcile(guild_id, self.gateway, self.gateway)
        match result.outcome:
            case ReconcileOutcome.ALREADY_IN_PROGRESS:
                pass
            case ReconcileOutcome.FETCH_FAILED:
                logger.warning("[DISPATCH] Sort for guild %s aborted: %s", guild_id, result.error)
            case ReconcileOutcome.COMPLETED if result.failures:
                logger.warning(
                    "[DISPATCH] Sort for guild %s finished with %d failed edit(s)",
                    guild_id, len(result.failures),
                )
        return result

    async def handle_command(self, message: CommandMessage) -> Optional[CommandReply]:
        prefix = self.prefix_cache.resolve_prefix(message.guild_id)
        parsed = parse_command(message.text, prefix)
        if parsed is None:
            return None

        name, args = parsed
        command = self._commands.get(name)
        if command is None:
            return None
        if name in GUILD_ONLY_COMMANDS and message.guild_id is None:
            return None

        logger.debug("[DISPATCH] Command %r from %s in guild %s", name, message.author_id, message.guild_id)
        return await command(message, args)

    # ---------------------------------------------------------------
    # Commands
    # ---------------------------------------------------------------

    async def _cmd_ping(self, message: CommandMessage, args: str) -> Optional[CommandReply]:
        return CommandReply("Pong!")

    async def _cmd_sort(self, message: CommandMessage, args: str) -> Optional[CommandReply]:
        result = await self.reconcile(message.guild_id)
        match result.outcome:
            case ReconcileOutcome.ALREADY_IN_PROGRESS:
                return CommandReply(SORT_IN_PROGRESS_REPLY)
            case ReconcileOutcome.FETCH_FAILED:
                return CommandReply(SORT_FETCH_FAILED_REPLY)
        return None

    async def _cmd_prefix(self, message: CommandMessage, args: str) -> Optional[CommandReply]:
        guild_id = message.guild_id
        if not args:
            return CommandReply(f"current prefix is `{self.prefix_cache.resolve_prefix(guild_id)}`")

        try:
            prefix = await self.prefix_cache.set_prefix(guild_id, args)
        except ValueError as exc:
            return CommandReply(f"invalid prefix: {exc}")
        except StoreError as exc:
            logger.error("[DISPATCH] Failed to store prefix for guild %s: %s", guild_id, exc)
            return CommandReply(PREFIX_FAILED_REPLY)
        return CommandReply(f"prefix set to `{prefix}`")

    async def _cmd_config(self, message: CommandMessage, args: str) -> Optional[CommandReply]:
        guild_id = message.guild_id
        try:
            config = await self.guild_configs.get_config(guild_id)
        except StoreError as exc:
            logger.error("[DISPATCH] Failed to load config for guild %s: %s", guild_id, exc)
            return CommandReply(CONFIG_FAILED_REPLY)

        prefix = self.prefix_cache.resolve_prefix(guild_id)
        if config is None:
            return CommandReply(f"no stored config for this server; prefix is `{prefix}`")

        record = config.to_record(self.prefix_cache.default_prefix)
        lines = [
            f"name: {record['name'] or '-'}",
            f"prefix: `{prefix}`",
            f"always on top: {len(record['always_on_top'])} channel(s)",
            f"always on bottom: {len(record['always_on_bottom'])} channel(s)",
            f"ignored: {len(record['ignore'])} channel(s)",
        ]
        return CommandReply("\n".join(lines))
