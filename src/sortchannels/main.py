"""
sort-channels Discord bot
=========================

Keeps every guild's text channels in natural sort order and answers a small
set of prefix commands (``ping``, ``sort``, ``prefix``, ``config``).
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. SORT_CHANNELS_HOME environment variable, if set.
    2. If running frozen (PyInstaller, Nuitka), the executable's directory.
    3. Otherwise the repository root, two levels above this package.
    """
    if env_home := os.getenv("SORT_CHANNELS_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from sortchannels.bot.dispatcher import EventDispatcher
from sortchannels.configuration.app_configuration import AppConfig, CONFIG_PATH
from sortchannels.database.database import Database
from sortchannels.errors import StoreError
from sortchannels.gateway.discord_gateway import DiscordGateway
from sortchannels.reconciliation.handler import ReconciliationHandler
from sortchannels.reconciliation.lock_registry import GuildLockRegistry
from sortchannels.services.guild_config_service import GuildConfigService
from sortchannels.services.prefix_cache import PrefixCache
from sortchannels.util.logger import configure_level, get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load ``.env`` and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for guild/channel events and reading command messages."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.message_content = True
    return intents


def create_bot(config: AppConfig, database: Database, prefix_cache: PrefixCache) -> discord.Bot:
    """Instantiate the Discord bot, wire the engine together and register the cogs."""
    from sortchannels.bot.cogs import sorting_listener

    bot = discord.Bot(intents=build_intents())
    gateway = DiscordGateway(bot, request_timeout=config.request_timeout)
    dispatcher = EventDispatcher(
        handler=ReconciliationHandler(GuildLockRegistry()),
        prefix_cache=prefix_cache,
        guild_configs=GuildConfigService(database.guilds),
        gateway=gateway,
    )
    sorting_listener.setup(bot, dispatcher)
    logger.info("All cogs loaded successfully.")
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Connect to Discord and run until the connection closes or is cancelled."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, database: Database) -> None:
    """Close the Discord connection and the database."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)

    try:
        await database.shutdown()
    except Exception as exc:
        logger.exception("Error during database shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap storage, the prefix cache and the bot, returning an exit code."""
    token = load_environment()
    config = AppConfig(CONFIG_PATH)
    configure_level(config.log_level)

    database = Database(config.database_path)
    try:
        logger.info("Initializing database...")
        await database.initialize()
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    prefix_cache = PrefixCache(database.guilds, default_prefix=config.default_prefix)
    try:
        await prefix_cache.load_all()
    except StoreError as exc:
        logger.critical("Failed to load guild prefixes: %s", exc)
        await database.shutdown()
        return 1

    try:
        bot = create_bot(config, database, prefix_cache)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await database.shutdown()
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, database)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting sort-channels…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
