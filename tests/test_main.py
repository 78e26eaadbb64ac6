"""Tests for the startup sequence in sortchannels.main."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from sortchannels import main as main_module
from sortchannels.errors import StoreReadError


def test_load_environment_requires_token(monkeypatch):
    monkeypatch.setattr(main_module, "load_dotenv", lambda **kwargs: False)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit):
        main_module.load_environment()


def test_load_environment_returns_token(monkeypatch):
    monkeypatch.setattr(main_module, "load_dotenv", lambda **kwargs: False)
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "abc")

    assert main_module.load_environment() == "abc"


def test_build_intents_can_read_commands():
    intents = main_module.build_intents()
    assert intents.message_content
    assert intents.guilds


def test_resolve_base_dir_honours_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SORT_CHANNELS_HOME", str(tmp_path))
    assert main_module.resolve_base_dir() == tmp_path.resolve()


@pytest.fixture
def startup(monkeypatch, tmp_path):
    monkeypatch.setattr(main_module, "load_environment", lambda: "token")
    monkeypatch.setattr(main_module, "CONFIG_PATH", tmp_path / "missing.yml")

    database = SimpleNamespace(
        initialize=AsyncMock(),
        shutdown=AsyncMock(),
        guilds=SimpleNamespace(get_all_prefixes=AsyncMock(return_value={})),
    )
    monkeypatch.setattr(main_module, "Database", lambda path: database)
    return database


@pytest.mark.asyncio
async def test_async_main_fails_when_database_cannot_open(startup):
    startup.initialize.side_effect = OSError("read-only filesystem")
    assert await main_module.async_main() == 1


@pytest.mark.asyncio
async def test_async_main_fails_when_prefixes_cannot_load(startup, monkeypatch):
    startup.guilds.get_all_prefixes.side_effect = StoreReadError("corrupt")
    create_bot = AsyncMock()
    monkeypatch.setattr(main_module, "create_bot", create_bot)

    assert await main_module.async_main() == 1
    create_bot.assert_not_called()
    startup.shutdown.assert_awaited()


@pytest.mark.asyncio
async def test_async_main_runs_bot_and_shuts_down(startup, monkeypatch):
    bot = SimpleNamespace(is_closed=lambda: True)
    monkeypatch.setattr(main_module, "create_bot", lambda config, database, prefix_cache: bot)
    start_bot = AsyncMock()
    monkeypatch.setattr(main_module, "start_bot", start_bot)

    assert await main_module.async_main() == 0
    start_bot.assert_awaited_once_with(bot, "token")
    startup.shutdown.assert_awaited()
