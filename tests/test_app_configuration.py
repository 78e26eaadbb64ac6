"""Tests for AppConfig."""

from pathlib import Path

from sortchannels.configuration.app_configuration import (
    DEFAULT_DATABASE_PATH,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    AppConfig,
)


def write_config(tmp_path, body):
    path = tmp_path / "app_config.yml"
    path.write_text(body, encoding="utf-8")
    return path


def test_missing_file_uses_defaults(tmp_path):
    config = AppConfig(tmp_path / "missing.yml")

    assert config.data == {}
    assert config.default_prefix == "."
    assert config.database_path == Path(DEFAULT_DATABASE_PATH).resolve()
    assert config.request_timeout == DEFAULT_REQUEST_TIMEOUT_SECONDS
    assert config.log_level == "INFO"


def test_values_are_read(tmp_path):
    path = write_config(
        tmp_path,
        """
default_prefix: "!"
database:
  path: "{db}"
gateway:
  request_timeout_seconds: 5
logging:
  level: debug
""".format(db=tmp_path / "bot.db"),
    )
    config = AppConfig(path)

    assert config.default_prefix == "!"
    assert config.database_path == (tmp_path / "bot.db").resolve()
    assert config.request_timeout == 5.0
    assert config.log_level == "DEBUG"


def test_invalid_values_fall_back(tmp_path):
    path = write_config(
        tmp_path,
        """
default_prefix: "   "
gateway:
  request_timeout_seconds: soon
database: not-a-mapping
""",
    )
    config = AppConfig(path)

    assert config.default_prefix == "."
    assert config.request_timeout == DEFAULT_REQUEST_TIMEOUT_SECONDS
    assert config.database_path == Path(DEFAULT_DATABASE_PATH).resolve()


def test_non_mapping_document_is_ignored(tmp_path):
    config = AppConfig(write_config(tmp_path, "- just\n- a list\n"))
    assert config.data == {}


def test_reload_picks_up_changes(tmp_path):
    path = write_config(tmp_path, 'default_prefix: "!"\n')
    config = AppConfig(path)
    assert config.get("default_prefix") == "!"

    path.write_text('default_prefix: "?"\n', encoding="utf-8")
    config.reload()
    assert config.default_prefix == "?"
