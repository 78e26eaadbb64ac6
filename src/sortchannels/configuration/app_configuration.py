from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from sortchannels.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_PREFIX = "."
DEFAULT_DATABASE_PATH = "./data/sort_channels.db"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_LOG_LEVEL = "INFO"


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed properties with defaults, so a missing file or key never stops the
    bot from starting.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file, replace the in-memory cache and return it."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Current cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def default_prefix(self) -> str:
        """Command prefix for guilds without a stored one."""
        value = str(self._data.get("default_prefix") or "").strip()
        return value or DEFAULT_PREFIX

    @property
    def database_path(self) -> Path:
        """Location of the SQLite database file, resolved against the working directory."""
        value = self._section("database").get("path") or DEFAULT_DATABASE_PATH
        return Path(str(value)).resolve()

    @property
    def request_timeout(self) -> float:
        """Upper bound in seconds for one channel listing or channel edit."""
        value = self._section("gateway").get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid request_timeout_seconds %r; using default", value)
            return DEFAULT_REQUEST_TIMEOUT_SECONDS
        return timeout if timeout > 0 else DEFAULT_REQUEST_TIMEOUT_SECONDS

    @property
    def log_level(self) -> str:
        """Console log level name."""
        return str(self._section("logging").get("level") or DEFAULT_LOG_LEVEL).upper()
