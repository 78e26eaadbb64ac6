"""Application configuration loaded from ``config/app_config.yml``."""

from sortchannels.configuration.app_configuration import AppConfig, CONFIG_PATH

__all__ = ["AppConfig", "CONFIG_PATH"]
