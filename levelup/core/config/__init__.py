"""Configuration: environment settings (`Config`) and balance values (`ConfigManager`)."""

from levelup.core.config.config import Config
from levelup.core.config.manager import DEFAULT_BALANCE, ConfigManager

__all__ = ["Config", "ConfigManager", "DEFAULT_BALANCE"]
