"""
Static environment configuration for the LevelUp engine.

Purpose
-------
Load process-level settings (environment, logging, storage location and the
maintenance timer) from environment variables, with `.env` support through
python-dotenv. Balance numbers do not live here; they belong to
`ConfigManager`, which reads YAML.

Responsibilities
----------------
- Typed, bounds-checked accessors that fall back to the default and warn on
  malformed values instead of crashing at import time.
- Environment checks (`is_production()`, `is_testing()`...).
- `load()` can be called again to pick up a changed environment (tests).

Usage
-----
>>> from levelup.core.config.config import Config
>>> Config.DATABASE_URL
'sqlite+aiosqlite:///levelup.db'
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class Config:
    """
    Environment-driven configuration, exposed as class attributes.

    All values have safe defaults so the engine runs with no environment at
    all (local single-user SQLite file in the working directory).
    """

    # =========================================================================
    # Environment
    # =========================================================================

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False

    # =========================================================================
    # Directories
    # =========================================================================

    PROJECT_ROOT: Path = Path.cwd()
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    CONFIG_DIR: Path = PROJECT_ROOT / "config"

    # =========================================================================
    # Storage
    # =========================================================================

    DATABASE_URL: str = "sqlite+aiosqlite:///levelup.db"
    DATABASE_ECHO: bool = False

    # =========================================================================
    # Maintenance
    # =========================================================================

    MAINTENANCE_INTERVAL_SECONDS: int = 60

    # =========================================================================
    # Parsing helpers
    # =========================================================================

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """Parse an integer env var, falling back to `default` when invalid or out of bounds."""
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        try:
            value = int(raw_value)
        except ValueError:
            logger.warning(
                f"{key}='{raw_value}' is not a valid integer, using default {default}"
            )
            return default

        if min_val is not None and value < min_val:
            logger.warning(f"{key}={value} is below minimum {min_val}, using default {default}")
            return default
        if max_val is not None and value > max_val:
            logger.warning(f"{key}={value} exceeds maximum {max_val}, using default {default}")
            return default
        return value

    @classmethod
    def _safe_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """
        Parse a boolean env var.

        Recognizes true/false, yes/no, 1/0, on/off (case-insensitive).
        """
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        normalized = raw_value.lower().strip()
        if normalized in {"true", "yes", "1", "on"}:
            return True
        if normalized in {"false", "no", "0", "off"}:
            return False

        logger.warning(f"{key}='{raw_value}' is not a valid boolean, using default {default}")
        return default

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        value = os.getenv(key, default)
        return value if value else default

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """Load all configuration from environment variables."""
        cls.ENVIRONMENT = cls._safe_str("ENVIRONMENT", "development").lower()

        level = cls._safe_str("LOG_LEVEL", "INFO").upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            logger.warning(f"Invalid LOG_LEVEL '{level}', using INFO")
            level = "INFO"
        cls.LOG_LEVEL = level
        cls.LOG_JSON = cls._safe_bool("LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._safe_bool("LOG_COLORS", True))
        cls.LOG_TO_FILE = bool(cls._safe_bool("LOG_TO_FILE", False))

        cls.LOGS_DIR = Path(cls._safe_str("LOGS_DIR", str(cls.PROJECT_ROOT / "logs")))
        cls.CONFIG_DIR = Path(cls._safe_str("CONFIG_DIR", str(cls.PROJECT_ROOT / "config")))

        cls.DATABASE_URL = cls._safe_str("DATABASE_URL", "sqlite+aiosqlite:///levelup.db")
        cls.DATABASE_ECHO = bool(cls._safe_bool("DATABASE_ECHO", False))

        cls.MAINTENANCE_INTERVAL_SECONDS = cls._safe_int(
            "MAINTENANCE_INTERVAL_SECONDS", 60, min_val=1, max_val=86_400
        )

    # =========================================================================
    # Environment checks
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == "production"

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == "development"

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == "testing"

    @classmethod
    def get_config_summary(cls) -> dict:
        """Non-secret settings snapshot for the startup log line."""
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "database_scheme": cls.DATABASE_URL.split(":", 1)[0],
            "config_dir": str(cls.CONFIG_DIR),
            "maintenance_interval_seconds": cls.MAINTENANCE_INTERVAL_SECONDS,
        }


Config.load()
