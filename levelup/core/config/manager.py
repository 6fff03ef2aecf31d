"""
Balance configuration for the LevelUp engine.

Purpose
-------
Hold every gameplay tunable (reroll curve, unlock costs, slot gates, weekly
multiplier and eligibility, starter content, timer interval) behind one
dot-notation lookup, so services never hardcode balance numbers.

Resolution order (later wins):
1. Built-in defaults (`DEFAULT_BALANCE`)
2. Every `*.yaml` / `*.yml` file under the config directory, deep-merged
3. Explicit overrides passed to the constructor

Usage
-----
>>> config = ConfigManager.load()
>>> config.get("economy.class_unlock_cost")
200
>>> config.require("weekly.multiplier")
3
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional

import yaml

from levelup.core.config.config import Config
from levelup.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_BALANCE: Dict[str, Any] = {
    "economy": {
        "reroll_costs": [10, 25, 50, 100, 200, 400],
        "class_unlock_cost": 200,
        "slots": {
            "slot3": {"cost": 50, "level_requirement": 5},
            "slot4": {"cost": 100, "level_requirement": 10},
            "slot5": {"cost": 150, "level_requirement": 15},
        },
    },
    "weekly": {
        "multiplier": 3,
        "eligibility_level": 3,
        "eligible_class_count": 3,
        "bundle_size": 5,
        "weekly_template_picks": 1,
    },
    "player": {
        "starting_gold": 100,
        "starter_classes": ["Warrior", "Ranger", "Mage"],
        "default_class_order": [
            "Warrior",
            "Ranger",
            "Mage",
            "Bard",
            "Chef",
            "Sheep",
            "Weekly",
        ],
    },
    "maintenance": {
        "interval_seconds": 60,
    },
    "core": {
        "event": {
            "listener_timeout": {
                "critical_seconds": 5.0,
                "high_seconds": 5.0,
            },
        },
    },
}


class ConfigManager:
    """
    Read-only, layered balance configuration.

    Instances are cheap; the application context builds one at startup and
    shares it with every service through `BaseService.get_config`.
    """

    def __init__(
        self,
        values: Optional[Dict[str, Any]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._values: Dict[str, Any] = copy.deepcopy(DEFAULT_BALANCE)
        if values:
            self._deep_merge_dict(self._values, copy.deepcopy(values))
        if overrides:
            self._deep_merge_dict(self._values, copy.deepcopy(overrides))

    # =========================================================================
    # Construction
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = value

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> Dict[str, Any]:
        """
        Load and deep-merge every YAML file under `config_dir`.

        A missing directory is not an error (built-in defaults apply). A file
        that fails to parse is.
        """
        merged: Dict[str, Any] = {}

        if not config_dir.exists():
            logger.info(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return merged

        yaml_files = sorted(config_dir.rglob("*.yaml")) + sorted(config_dir.rglob("*.yml"))

        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    str(yaml_file), f"invalid YAML: {exc}"
                ) from exc

            if isinstance(data, dict):
                cls._deep_merge_dict(merged, data)
                logger.debug(
                    "Loaded YAML config",
                    extra={"file": str(yaml_file.relative_to(config_dir))},
                )
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "root_type": type(data).__name__,
                    },
                )

        logger.info(
            "YAML configs loaded",
            extra={"yaml_file_count": len(yaml_files), "config_dir": str(config_dir)},
        )
        return merged

    @classmethod
    def load(
        cls,
        config_dir: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "ConfigManager":
        """Build a manager from defaults, YAML files and explicit overrides."""
        directory = Path(config_dir) if config_dir is not None else Path(Config.CONFIG_DIR)
        return cls(values=cls._load_yaml_configs(directory), overrides=overrides)

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Returns `default` when any segment of the path is missing.
        """
        value: Any = self._values
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value if value is not None else default

    def require(self, key: str) -> Any:
        """Like `get`, but raise `ConfigurationError` when the key is missing."""
        value = self.get(key)
        if value is None:
            raise ConfigurationError(key, f"Required configuration key '{key}' is missing")
        return value

    def get_all_keys(self) -> List[str]:
        """Return the top-level configuration sections."""
        return sorted(self._values.keys())

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)
