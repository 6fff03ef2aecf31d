"""Unit tests for the layered balance configuration."""

import pytest

from levelup.core.config.manager import DEFAULT_BALANCE, ConfigManager
from levelup.core.exceptions import ConfigurationError


@pytest.mark.unit
class TestDefaults:
    def test_builtin_balance(self):
        config = ConfigManager()

        assert config.get("economy.reroll_costs") == [10, 25, 50, 100, 200, 400]
        assert config.get("economy.class_unlock_cost") == 200
        assert config.get("economy.slots.slot4.level_requirement") == 10
        assert config.get("weekly.multiplier") == 3
        assert config.get("player.starter_classes") == ["Warrior", "Ranger", "Mage"]

    def test_missing_key_returns_default(self):
        config = ConfigManager()

        assert config.get("weekly.nope") is None
        assert config.get("weekly.nope", 7) == 7
        assert config.get("economy.reroll_costs.deeper", "x") == "x"

    def test_require_missing_raises(self):
        with pytest.raises(ConfigurationError):
            ConfigManager().require("economy.missing")

    def test_defaults_not_mutated_by_instances(self):
        config = ConfigManager(overrides={"weekly": {"multiplier": 5}})

        assert config.get("weekly.multiplier") == 5
        assert DEFAULT_BALANCE["weekly"]["multiplier"] == 3


@pytest.mark.unit
class TestLayering:
    """Defaults < YAML files < explicit overrides."""

    def test_overrides_deep_merge(self):
        config = ConfigManager(overrides={"economy": {"slots": {"slot3": {"cost": 75}}}})

        assert config.get("economy.slots.slot3.cost") == 75
        assert config.get("economy.slots.slot3.level_requirement") == 5
        assert config.get("economy.class_unlock_cost") == 200

    def test_yaml_directory_merged(self, tmp_path):
        # Arrange
        (tmp_path / "balance.yaml").write_text(
            "weekly:\n  multiplier: 4\neconomy:\n  class_unlock_cost: 150\n",
            encoding="utf-8",
        )

        # Act
        config = ConfigManager.load(config_dir=tmp_path, overrides={"weekly": {"multiplier": 6}})

        # Assert
        assert config.get("economy.class_unlock_cost") == 150
        assert config.get("weekly.multiplier") == 6
        assert config.get("weekly.bundle_size") == 5

    def test_missing_directory_uses_defaults(self, tmp_path):
        config = ConfigManager.load(config_dir=tmp_path / "absent")

        assert config.as_dict() == DEFAULT_BALANCE

    def test_invalid_yaml_raises(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("weekly: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigManager.load(config_dir=tmp_path)

    def test_non_mapping_yaml_ignored(self, tmp_path):
        (tmp_path / "list.yaml").write_text("- 1\n- 2\n", encoding="utf-8")

        config = ConfigManager.load(config_dir=tmp_path)

        assert config.get("weekly.multiplier") == 3
