"""Tests for configuration manager."""

import tempfile
from datetime import timezone
from pathlib import Path

import pytest  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]

from timely.core.config import ConfigManager


@pytest.fixture
def temp_config_path():
    """Create a temporary config file path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "config.yml"


class TestConfigManager:
    """Test ConfigManager."""

    def test_initialization_creates_default_config(self, temp_config_path: Path) -> None:
        """Test that initialization creates default configuration."""
        assert not temp_config_path.exists()

        config = ConfigManager(temp_config_path)

        assert temp_config_path.exists()
        assert config.get("version") == "1.0"
        assert config.get("api.base_url") == "https://timely.edu.netlor.fr/api"
        assert config.get("api.key") is None
        assert config.get("tracking.refetch_after_update") is True
        assert config.get("tracking.guard_in_flight") is False
        assert config.get("advanced.log_level") == "WARNING"

    def test_load_existing_config(self, temp_config_path: Path) -> None:
        """Test loading existing configuration merged over defaults."""
        config_data = {
            "version": "1.0",
            "api": {"base_url": "https://timely.example.test/api", "key": "abc"},
        }
        with open(temp_config_path, "w") as f:
            yaml.dump(config_data, f)

        config = ConfigManager(temp_config_path)

        assert config.get("api.base_url") == "https://timely.example.test/api"
        assert config.get("api.key") == "abc"
        # Defaults still present
        assert config.get("api.timeout") == 30
        assert config.get("general.timezone") == "UTC"

    def test_get_nonexistent_key_returns_default(self, temp_config_path: Path) -> None:
        """Test getting nonexistent key returns default."""
        config = ConfigManager(temp_config_path)

        assert config.get("nonexistent.key") is None
        assert config.get("nonexistent.key", "default") == "default"
        assert config.get("api.timeout.deeper", 42) == 42

    def test_set_value_persists(self, temp_config_path: Path) -> None:
        """Test setting configuration values."""
        config = ConfigManager(temp_config_path)

        config.set("api.timeout", 10)

        assert config.get("api.timeout") == 10
        assert ConfigManager(temp_config_path).get("api.timeout") == 10

    def test_set_creates_missing_keys(self, temp_config_path: Path) -> None:
        """Test that set creates missing intermediate keys."""
        config = ConfigManager(temp_config_path)

        config.set("custom.nested.value", "test")

        assert config.get("custom.nested.value") == "test"

    def test_set_invalid_value_raises_and_keeps_previous(self, temp_config_path: Path) -> None:
        """Test that an invalid value is rejected and not kept."""
        config = ConfigManager(temp_config_path)

        with pytest.raises(ValueError, match="Invalid configuration"):
            config.set("api.timeout", 0)

        assert config.get("api.timeout") == 30
        assert config.validate() is True

    def test_base_url_must_be_http(self, temp_config_path: Path) -> None:
        """Test base URL validation."""
        config = ConfigManager(temp_config_path)

        with pytest.raises(ValueError):
            config.set("api.base_url", "timely.example.test")

    def test_log_level_validation(self, temp_config_path: Path) -> None:
        """Test log_level enum validation."""
        config = ConfigManager(temp_config_path)

        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            config.set("advanced.log_level", level)
            assert config.get("advanced.log_level") == level

        with pytest.raises(ValueError):
            config.set("advanced.log_level", "TRACE")

    def test_reset_to_defaults(self, temp_config_path: Path) -> None:
        """Test resetting configuration to defaults."""
        config = ConfigManager(temp_config_path)
        config.set("tracking.guard_in_flight", True)

        config.reset()

        assert config.get("tracking.guard_in_flight") is False

    def test_to_dict_is_a_copy(self, temp_config_path: Path) -> None:
        """Test converting config to dictionary."""
        config = ConfigManager(temp_config_path)

        config_dict = config.to_dict()
        config_dict["version"] = "9.9"

        assert config.get("version") == "1.0"

    def test_get_all_keys(self, temp_config_path: Path) -> None:
        """Test getting all configuration keys."""
        keys = ConfigManager(temp_config_path).get_all_keys()

        assert "version" in keys
        assert "api.key" in keys
        assert "general.timezone" in keys
        assert "tracking.refetch_after_update" in keys

    def test_corrupted_config_creates_backup(self, temp_config_path: Path) -> None:
        """Test that corrupted config is backed up and defaults used."""
        with open(temp_config_path, "w") as f:
            yaml.dump({"version": "1.0", "api": {"timeout": -1}}, f)

        backup_path = temp_config_path.with_suffix(".yml.backup")

        with pytest.raises(ValueError, match="Config validation failed"):
            ConfigManager(temp_config_path)

        assert backup_path.exists()
        with open(temp_config_path) as f:
            assert yaml.safe_load(f)["api"]["timeout"] == 30

    def test_unknown_timezone_is_invalid(self, temp_config_path: Path) -> None:
        """Test that a zone name must exist."""
        config = ConfigManager(temp_config_path)

        with pytest.raises(ValueError, match="unknown timezone"):
            config.set("general.timezone", "Mars/Olympus_Mons")

        assert config.get("general.timezone") == "UTC"


class TestTypedAccessors:
    """Test typed accessors."""

    def test_utc_timezone(self, temp_config_path: Path) -> None:
        """Test that UTC maps to the fixed UTC zone."""
        assert ConfigManager(temp_config_path).timezone() is timezone.utc

    def test_named_timezone(self, temp_config_path: Path) -> None:
        """Test that a named zone is loaded."""
        config = ConfigManager(temp_config_path)
        config.set("general.timezone", "Europe/Paris")

        assert str(config.timezone()) == "Europe/Paris"

    def test_api_key_from_config(
        self, temp_config_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the configured key."""
        monkeypatch.delenv("TIMELY_API_KEY", raising=False)
        config = ConfigManager(temp_config_path)
        config.set("api.key", "from-config")

        assert config.api_key() == "from-config"

    def test_api_key_env_overrides(
        self, temp_config_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that the environment variable wins."""
        monkeypatch.setenv("TIMELY_API_KEY", "from-env")
        config = ConfigManager(temp_config_path)
        config.set("api.key", "from-config")

        assert config.api_key() == "from-env"
