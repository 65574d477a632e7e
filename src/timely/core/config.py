"""Configuration management for Timely."""

import copy
import os
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

API_KEY_ENV = "TIMELY_API_KEY"


class ConfigManager:
    """Manage application configuration."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "general": {
            "timezone": "UTC",
            "date_format": "%d/%m/%Y",
        },
        "api": {
            "base_url": "https://timely.edu.netlor.fr/api",
            "key": None,
            "timeout": 30,
        },
        "tracking": {
            "refetch_after_update": True,
            "guard_in_flight": False,
        },
        "advanced": {
            "log_level": "WARNING",
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "general": {
                "type": "object",
                "properties": {
                    "timezone": {"type": "string"},
                    "date_format": {"type": "string"},
                },
            },
            "api": {
                "type": "object",
                "properties": {
                    "base_url": {"type": "string", "pattern": "^https?://"},
                    "key": {"type": ["string", "null"]},
                    "timeout": {"type": "number", "exclusiveMinimum": 0, "maximum": 600},
                },
            },
            "tracking": {
                "type": "object",
                "properties": {
                    "refetch_after_update": {"type": "boolean"},
                    "guard_in_flight": {"type": "boolean"},
                },
            },
            "advanced": {
                "type": "object",
                "properties": {
                    "log_level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. Defaults to ~/.timely/config.yml
        """
        if config_path is None:
            config_path = Path.home() / ".timely" / "config.yml"
        self.config_path = config_path
        self._config: dict[str, Any] = {}
        self._load_or_create()

    def _load_or_create(self) -> None:
        """Load the config file, writing defaults first if there is none."""
        if not self.config_path.exists():
            self._config = copy.deepcopy(self.DEFAULT_CONFIG)
            self.save()
            return

        with open(self.config_path, encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        _deep_merge(self._config, user_config)

        try:
            self.validate()
        except ValueError as e:
            # Keep the broken file around and fall back to defaults
            backup_path = self.config_path.with_suffix(".yml.backup")
            self.config_path.rename(backup_path)
            self.reset()
            raise ValueError(
                f"Config validation failed, backed up to {backup_path}. "
                f"Using defaults. Error: {e}"
            )

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Dotted key, e.g. 'api.base_url'
            default: Returned when the key is missing or null

        Example:
            >>> config.get('tracking.refetch_after_update')
            True
        """
        value: Any = self._config
        for part in key.split("."):
            if not isinstance(value, dict):
                return default
            value = value.get(part)
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation and save.

        Raises:
            ValueError: If configuration is invalid after setting. The
                previous value is kept.
        """
        previous = copy.deepcopy(self._config)
        *parents, leaf = key.split(".")
        section = self._config
        for part in parents:
            section = section.setdefault(part, {})
        section[leaf] = value
        try:
            self.validate()
        except ValueError:
            self._config = previous
            raise
        self.save()

    def validate(self) -> bool:
        """Validate configuration against schema.

        Raises:
            ValueError: If configuration is invalid
        """
        try:
            validate(instance=self._config, schema=self.CONFIG_SCHEMA)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}")
        self.timezone()
        return True

    def save(self) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        """Return a copy of the full configuration."""
        return copy.deepcopy(self._config)

    def get_all_keys(self, prefix: str = "") -> list[str]:
        """List every leaf key in dot notation, e.g. ['version', 'general.timezone', ...]."""
        section = self.get(prefix, {}) if prefix else self._config
        keys: list[str] = []
        if isinstance(section, dict):
            for key, value in section.items():
                full_key = f"{prefix}.{key}" if prefix else key
                if isinstance(value, dict):
                    keys.extend(self.get_all_keys(full_key))
                else:
                    keys.append(full_key)
        return keys

    # Typed accessors

    def api_key(self) -> Optional[str]:
        """API key from $TIMELY_API_KEY, falling back to api.key."""
        return os.environ.get(API_KEY_ENV) or self.get("api.key")

    def timezone(self) -> tzinfo:
        """Zone used to decide which calendar day an entry belongs to.

        Raises:
            ValueError: If general.timezone is not a known zone
        """
        name = self.get("general.timezone", "UTC")
        if name.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Invalid configuration: unknown timezone '{name}'")


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Merge override into base in place, descending into nested sections."""
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
