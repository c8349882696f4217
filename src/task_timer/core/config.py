"""Configuration management for Task Timer."""

import copy
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

DEFAULT_CONFIG_PATH = Path.home() / ".task-timer" / "config.yml"


class ConfigManager:
    """Manage application configuration.

    The file holds three fixed sections (timer, display, advanced). Keys the
    schema does not know are rejected, both in the file and through set().
    """

    DEFAULT_CONFIG = {
        "version": "1.0",
        "timer": {
            "tick_interval": 1.0,
            "autostart": False,
        },
        "display": {
            "refresh_interval": 0.5,
            "confirm_delete": True,
            "show_groups": True,
        },
        "advanced": {
            "log_level": "INFO",
            "log_file": None,
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "timer": {
                "type": "object",
                "properties": {
                    "tick_interval": {
                        "type": "number",
                        "exclusiveMinimum": 0,
                        "maximum": 60,
                    },
                    "autostart": {"type": "boolean"},
                },
                "additionalProperties": False,
            },
            "display": {
                "type": "object",
                "properties": {
                    "refresh_interval": {"type": "number", "minimum": 0.1, "maximum": 60},
                    "confirm_delete": {"type": "boolean"},
                    "show_groups": {"type": "boolean"},
                },
                "additionalProperties": False,
            },
            "advanced": {
                "type": "object",
                "properties": {
                    "log_level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                    "log_file": {"type": ["string", "null"]},
                },
                "additionalProperties": False,
            },
        },
        "required": ["version"],
        "additionalProperties": False,
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Load the config file, writing the defaults if it does not exist yet.

        Args:
            config_path: Path to config file. Defaults to ~/.task-timer/config.yml

        Raises:
            ValueError: If the file fails validation. It is moved to
                config.yml.backup and the defaults are written in its place.
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config = self._defaults()

        if not self.config_path.exists():
            self.save()
            return

        with open(self.config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if isinstance(loaded, dict):
            _merge_into(self._config, loaded)
            error = self._check()
        else:
            error = "top level must be a mapping"

        if error is not None:
            backup_path = self.config_path.with_suffix(".yml.backup")
            self.config_path.replace(backup_path)
            self.reset()
            raise ValueError(
                f"Config validation failed, backed up to {backup_path}. "
                f"Using defaults. Error: {error}"
            )

    @classmethod
    def _defaults(cls) -> dict[str, Any]:
        return copy.deepcopy(cls.DEFAULT_CONFIG)

    def _check(self) -> Optional[str]:
        try:
            validate(instance=self._config, schema=self.CONFIG_SCHEMA)
        except ValidationError as e:
            return e.message
        return None

    def lookup(self, key: str) -> Any:
        """Return the value stored under a dot-notation key.

        A key set to null returns None.

        Raises:
            KeyError: If no such key exists
        """
        value: Any = self._config
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                raise KeyError(key)
            value = value[part]
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Example:
            >>> config.get('timer.tick_interval')
            1.0
            >>> config.get('nonexistent.key', 'default')
            'default'
        """
        try:
            return self.lookup(key)
        except KeyError:
            return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value and save the file.

        Raises:
            ValueError: If the key is unknown or the value is invalid. The
                previous configuration is kept.
        """
        *sections, name = key.split(".")
        updated = copy.deepcopy(self._config)
        target = updated
        for section in sections:
            if not isinstance(target.get(section), dict):
                raise ValueError(f"Invalid configuration: unknown key '{key}'")
            target = target[section]
        target[name] = value

        previous, self._config = self._config, updated
        error = self._check()
        if error is not None:
            self._config = previous
            raise ValueError(f"Invalid configuration: {error}")
        self.save()

    def save(self) -> None:
        """Write the configuration to its file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config, f, sort_keys=False)

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = self._defaults()
        self.save()

    def to_dict(self) -> dict[str, Any]:
        """Get a copy of the full configuration."""
        return copy.deepcopy(self._config)


def _merge_into(base: dict[str, Any], override: dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _merge_into(base[key], value)
        else:
            base[key] = value
