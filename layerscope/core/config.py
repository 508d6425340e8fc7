"""Configuration management for Layerscope."""
from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "layerscope"
DEFAULTS_PATH = Path(__file__).resolve().parent.parent / "settings" / "defaults.yaml"
USER_SETTINGS_PATH = CONFIG_DIR / "settings.yaml"

logger = logging.getLogger(__name__)


class ConfigManager:
    """Loads default and user configuration and provides helpers to query values."""

    def __init__(self, user_settings_path: Path | None = None) -> None:
        self.user_settings_path = Path(user_settings_path) if user_settings_path else USER_SETTINGS_PATH
        self.defaults = self._load_yaml(DEFAULTS_PATH)
        if self.user_settings_path.exists():
            self.user_settings = self._load_yaml(self.user_settings_path)
        else:
            self.user_settings = {}
        self.settings = self._deep_merge(self.defaults, self.user_settings)

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = yaml.safe_load(handle) or {}
            except yaml.YAMLError:
                logger.warning("Ignoring unreadable settings file %s", path, exc_info=True)
                return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: top level is not a mapping", path)
            return {}
        return data

    def get(self, key: str, default: Any | None = None) -> Any:
        return self.settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.settings[key] = value

    def section(self, key: str) -> dict[str, Any]:
        """Return a copy of a settings section, or an empty dict when absent."""

        value = self.settings.get(key)
        return copy.deepcopy(value) if isinstance(value, dict) else {}

    def save(self) -> None:
        self.user_settings_path.parent.mkdir(parents=True, exist_ok=True)
        with self.user_settings_path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(self.settings, handle, sort_keys=True)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        merged: dict[str, Any] = copy.deepcopy(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged


def settings_value(settings: dict[str, Any], key: str, default: Any, kind: type) -> Any:
    """Read ``key`` from a settings mapping, coercing to ``kind`` or falling back."""

    if key not in settings:
        return default
    try:
        return kind(settings[key])
    except (TypeError, ValueError):
        logger.warning("Invalid value %r for setting %s; using %r", settings[key], key, default)
        return default
