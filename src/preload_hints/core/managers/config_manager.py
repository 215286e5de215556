# src/preload_hints/core/managers/config_manager.py
import copy
import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from preload_hints.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

PRELOAD_SECTION = "preload"
# Option keys that hold a list of patterns; a single value set from the CLI is wrapped.
PATTERN_LIST_KEYS = ("fileWhitelist", "fileBlacklist")
TRUE_STRINGS = ("1", "true", "yes", "on")


class ConfigManager:
    """
    Singleton holding the effective settings of one run: the shipped
    settings.json plus any `--set` / `config set` overrides.

    Changes to the `preload` section are checked against PreloadOptions
    before they are stored, so a bad pattern or `as` value is reported
    where it is typed instead of when the first document is processed.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._config = {}
            cls._instance.reset()
        return cls._instance

    def get_all(self) -> Dict[str, Any]:
        return self._config

    def get_nested(self, key_path: str, default: Optional[Any] = None) -> Any:
        """Looks up a dotted key such as 'preload.rel'."""
        value: Any = self._config
        for key in key_path.split('.'):
            if not isinstance(value, dict):
                return default
            value = value.get(key)
        return default if value is None else value

    def set_nested(self, key_path: str, value: Any) -> bool:
        """
        Stores `value` under a dotted key, casting it to the type of the value
        it replaces. Returns False and leaves the configuration untouched when
        the key cannot hold a value or the resulting preload options are invalid.
        """
        keys = key_path.split('.')
        candidate = copy.deepcopy(self._config)
        d = candidate
        for key in keys[:-1]:
            d = d.setdefault(key, {})
            if not isinstance(d, dict):
                logger.error("Cannot set '%s': '%s' is not a section.", key_path, key)
                return False

        d[keys[-1]] = self._coerce(key_path, d.get(keys[-1]), value)

        if keys[0] == PRELOAD_SECTION and not self._valid_preload_section(candidate.get(PRELOAD_SECTION)):
            return False

        self._config = candidate
        logger.info("Configuration updated: %s = %s", key_path, d[keys[-1]])
        return True

    @staticmethod
    def _coerce(key_path: str, original: Any, value: Any) -> Any:
        if key_path.rsplit('.', 1)[-1] in PATTERN_LIST_KEYS and isinstance(value, str):
            return [value]
        if original is None or isinstance(original, (dict, list)) or not isinstance(value, str):
            return value
        if isinstance(original, bool):
            return value.strip().lower() in TRUE_STRINGS
        try:
            return type(original)(value)
        except (ValueError, TypeError):
            logger.warning("Could not cast '%s' to %s; storing as string.", key_path, type(original).__name__)
            return value

    @staticmethod
    def _valid_preload_section(section: Any) -> bool:
        # model.py reads this module at import time
        from preload_hints.model import PreloadOptions

        if not isinstance(section, dict):
            logger.error("The '%s' section must be an object, got %r.", PRELOAD_SECTION, section)
            return False
        try:
            PreloadOptions(**section)
        except ValidationError as e:
            logger.error("Rejected preload setting: %s", e)
            return False
        return True

    def reset(self) -> None:
        """Reloads the configuration from settings.json, dropping all overrides."""
        config_path = PathUtils.get_settings_file()
        if not config_path.exists():
            logger.warning("settings.json not found at %s. Using empty config.", config_path)
            self._config = {}
            return
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                self._config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load %s: %s", config_path, e)
            self._config = {}
            return
        logger.info("Configuration loaded from %s.", config_path)


# The global singleton instance shared by the plugin and the CLI.
config_manager = ConfigManager()
