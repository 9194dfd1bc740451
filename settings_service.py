"""Centralized settings loader for the application.

Infrastructure-level module: must not import from services/, repositories/,
config.py, or logging_config.py to avoid circular imports.
"""

import tomllib
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

SETTINGS_PATH = Path(__file__).resolve().parent / "settings.toml"

_cached_settings: dict | None = None


def _load_settings(settings_path: Path = SETTINGS_PATH) -> dict:
    """Load and cache settings from the TOML file."""
    global _cached_settings
    if _cached_settings is not None:
        return _cached_settings
    try:
        with open(settings_path, "rb") as f:
            _cached_settings = tomllib.load(f)
            return _cached_settings
    except Exception as e:
        logger.error("Failed to load settings from %s: %s", settings_path, e)
        raise


def reload_settings(settings_path: Path = SETTINGS_PATH) -> dict:
    """Drop the cached settings and read the file again."""
    global _cached_settings
    _cached_settings = None
    return _load_settings(settings_path)


class SettingsService:
    """Read-only accessor for application settings.

    Settings are cached at module level after the first read.
    """

    def __init__(self, settings_path: str | Path = SETTINGS_PATH):
        self.settings = _load_settings(Path(settings_path))

    @property
    def settings_dict(self) -> dict:
        return self.settings

    @property
    def log_level(self) -> str:
        return self.settings["env"]["log_level"]

    @property
    def env(self) -> str:
        return self.settings["env"]["env"]

    @property
    def db_path(self) -> str:
        return self.settings["db"]["path"]

    @property
    def default_quantities(self) -> tuple[int, ...]:
        return tuple(self.settings["pricing"]["default_quantities"])

    @property
    def default_rounding(self) -> int:
        return int(self.settings["pricing"]["rounding"])

    @property
    def default_master_markup(self) -> float:
        return float(self.settings["pricing"]["master_markup"])

    @property
    def tax_rate(self) -> float:
        return float(self.settings["invoice"]["tax_rate"])

    @property
    def payment_days(self) -> int:
        return int(self.settings["invoice"]["payment_days"])

    @property
    def company(self) -> dict:
        return dict(self.settings["invoice"]["company"])

    @property
    def storage(self) -> dict:
        return dict(self.settings["storage"])
