"""Persistent preferences for FTP Browser.

AppSettings is stored as one JSON object. Files written by older or
newer versions load without errors: unknown keys are dropped and
values that fail validation fall back to their defaults.
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import List, Optional

from ftpbrowser.config.paths import get_settings_path
from ftpbrowser.utils.validators import validate_port, validate_timeout

logger = logging.getLogger("ftpbrowser.settings")

LOG_LEVEL_NAMES = ("debug", "info", "warning", "error")


@dataclass
class AppSettings:
    """User preferences and connection history."""

    # Prefilled into the connect form
    last_host: str = ""
    last_port: int = 21
    last_username: str = "anonymous"

    # Applied to every new connection
    timeout: float = 10
    passive_nat_workaround: bool = True

    # Serialized FtpBookmark dicts, newest first
    bookmarks: List[dict] = field(default_factory=list)

    log_level: str = "info"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        """
        Build settings from a decoded JSON object.

        Unknown keys are ignored; invalid values are replaced by defaults.

        Args:
            data: Mapping read from the settings file

        Returns:
            AppSettings instance
        """
        known = {f.name for f in fields(cls)}
        settings = cls(**{k: v for k, v in data.items() if k in known})
        settings._sanitize()
        return settings

    def _sanitize(self) -> None:
        defaults = AppSettings()
        if not validate_port(self.last_port)[0]:
            logger.warning(f"Ignoring invalid last_port {self.last_port!r}")
            self.last_port = defaults.last_port
        if not validate_timeout(self.timeout)[0]:
            logger.warning(f"Ignoring invalid timeout {self.timeout!r}")
            self.timeout = defaults.timeout
        if not isinstance(self.bookmarks, list):
            self.bookmarks = []
        if str(self.log_level).lower() not in LOG_LEVEL_NAMES:
            self.log_level = defaults.log_level


class SettingsManager:
    """Loads and saves AppSettings as a JSON file."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_path: Settings file, defaults to the per-user location
        """
        self._config_path = config_path or get_settings_path()
        self._settings: Optional[AppSettings] = None

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def settings(self) -> AppSettings:
        """Current settings, read from disk on first access."""
        if self._settings is None:
            self.load()
        return self._settings

    def load(self) -> AppSettings:
        """
        Read the settings file.

        A missing file gives defaults silently; an unreadable one gives
        defaults with a warning and is overwritten on the next save.
        """
        self._settings = AppSettings()
        if not self._config_path.exists():
            return self._settings

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise TypeError("settings file must hold a JSON object")
            self._settings = AppSettings.from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self._config_path}: {e}")

        return self._settings

    def save(self, settings: AppSettings) -> None:
        """
        Write settings to disk.

        The file is replaced atomically so a crash never leaves half a
        JSON document behind.
        """
        self._settings = settings
        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = self._config_path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)
        os.replace(tmp_path, self._config_path)

    def reset(self) -> AppSettings:
        """Delete the settings file and return to defaults."""
        self._settings = AppSettings()
        if self._config_path.exists():
            self._config_path.unlink()
        return self._settings

    def update(self, **kwargs) -> AppSettings:
        """
        Change some fields and save.

        Args:
            **kwargs: Field names and new values (unknown names are ignored)

        Returns:
            The updated settings
        """
        settings = self.settings
        known = {f.name for f in fields(AppSettings)}
        for key, value in kwargs.items():
            if key in known:
                setattr(settings, key, value)
        self.save(settings)
        return settings

    def remember_connection(self, host: str, port: int, username: str) -> None:
        """Record the last successful connection for the connect form."""
        self.update(last_host=host, last_port=port, last_username=username)
