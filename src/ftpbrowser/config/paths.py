"""Per-user file locations for FTP Browser.

Settings and logs live under one application directory. Setting
FTPBROWSER_HOME points it somewhere else, which portable installs and
test runs use to keep away from the real profile.
"""

import os
import sys
from pathlib import Path


APP_NAME = "FTPBrowser"

# Overrides the platform location when set
HOME_ENV_VAR = "FTPBROWSER_HOME"

SETTINGS_FILE_NAME = "settings.json"
LOG_FILE_NAME = "ftp-browser.log"


def _platform_base() -> Path:
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def get_app_data_dir() -> Path:
    """
    Directory holding everything FTP Browser writes, created on demand.

    Returns:
        $FTPBROWSER_HOME if set, else:
        - Windows: %APPDATA%/FTPBrowser
        - Linux: $XDG_CONFIG_HOME/FTPBrowser (~/.config/FTPBrowser)
        - macOS: ~/Library/Application Support/FTPBrowser
    """
    override = os.environ.get(HOME_ENV_VAR)
    app_dir = Path(override) if override else _platform_base() / APP_NAME
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_settings_path() -> Path:
    return get_app_data_dir() / SETTINGS_FILE_NAME


def get_log_file_path() -> Path:
    """Log file inside the ``logs`` subdirectory (created on demand)."""
    log_dir = get_app_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / LOG_FILE_NAME
