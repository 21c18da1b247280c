"""Application wiring for FTP Browser.

Builds the logging setup, settings, session and command layer that a
GUI front end drives.
"""

from pathlib import Path
from typing import Optional

from ftpbrowser.commands import FTPCommands
from ftpbrowser.config.paths import get_log_file_path
from ftpbrowser.config.settings import SettingsManager
from ftpbrowser.ftp.session import FTPSession
from ftpbrowser.utils.events import EventSink, QueueEventSink
from ftpbrowser.utils.logging import level_for, setup_logging


def create_app(
    sink: Optional[EventSink] = None,
    config_path: Optional[Path] = None,
    log_file: Optional[Path] = None,
    console: bool = True
) -> FTPCommands:
    """
    Create the command layer with its session, settings and logging.

    Args:
        sink: Event receiver (default: a QueueEventSink for GUI polling)
        config_path: Settings file (default: platform app-data location)
        log_file: Log file (default: platform log location)
        console: Whether to also log to stdout

    Returns:
        Ready-to-use FTPCommands
    """
    settings_manager = SettingsManager(config_path)
    settings = settings_manager.load()

    logger = setup_logging(
        level=level_for(settings.log_level),
        log_file=log_file or get_log_file_path(),
        console=console,
    )
    logger.info("Application starting")

    return FTPCommands(
        session=FTPSession(),
        sink=sink or QueueEventSink(),
        settings_manager=settings_manager,
    )
