"""Command boundary between the GUI and the FTP core.

FTPCommands is what a window calls. Every failure leaves here as a
CommandError carrying a readable message, so the GUI only has to show
it; nothing below this layer can take the application down.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from ftpbrowser.config.settings import SettingsManager
from ftpbrowser.ftp.copier import RemoteTreeItem
from ftpbrowser.ftp.exceptions import FTPError
from ftpbrowser.ftp.session import FTPConnectionConfig, FTPSession, ListResult
from ftpbrowser.utils.events import EventSink
from ftpbrowser.utils.logging import level_for
from ftpbrowser.utils.threading import TaskResult, ThreadedTask
from ftpbrowser.utils.validators import validate_ftp_path

logger = logging.getLogger("ftpbrowser.commands")


class CommandError(Exception):
    """A command failed; ``message`` is ready to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FTPCommands:
    """GUI-facing commands over a single FTPSession."""

    def __init__(
        self,
        session: FTPSession,
        sink: EventSink,
        settings_manager: Optional[SettingsManager] = None
    ):
        """
        Initialize the command layer.

        Args:
            session: Session shared by all commands
            sink: Receiver of log and transfer events
            settings_manager: Optional settings used for connection defaults
        """
        self._session = session
        self._sink = sink
        self._settings_manager = settings_manager

    @property
    def session(self) -> FTPSession:
        """The underlying session."""
        return self._session

    def _log(self, level: str, message: str) -> None:
        logger.log(level_for(level), message)
        self._sink.log(level, message)

    @contextmanager
    def _command(self) -> Iterator[None]:
        try:
            yield
        except FTPError as e:
            message = str(e)
            self._log("error", message)
            raise CommandError(message) from e

    def _check_path(self, path: str) -> None:
        is_valid, error = validate_ftp_path(path)
        if not is_valid:
            self._log("error", error)
            raise CommandError(error)

    def _check_transfer_path(self, transfer_id: str, path: str) -> None:
        # A rejected transfer still gets its one outcome event
        is_valid, error = validate_ftp_path(path)
        if not is_valid:
            self._sink.transfer_error(transfer_id, error)
            self._log("error", error)
            raise CommandError(error)

    def connect(self, host: str, port: int, username: str, password: str) -> str:
        """
        Connect and log in.

        Returns:
            Remote working directory after login
        """
        options = {}
        if self._settings_manager is not None:
            settings = self._settings_manager.settings
            options["timeout"] = settings.timeout
            options["passive_nat_workaround"] = settings.passive_nat_workaround

        try:
            config = FTPConnectionConfig(
                host=host,
                port=port,
                username=username or "anonymous",
                **options
            )
        except ValueError as e:
            self._log("error", str(e))
            raise CommandError(str(e)) from e

        self._log("info", f"Connecting to {config.host}:{config.port}")
        with self._command():
            cwd = self._session.connect(config, password)
        self._log("success", "Connected")
        self._remember_connection(config)
        return cwd

    def _remember_connection(self, config: FTPConnectionConfig) -> None:
        if self._settings_manager is None:
            return
        try:
            self._settings_manager.remember_connection(
                config.host, config.port, config.username
            )
        except OSError as e:
            logger.warning(f"Could not save connection settings: {e}")

    def disconnect(self) -> None:
        """Close the session; safe to call when not connected."""
        self._session.disconnect()
        self._log("info", "Disconnected")

    def list_dir(self, path: Optional[str] = None) -> ListResult:
        """List ``path`` (or the current directory) and make it current."""
        if path is not None and path.strip():
            self._check_path(path)
        with self._command():
            result = self._session.list(path)
        self._log("info", f"Listed {len(result.entries)} items")
        return result

    def list_remote_files_recursive(self, path: str) -> List[RemoteTreeItem]:
        """Every entry below ``path`` with paths relative to it."""
        self._check_path(path)
        with self._command():
            return self._session.list_recursive(path)

    def create_dir(self, path: str) -> None:
        self._check_path(path)
        with self._command():
            self._session.mkdir(path)
        self._log("success", "Directory created")

    def create_remote_file(self, path: str) -> None:
        self._check_path(path)
        with self._command():
            self._session.create_empty_file(path)
        self._log("success", "Remote file created")

    def delete_path(self, path: str, is_dir: bool) -> None:
        self._check_path(path)
        with self._command():
            self._session.delete(path, is_dir)
        self._log("success", "Remote item removed")

    def rename_path(self, source: str, target: str) -> None:
        self._check_path(source)
        self._check_path(target)
        with self._command():
            self._session.rename(source, target)
        self._log("success", "Remote item renamed")

    def copy_remote(self, source: str, target: str, is_dir: bool) -> None:
        self._check_path(source)
        self._check_path(target)
        with self._command():
            self._session.copy(source, target, is_dir)
        self._log("success", "Remote copy completed")

    def download_file(
        self,
        transfer_id: str,
        remote_path: str,
        local_path: Union[str, Path]
    ) -> int:
        """
        Download a file; progress and the outcome go to the event sink.

        Returns:
            Number of bytes transferred
        """
        self._check_transfer_path(transfer_id, remote_path)
        with self._command():
            count = self._session.download(transfer_id, remote_path, local_path, self._sink)
        self._log("success", f"Downloaded {remote_path}")
        return count

    def upload_file(
        self,
        transfer_id: str,
        local_path: Union[str, Path],
        remote_path: str
    ) -> int:
        """
        Upload a file; progress and the outcome go to the event sink.

        Returns:
            Number of bytes transferred
        """
        self._check_transfer_path(transfer_id, remote_path)
        with self._command():
            count = self._session.upload(transfer_id, local_path, remote_path, self._sink)
        self._log("success", f"Uploaded {local_path}")
        return count

    def run_in_background(
        self,
        command: Callable,
        *args,
        on_complete: Optional[Callable[[TaskResult], None]] = None
    ) -> ThreadedTask:
        """
        Start ``command(*args)`` on a worker thread.

        Commands started this way still run one at a time on the wire.

        Returns:
            The started task
        """
        task = ThreadedTask(command, args=args, on_complete=on_complete)
        task.start()
        return task
