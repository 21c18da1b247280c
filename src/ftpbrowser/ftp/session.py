"""FTP session management for FTP Browser.

Provides ConnectionState enum, FTPConnectionConfig dataclass, and the
FTPSession class that owns the single control connection. Every public
operation holds the session lock for its whole duration, so commands
issued from different worker threads never interleave on the wire.
"""

import ftplib
import logging
import socket
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from ftpbrowser.ftp.client import FTPClient, TransferMode
from ftpbrowser.ftp.copier import RemoteCopier, RemoteTreeItem, walk_remote
from ftpbrowser.ftp.exceptions import (
    FTP_REPLY_ERRORS,
    FTPAuthenticationError,
    FTPConnectionError,
    FTPError,
    FTPNotConnectedError,
    FTPProtocolError,
    FTPTimeoutError,
)
from ftpbrowser.ftp.listing import ListingEntry, parse_listing
from ftpbrowser.ftp.paths import normalize_cwd
from ftpbrowser.ftp.resolver import CONNECT_TIMEOUT, open_control_socket
from ftpbrowser.ftp import transfer
from ftpbrowser.utils.events import EventSink
from ftpbrowser.utils.validators import validate_host, validate_port, validate_timeout

logger = logging.getLogger("ftpbrowser.session")


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass
class FTPConnectionConfig:
    """Where and how to connect; the password is passed separately."""
    host: str
    port: int = 21
    username: str = "anonymous"
    timeout: float = CONNECT_TIMEOUT
    passive_nat_workaround: bool = True

    def __post_init__(self):
        self.host = (self.host or "").strip()
        for is_valid, error in (
            validate_host(self.host),
            validate_port(self.port),
            validate_timeout(self.timeout),
        ):
            if not is_valid:
                raise ValueError(error)


@dataclass
class SessionStatus:
    """What the GUI status bar shows about the connection."""
    state: ConnectionState = ConnectionState.DISCONNECTED
    connected_at: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    error_message: Optional[str] = None

    def mark_connected(self) -> None:
        now = datetime.now()
        self.state = ConnectionState.CONNECTED
        self.connected_at = self.last_activity = now
        self.error_message = None

    def mark_failed(self, message: str) -> None:
        self.state = ConnectionState.ERROR
        self.error_message = message

    def touch(self) -> None:
        self.last_activity = datetime.now()


@dataclass
class ListResult:
    """Directory listing together with the directory it came from."""
    cwd: str
    entries: List[ListingEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert result to a plain dictionary for the GUI."""
        return {"cwd": self.cwd, "entries": [e.to_dict() for e in self.entries]}


ClientFactory = Callable[[float], FTPClient]
SocketOpener = Callable[[str, int, float], socket.socket]


class FTPSession:
    """Owns one FTP control connection and serializes access to it."""

    def __init__(
        self,
        client_factory: ClientFactory = FTPClient,
        socket_opener: SocketOpener = open_control_socket
    ):
        """
        Initialize the session.

        Args:
            client_factory: Builds an unconnected FTPClient for a timeout
            socket_opener: Opens the control socket for (host, port, timeout)
        """
        self._client_factory = client_factory
        self._socket_opener = socket_opener
        self._client: Optional[FTPClient] = None
        self._config: Optional[FTPConnectionConfig] = None
        self._status = SessionStatus()
        self._cwd = ""
        self._lock = threading.RLock()

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def state(self) -> ConnectionState:
        return self._status.state

    @property
    def is_connected(self) -> bool:
        return self._status.state is ConnectionState.CONNECTED and self._client is not None

    @property
    def config(self) -> Optional[FTPConnectionConfig]:
        """Settings of the current or most recent connection attempt."""
        return self._config

    @property
    def cwd(self) -> str:
        """Last known remote working directory ("" when disconnected)."""
        return self._cwd

    @property
    def connected_at(self) -> Optional[datetime]:
        return self._status.connected_at

    @property
    def last_activity(self) -> Optional[datetime]:
        """When a command last succeeded."""
        return self._status.last_activity

    @property
    def error_message(self) -> Optional[str]:
        """Why the last connection attempt failed, if it did."""
        return self._status.error_message

    def _require(self, operation: str) -> FTPClient:
        if not self.is_connected:
            raise FTPNotConnectedError(operation)
        return self._client

    @contextmanager
    def _translate(self, operation: str) -> Iterator[None]:
        """Map ftplib and socket errors onto the FTPError hierarchy."""
        try:
            yield
        except FTPError:
            raise
        except FTP_REPLY_ERRORS as e:
            raise FTPProtocolError(operation, e) from e
        except ValueError as e:
            # ftplib refuses CR/LF in a command line before sending it
            raise FTPProtocolError(operation, e) from e
        except (socket.timeout, TimeoutError) as e:
            timeout = self._config.timeout if self._config else CONNECT_TIMEOUT
            raise FTPTimeoutError(operation, timeout) from e
        except (OSError, EOFError) as e:
            host = self._config.host if self._config else ""
            port = self._config.port if self._config else 0
            raise FTPConnectionError(host, port, e) from e
        self._status.touch()

    def connect(self, config: FTPConnectionConfig, password: str = "") -> str:
        """
        Establish and authenticate the FTP connection.

        Args:
            config: Connection configuration
            password: FTP password (not retained)

        Returns:
            Normalized remote working directory

        Raises:
            FTPConnectionError: If no address accepts the connection
            FTPAuthenticationError: If login fails
            FTPTimeoutError: If the server stops answering
            FTPProtocolError: If setup commands are rejected
        """
        with self._lock:
            self._close_client()
            self._config = config
            self._status = SessionStatus(state=ConnectionState.CONNECTING)
            client: Optional[FTPClient] = None

            try:
                sock = self._socket_opener(config.host, config.port, config.timeout)
                client = self._client_factory(config.timeout)

                with self._translate("Connection"):
                    client.attach(sock, config.host, config.port)

                with self._translate("Login"):
                    try:
                        client.login(user=config.username, passwd=password)
                    except ftplib.error_perm as e:
                        raise FTPAuthenticationError(config.username, e) from e

                with self._translate("Session setup"):
                    client.set_nat_workaround(config.passive_nat_workaround)
                    client.set_mode(TransferMode.PASSIVE)
                    client.voidcmd("TYPE I")
                    cwd = normalize_cwd(client.pwd())

            except FTPError as e:
                self._fail(client, str(e))
                raise
            except Exception as e:
                self._fail(client, str(e))
                raise FTPConnectionError(config.host, config.port, e) from e

            self._client = client
            self._cwd = cwd
            self._status.mark_connected()
            logger.info(f"Connected to {config.host}:{config.port}, cwd {cwd}")
            return cwd

    def _fail(self, client: Optional[FTPClient], message: str) -> None:
        self._status.mark_failed(message)
        if client is not None:
            _close_quietly(client)

    def _close_client(self) -> None:
        if self._client is None:
            return
        try:
            self._client.quit()
        except (OSError, EOFError, *FTP_REPLY_ERRORS) as e:
            # Socket may already be gone
            logger.debug(f"QUIT failed, closing anyway: {e}")
            _close_quietly(self._client)
        self._client = None

    def disconnect(self) -> None:
        """Close the connection gracefully; a no-op when disconnected."""
        with self._lock:
            self._close_client()
            self._status = SessionStatus()
            self._cwd = ""

    def list(self, path: Optional[str] = None) -> ListResult:
        """
        List a remote directory.

        Args:
            path: Directory to change into first (None keeps the cwd)

        Returns:
            ListResult with the new cwd and parsed entries

        Raises:
            FTPNotConnectedError: If not connected
            FTPProtocolError: If the directory cannot be entered or listed
        """
        with self._lock:
            client = self._require("List")
            with self._translate("List directory"):
                if path is not None and path.strip():
                    client.cwd(path)
                cwd = normalize_cwd(client.pwd())
                self._cwd = cwd
                lines = client.list_lines()

            entries = parse_listing(lines)
            logger.debug(f"Listed {len(entries)} entries in {cwd}")
            return ListResult(cwd=cwd, entries=entries)

    def mkdir(self, path: str) -> None:
        """Create a remote directory."""
        with self._lock:
            client = self._require("Create directory")
            with self._translate(f"Create directory '{path}'"):
                client.mkd(path)

    def delete(self, path: str, is_dir: bool) -> None:
        """Remove a remote file, or an empty remote directory."""
        with self._lock:
            client = self._require("Delete")
            with self._translate(f"Delete '{path}'"):
                if is_dir:
                    client.rmd(path)
                else:
                    client.delete(path)

    def rename(self, source: str, target: str) -> None:
        """Rename or move a remote entry."""
        with self._lock:
            client = self._require("Rename")
            with self._translate(f"Rename '{source}' to '{target}'"):
                client.rename(source, target)

    def create_empty_file(self, path: str) -> None:
        """Create an empty remote file by storing zero bytes."""
        with self._lock:
            client = self._require("Create file")
            with self._translate(f"Create file '{path}'"):
                client.store_bytes(path, b"")

    def copy(self, source: str, target: str, is_dir: bool) -> None:
        """
        Copy a remote file or directory tree on the server.

        Raises:
            FTPNotConnectedError: If not connected
            FTPProtocolError: From the first child that fails
        """
        with self._lock:
            client = self._require("Copy")
            with self._translate(f"Copy '{source}' to '{target}'"):
                RemoteCopier(client).copy(source, target, is_dir)

    def list_recursive(self, path: str) -> List[RemoteTreeItem]:
        """Every file and directory below ``path``, depth-first."""
        with self._lock:
            client = self._require("List")
            with self._translate(f"List tree '{path}'"):
                return walk_remote(client, path)

    def download(
        self,
        transfer_id: str,
        remote_path: str,
        local_path: Union[str, Path],
        sink: EventSink
    ) -> int:
        """
        Download a remote file, reporting progress and the outcome to ``sink``.

        Returns:
            Number of bytes transferred

        Raises:
            FTPError: Any failure (also emitted as a transfer error)
        """
        with self._lock:
            try:
                client = self._require("Download")
                with self._translate(f"Download '{remote_path}'"):
                    count = transfer.download_file(
                        client, transfer_id, remote_path, local_path, sink
                    )
            except FTPError as e:
                sink.transfer_error(transfer_id, str(e))
                raise
            sink.transfer_complete(transfer_id)
            return count

    def upload(
        self,
        transfer_id: str,
        local_path: Union[str, Path],
        remote_path: str,
        sink: EventSink
    ) -> int:
        """
        Upload a local file, retrying once over EPSV on a passive failure.

        Returns:
            Number of bytes transferred

        Raises:
            FTPError: Any failure (also emitted as a transfer error)
        """
        with self._lock:
            try:
                client = self._require("Upload")
                with self._translate(f"Upload '{local_path}'"):
                    count = transfer.upload_file(
                        client, transfer_id, local_path, remote_path, sink
                    )
            except FTPError as e:
                sink.transfer_error(transfer_id, str(e))
                raise
            sink.transfer_complete(transfer_id)
            return count


def _close_quietly(client: FTPClient) -> None:
    try:
        client.close()
    except OSError as e:
        logger.debug(f"Closing control socket failed: {e}")
