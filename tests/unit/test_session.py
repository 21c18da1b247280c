"""Unit tests for FTPSession.

Tests connection lifecycle, state transitions, error translation and
transfer outcome events, using a mocked client and socket opener.
"""

import socket
import threading
import time
from ftplib import error_perm
from unittest.mock import MagicMock, patch

import pytest

from ftpbrowser.ftp.client import FTPClient, TransferMode
from ftpbrowser.ftp.copier import RemoteTreeItem
from ftpbrowser.ftp.exceptions import (
    FTPAuthenticationError,
    FTPConnectionError,
    FTPNotConnectedError,
    FTPProtocolError,
    FTPTimeoutError,
    FTPTransferError,
)
from ftpbrowser.ftp.session import (
    ConnectionState,
    FTPConnectionConfig,
    FTPSession,
)
from ftpbrowser.utils.events import TRANSFER_COMPLETE, TRANSFER_ERROR

PHOTOS_LINE = "drwxr-xr-x 2 user group 4096 Jan 01 00:00 photos"


@pytest.fixture
def client():
    """Mock FTP client that accepts login and reports '/' as cwd."""
    mock = MagicMock(spec=FTPClient)
    mock.pwd.return_value = '"/"'
    return mock


@pytest.fixture
def opener():
    """Mock socket opener returning a dummy socket."""
    return MagicMock(return_value=MagicMock(spec=socket.socket))


@pytest.fixture
def session(client, opener):
    """Session wired to the mock client."""
    return FTPSession(client_factory=MagicMock(return_value=client), socket_opener=opener)


@pytest.fixture
def config():
    return FTPConnectionConfig(host="192.168.1.100", port=21, username="user", timeout=10)


@pytest.fixture
def connected(session, config):
    session.connect(config, "secret")
    return session


class TestFTPConnectionConfig:
    """Tests for FTPConnectionConfig dataclass."""

    def test_default_values(self):
        """Test default configuration values."""
        config = FTPConnectionConfig(host="ftp.example.com")
        assert config.port == 21
        assert config.username == "anonymous"
        assert config.timeout == 10
        assert config.passive_nat_workaround is True

    def test_host_is_trimmed(self):
        """Test surrounding whitespace is removed from the host."""
        assert FTPConnectionConfig(host="  10.0.0.1 ").host == "10.0.0.1"

    def test_empty_host_raises_error(self):
        """Test that empty host raises ValueError."""
        with pytest.raises(ValueError, match="Host is required"):
            FTPConnectionConfig(host="   ")

    def test_invalid_port_raises_error(self):
        """Test that invalid port raises ValueError."""
        with pytest.raises(ValueError, match="Port must be between"):
            FTPConnectionConfig(host="192.168.1.1", port=0)
        with pytest.raises(ValueError, match="Port must be between"):
            FTPConnectionConfig(host="192.168.1.1", port=70000)

    def test_invalid_timeout_raises_error(self):
        """Test that invalid timeout raises ValueError."""
        with pytest.raises(ValueError, match="Timeout must be between"):
            FTPConnectionConfig(host="192.168.1.1", timeout=0)
        with pytest.raises(ValueError, match="Timeout must be between"):
            FTPConnectionConfig(host="192.168.1.1", timeout=500)


class TestConnect:
    """Tests for connect and disconnect."""

    def test_initial_state_is_disconnected(self, session):
        """Test that initial state is DISCONNECTED."""
        assert session.state == ConnectionState.DISCONNECTED
        assert session.is_connected is False
        assert session.config is None
        assert session.cwd == ""

    def test_connect_success(self, session, client, opener, config):
        """Test the full setup sequence and returned cwd."""
        cwd = session.connect(config, "secret")

        assert cwd == "/"
        assert session.cwd == "/"
        assert session.is_connected is True
        assert session.state == ConnectionState.CONNECTED
        assert session.connected_at is not None
        opener.assert_called_once_with("192.168.1.100", 21, 10)
        client.attach.assert_called_once_with(opener.return_value, "192.168.1.100", 21)
        client.login.assert_called_once_with(user="user", passwd="secret")
        client.set_nat_workaround.assert_called_once_with(True)
        client.set_mode.assert_called_once_with(TransferMode.PASSIVE)
        client.voidcmd.assert_called_once_with("TYPE I")

    def test_connect_normalizes_empty_pwd(self, session, client, config):
        """Test an empty PWD reply maps to the root."""
        client.pwd.return_value = ""
        assert session.connect(config) == "/"

    def test_nat_workaround_disabled(self, session, client):
        """Test the workaround flag reaches the client."""
        config = FTPConnectionConfig(host="10.0.0.1", passive_nat_workaround=False)
        session.connect(config)
        client.set_nat_workaround.assert_called_once_with(False)

    def test_auth_failure(self, session, client, config):
        """Test a 530 reply raises FTPAuthenticationError."""
        client.login.side_effect = error_perm("530 Login incorrect.")

        with pytest.raises(FTPAuthenticationError) as exc_info:
            session.connect(config, "wrong")

        assert "user" in str(exc_info.value)
        assert session.state == ConnectionState.ERROR
        assert session.is_connected is False
        assert "530" in session.error_message
        client.close.assert_called_once()

    def test_login_timeout(self, session, client, config):
        """Test a silent server raises FTPTimeoutError."""
        client.login.side_effect = socket.timeout("timed out")

        with pytest.raises(FTPTimeoutError, match="timed out after 10 seconds"):
            session.connect(config)

        assert session.state == ConnectionState.ERROR

    def test_socket_failure(self, session, opener, config):
        """Test an unreachable server raises FTPConnectionError."""
        opener.side_effect = FTPConnectionError("192.168.1.100", 21, ConnectionRefusedError())

        with pytest.raises(FTPConnectionError):
            session.connect(config)

        assert session.state == ConnectionState.ERROR

    def test_greeting_eof(self, session, client, config):
        """Test a dropped connection during the greeting."""
        client.attach.side_effect = EOFError()

        with pytest.raises(FTPConnectionError):
            session.connect(config)

    def test_reconnect_closes_previous_client(self, opener, config):
        """Test a second connect quits the first connection."""
        first, second = MagicMock(spec=FTPClient), MagicMock(spec=FTPClient)
        first.pwd.return_value = second.pwd.return_value = "/"
        session = FTPSession(
            client_factory=MagicMock(side_effect=[first, second]),
            socket_opener=opener,
        )

        session.connect(config)
        session.connect(config)

        first.quit.assert_called_once()
        second.quit.assert_not_called()

    def test_disconnect_idempotent(self, connected, client):
        """Test disconnecting twice is harmless."""
        connected.disconnect()
        connected.disconnect()

        client.quit.assert_called_once()
        assert connected.state == ConnectionState.DISCONNECTED
        assert connected.cwd == ""
        assert connected.connected_at is None

    def test_retry_after_failure_clears_error(self, session, client, config):
        """Test a successful connect forgets the previous failure."""
        client.login.side_effect = [error_perm("530 Login incorrect."), None]
        with pytest.raises(FTPAuthenticationError):
            session.connect(config, "wrong")

        session.connect(config, "right")

        assert session.error_message is None
        assert session.status.state == ConnectionState.CONNECTED

    def test_disconnect_when_quit_fails(self, connected, client):
        """Test the socket is closed if QUIT fails."""
        client.quit.side_effect = EOFError()

        connected.disconnect()

        client.close.assert_called_once()
        assert connected.is_connected is False


class TestNotConnected:
    """Tests for operations without a connection."""

    @pytest.mark.parametrize("call", [
        lambda s: s.list(),
        lambda s: s.mkdir("/a"),
        lambda s: s.delete("/a", False),
        lambda s: s.rename("/a", "/b"),
        lambda s: s.create_empty_file("/a"),
        lambda s: s.copy("/a", "/b", False),
        lambda s: s.list_recursive("/"),
    ])
    def test_operations_require_connection(self, session, call):
        """Test every operation refuses to run while disconnected."""
        with pytest.raises(FTPNotConnectedError, match="not connected"):
            call(session)

    def test_transfer_reports_error_event(self, session, sink):
        """Test a transfer id still gets exactly one outcome."""
        with pytest.raises(FTPNotConnectedError):
            session.download("d1", "/a", "/tmp/a", sink)

        assert [e.id for e in sink.of_type(TRANSFER_ERROR)] == ["d1"]
        assert sink.of_type(TRANSFER_COMPLETE) == []


class TestList:
    """Tests for directory listing."""

    def test_list_current_directory(self, connected, client):
        """Test listing without a path does not change directory."""
        client.list_lines.return_value = [PHOTOS_LINE]

        result = connected.list()

        client.cwd.assert_not_called()
        assert result.cwd == "/"
        assert len(result.entries) == 1
        assert result.entries[0].name == "photos"
        assert result.entries[0].is_dir is True
        assert result.entries[0].size == 4096

    def test_list_changes_directory(self, connected, client):
        """Test listing a path makes it the cwd."""
        client.pwd.return_value = '"/pub"'
        client.list_lines.return_value = []

        result = connected.list("/pub")

        client.cwd.assert_called_once_with("/pub")
        assert result.cwd == "/pub"
        assert connected.cwd == "/pub"

    def test_blank_path_keeps_directory(self, connected, client):
        """Test a whitespace path is treated as no path."""
        client.list_lines.return_value = []
        connected.list("   ")
        client.cwd.assert_not_called()

    def test_missing_directory(self, connected, client):
        """Test a refused CWD becomes FTPProtocolError."""
        client.cwd.side_effect = error_perm("550 No such directory.")

        with pytest.raises(FTPProtocolError) as exc_info:
            connected.list("/missing")

        assert exc_info.value.code == 550
        assert connected.cwd == "/"

    def test_result_to_dict(self, connected, client):
        """Test the GUI payload shape."""
        client.list_lines.return_value = [PHOTOS_LINE]
        payload = connected.list().to_dict()
        assert payload["cwd"] == "/"
        assert payload["entries"][0]["name"] == "photos"


class TestTreeOperations:
    """Tests for mkdir, delete, rename, create and copy."""

    def test_mkdir(self, connected, client):
        connected.mkdir("/new")
        client.mkd.assert_called_once_with("/new")

    def test_delete_file(self, connected, client):
        connected.delete("/a.txt", is_dir=False)
        client.delete.assert_called_once_with("/a.txt")
        client.rmd.assert_not_called()

    def test_delete_directory(self, connected, client):
        connected.delete("/old", is_dir=True)
        client.rmd.assert_called_once_with("/old")
        client.delete.assert_not_called()

    def test_rename(self, connected, client):
        connected.rename("/a", "/b")
        client.rename.assert_called_once_with("/a", "/b")

    def test_create_empty_file(self, connected, client):
        """Test a zero-byte STOR is used."""
        connected.create_empty_file("/empty.txt")
        client.store_bytes.assert_called_once_with("/empty.txt", b"")

    def test_copy_file(self, connected, client):
        """Test a file copy reads then stores."""
        client.read_bytes.return_value = b"data"

        connected.copy("/a.txt", "/b.txt", is_dir=False)

        client.read_bytes.assert_called_once_with("/a.txt")
        client.store_bytes.assert_called_once_with("/b.txt", b"data")

    def test_list_recursive(self, connected, client):
        """Test the recursive walk uses LIST on the given root."""
        client.list_lines.return_value = ["-rw-r--r-- 1 u g 5 Jan 01 00:00 a.txt"]

        items = connected.list_recursive("/pub")

        client.list_lines.assert_called_once_with("/pub")
        assert items == [RemoteTreeItem("a.txt", is_dir=False, size=5)]

    def test_reply_error_translated(self, connected, client):
        """Test a 550 reply becomes FTPProtocolError with code and text."""
        client.mkd.side_effect = error_perm("550 Permission denied.")

        with pytest.raises(FTPProtocolError) as exc_info:
            connected.mkdir("/locked")

        assert exc_info.value.code == 550
        assert exc_info.value.reply == "Permission denied."
        assert "/locked" in str(exc_info.value)

    def test_dropped_connection_translated(self, connected, client):
        """Test socket loss becomes FTPConnectionError."""
        client.rename.side_effect = ConnectionResetError("reset")

        with pytest.raises(FTPConnectionError):
            connected.rename("/a", "/b")

    def test_line_break_refused_by_ftplib_translated(self, connected, client):
        """Test ftplib's CR/LF refusal becomes FTPProtocolError."""
        client.mkd.side_effect = ValueError("an illegal newline character should not be contained")

        with pytest.raises(FTPProtocolError) as exc_info:
            connected.mkdir("/a\nDELE /b")

        assert exc_info.value.code is None
        assert "illegal newline" in str(exc_info.value)

    def test_activity_updated(self, connected, client):
        """Test a successful command refreshes last_activity."""
        before = connected.last_activity
        time.sleep(0.01)
        connected.mkdir("/x")
        assert connected.last_activity > before


class TestTransfers:
    """Tests for transfer outcome events."""

    @patch("ftpbrowser.ftp.session.transfer.download_file")
    def test_download_success(self, mock_download, connected, client, sink):
        """Test success emits exactly one completion."""
        mock_download.return_value = 10

        count = connected.download("d1", "/a.txt", "/tmp/a.txt", sink)

        assert count == 10
        mock_download.assert_called_once_with(client, "d1", "/a.txt", "/tmp/a.txt", sink)
        assert [e.id for e in sink.of_type(TRANSFER_COMPLETE)] == ["d1"]
        assert sink.of_type(TRANSFER_ERROR) == []

    @patch("ftpbrowser.ftp.session.transfer.download_file")
    def test_download_failure(self, mock_download, connected, sink):
        """Test failure emits exactly one error with a message."""
        mock_download.side_effect = error_perm("550 No such file.")

        with pytest.raises(FTPProtocolError):
            connected.download("d1", "/missing", "/tmp/x", sink)

        errors = sink.of_type(TRANSFER_ERROR)
        assert len(errors) == 1
        assert "550" in errors[0].message
        assert sink.of_type(TRANSFER_COMPLETE) == []

    @patch("ftpbrowser.ftp.session.transfer.download_file")
    def test_download_refused_command_reports_error(self, mock_download, connected, sink):
        """Test a command ftplib will not send still ends the transfer with one error."""
        mock_download.side_effect = ValueError("an illegal newline character should not be contained")

        with pytest.raises(FTPProtocolError):
            connected.download("d1", "bad\nname", "/tmp/x", sink)

        assert [e.id for e in sink.of_type(TRANSFER_ERROR)] == ["d1"]
        assert sink.of_type(TRANSFER_COMPLETE) == []

    @patch("ftpbrowser.ftp.session.transfer.upload_file")
    def test_upload_success(self, mock_upload, connected, client, sink):
        mock_upload.return_value = 3

        assert connected.upload("u1", "/tmp/a", "/a", sink) == 3
        assert [e.id for e in sink.of_type(TRANSFER_COMPLETE)] == ["u1"]

    @patch("ftpbrowser.ftp.session.transfer.upload_file")
    def test_upload_local_failure(self, mock_upload, connected, sink):
        """Test a local read failure is reported as the transfer error."""
        mock_upload.side_effect = FTPTransferError("/tmp/a", "/a", FileNotFoundError())

        with pytest.raises(FTPTransferError):
            connected.upload("u1", "/tmp/a", "/a", sink)

        assert [e.id for e in sink.of_type(TRANSFER_ERROR)] == ["u1"]
        assert sink.of_type(TRANSFER_COMPLETE) == []

    @patch("ftpbrowser.ftp.session.transfer.upload_file")
    def test_upload_timeout(self, mock_upload, connected, sink):
        mock_upload.side_effect = socket.timeout("timed out")

        with pytest.raises(FTPTimeoutError):
            connected.upload("u1", "/tmp/a", "/a", sink)

        assert len(sink.of_type(TRANSFER_ERROR)) == 1


class TestSerialization:
    """Tests for the session lock."""

    def test_commands_do_not_interleave(self, connected, client):
        """Test a second command waits for the first to finish."""
        order = []
        started = threading.Event()
        release = threading.Event()

        def slow_mkd(path):
            order.append("mkd-start")
            started.set()
            release.wait(timeout=5)
            order.append("mkd-end")

        client.mkd.side_effect = slow_mkd
        client.rename.side_effect = lambda a, b: order.append("rename")

        first = threading.Thread(target=connected.mkdir, args=("/slow",))
        first.start()
        assert started.wait(timeout=5)

        second = threading.Thread(target=connected.rename, args=("/a", "/b"))
        second.start()
        time.sleep(0.05)
        assert "rename" not in order

        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert order == ["mkd-start", "mkd-end", "rename"]
