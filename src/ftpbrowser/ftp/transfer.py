"""File transfers for FTP Browser.

Streams downloads and uploads through ProgressStream. Uploads that fail
in a way that looks like a NAT/firewall mismatch on the PASV data
connection are retried once over EPSV.
"""

import errno
import ftplib
import logging
import os
import socket
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from ftpbrowser.ftp.client import FTPClient, TransferMode
from ftpbrowser.ftp.exceptions import FTPTransferError, reply_code
from ftpbrowser.ftp.progress import BUFFER_SIZE, ProgressStream
from ftpbrowser.utils.events import EventSink

logger = logging.getLogger("ftpbrowser.transfer")

# "425 Can't open data connection"
CANT_OPEN_DATA_CONNECTION = 425

# Suffix of the file a download is written to before it is renamed
PARTIAL_SUFFIX = ".part"

# WSAETIMEDOUT
WINDOWS_CONNECTION_TIMED_OUT = 10060

ErrorMatcher = Callable[[BaseException], bool]
PathLike = Union[str, Path]


def is_timeout(error: BaseException) -> bool:
    """Socket-level timeout."""
    return isinstance(error, (socket.timeout, TimeoutError))


def is_errno_timed_out(error: BaseException) -> bool:
    """OS error carrying the POSIX 'connection timed out' code."""
    return isinstance(error, OSError) and error.errno == errno.ETIMEDOUT


def is_windows_timed_out(error: BaseException) -> bool:
    """OS error carrying the Winsock 'connection timed out' code."""
    if not isinstance(error, OSError):
        return False
    code = getattr(error, "winerror", None) or error.errno
    return code == WINDOWS_CONNECTION_TIMED_OUT


def is_data_connection_refused(error: BaseException) -> bool:
    """Server replied 425, it could not open the data connection."""
    return reply_code(error) == CANT_OPEN_DATA_CONNECTION


def _platform_matchers() -> tuple:
    matchers = [is_timeout, is_errno_timed_out, is_data_connection_refused]
    if sys.platform == "win32":
        matchers.append(is_windows_timed_out)
    return tuple(matchers)


PASSIVE_FAILURE_MATCHERS: tuple = _platform_matchers()


def looks_like_passive_failure(
    error: BaseException,
    matchers: Sequence[ErrorMatcher] = PASSIVE_FAILURE_MATCHERS
) -> bool:
    """
    Decide whether an upload failure is worth retrying over EPSV.

    Args:
        error: Exception raised by the passive-mode attempt
        matchers: Predicates that recognise a passive-mode failure

    Returns:
        True if any matcher accepts the error
    """
    return any(matcher(error) for matcher in matchers)


class UploadStrategy:
    """Runs an upload in PASV mode with one EPSV retry on data-channel failure."""

    def __init__(
        self,
        client: FTPClient,
        sink: Optional[EventSink] = None,
        matchers: Sequence[ErrorMatcher] = PASSIVE_FAILURE_MATCHERS
    ):
        """
        Initialize the strategy.

        Args:
            client: Connected FTP client
            sink: Optional receiver for the retry log line
            matchers: Predicates that make a failure retryable
        """
        self._client = client
        self._sink = sink
        self._matchers = matchers

    def run(self, attempt: Callable[[], None]) -> TransferMode:
        """
        Run ``attempt`` in passive mode, retrying once in extended passive.

        The client is always left in passive mode afterwards.

        Args:
            attempt: Callable performing one complete upload

        Returns:
            Mode the successful attempt used

        Raises:
            Exception: Whatever the last attempt raised
        """
        try:
            try:
                self._client.set_mode(TransferMode.PASSIVE)
                attempt()
                return TransferMode.PASSIVE
            except ftplib.all_errors as e:
                if not looks_like_passive_failure(e, self._matchers):
                    raise
                logger.info(f"Passive upload failed ({e}), retrying with EPSV")
                if self._sink is not None:
                    self._sink.log("info", "Upload retry using EPSV (extended passive)")

            self._client.set_mode(TransferMode.EXTENDED_PASSIVE)
            attempt()
            return TransferMode.EXTENDED_PASSIVE
        finally:
            self._client.set_mode(TransferMode.PASSIVE)


def remote_size(client: FTPClient, remote_path: str) -> Optional[int]:
    """Size reported by the server for ``remote_path``, None if unavailable."""
    try:
        return client.size(remote_path)
    except ftplib.all_errors as e:
        logger.debug(f"SIZE {remote_path} unavailable: {e}")
        return None


def download_file(
    client: FTPClient,
    transfer_id: str,
    remote_path: str,
    local_path: PathLike,
    sink: EventSink
) -> int:
    """
    Download a remote file to a local path, reporting progress.

    Bytes go to ``<local_path>.part``, which replaces ``local_path`` only
    once RETR has completed, so a failed download leaves an existing
    local file untouched.

    Args:
        client: Connected FTP client
        transfer_id: Id attached to progress events
        remote_path: Remote file path
        local_path: Local destination (parents are created)
        sink: Receiver of progress events

    Returns:
        Number of bytes transferred

    Raises:
        FTPTransferError: If the local file cannot be created or written
    """
    total = remote_size(client, remote_path)
    local_path = Path(local_path)
    partial = local_path.with_name(local_path.name + PARTIAL_SUFFIX)
    route = (remote_path, str(local_path))

    try:
        local_path.parent.mkdir(parents=True, exist_ok=True)
        target = open(partial, "wb")
    except OSError as e:
        raise FTPTransferError(*route, e) from e

    try:
        with target:
            stream = ProgressStream(transfer_id, sink, total=total, target=target, route=route)
            client.retrbinary(f"RETR {remote_path}", stream.write, blocksize=BUFFER_SIZE)
            stream.finish()
        try:
            os.replace(partial, local_path)
        except OSError as e:
            raise FTPTransferError(*route, e) from e
    except BaseException:
        _discard(partial)
        raise

    logger.debug(f"Downloaded {stream.transferred} bytes from {remote_path}")
    return stream.transferred


def upload_file(
    client: FTPClient,
    transfer_id: str,
    local_path: PathLike,
    remote_path: str,
    sink: EventSink,
    matchers: Sequence[ErrorMatcher] = PASSIVE_FAILURE_MATCHERS
) -> int:
    """
    Upload a local file to a remote path, reporting progress.

    Args:
        client: Connected FTP client
        transfer_id: Id attached to progress events
        local_path: Local source file
        remote_path: Remote destination path
        sink: Receiver of progress and retry events
        matchers: Predicates that make a passive failure retryable

    Returns:
        Number of bytes transferred by the successful attempt

    Raises:
        FTPTransferError: If the local file cannot be read
    """
    local_path = Path(local_path)
    route = (str(local_path), remote_path)
    try:
        total = local_path.stat().st_size
    except OSError as e:
        raise FTPTransferError(*route, e) from e

    transferred = 0
    reported = 0

    def attempt() -> None:
        nonlocal transferred, reported
        try:
            source = open(local_path, "rb")
        except OSError as e:
            raise FTPTransferError(*route, e) from e
        with source:
            # A retry starts from byte 0 but must not report less than before
            stream = ProgressStream(
                transfer_id, sink, total=total, source=source, floor=reported, route=route
            )
            try:
                client.storbinary(f"STOR {remote_path}", stream, blocksize=BUFFER_SIZE)
            finally:
                reported = max(reported, stream.reported)
            stream.finish()
        transferred = stream.transferred

    mode = UploadStrategy(client, sink, matchers).run(attempt)
    logger.debug(f"Uploaded {transferred} bytes to {remote_path} ({mode.value})")
    return transferred


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove partial download {path}: {e}")
