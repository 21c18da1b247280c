"""Errors raised by the FTP layer.

Everything the session and transfer code raises derives from FTPError,
whose str() is a sentence fit for the GUI log: the summary, then the
underlying cause when there is one.
"""

from ftplib import error_perm, error_proto, error_reply, error_temp
from typing import Optional, Tuple

# ftplib's exceptions for 1xx-5xx replies and malformed replies
FTP_REPLY_ERRORS = (error_reply, error_temp, error_perm, error_proto)


class FTPError(Exception):
    """Root of the FTP error hierarchy."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error is None:
            return self.message
        return f"{self.message}: {self.original_error}"


class FTPConnectionError(FTPError):
    """The control connection could not be opened or was lost."""

    def __init__(self, host: str, port: int, original_error: Optional[BaseException] = None):
        self.host, self.port = host, port
        super().__init__(f"Failed to connect to {host}:{port}", original_error)


class FTPResolveError(FTPConnectionError):
    """Name lookup produced no address to try."""

    def __init__(self, host: str, port: int, original_error: Optional[BaseException] = None):
        super().__init__(host, port, original_error)
        self.message = f"Unable to resolve address: {host}:{port}"


class FTPAuthenticationError(FTPError):
    """USER/PASS rejected by the server."""

    def __init__(self, username: str, original_error: Optional[BaseException] = None):
        self.username = username
        super().__init__(f"Authentication failed for user '{username}'", original_error)


class FTPNotConnectedError(FTPError):
    def __init__(self, operation: str = "Operation"):
        super().__init__(f"{operation} requires an active FTP connection (not connected)")


class FTPTimeoutError(FTPError):
    """No answer from the server within the configured timeout."""

    def __init__(self, operation: str = "Operation", timeout: float = 10):
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout:g} seconds")


class FTPProtocolError(FTPError):
    """
    The server refused a command.

    ``code`` is the numeric reply (None if the reply had none) and
    ``reply`` the text after it.
    """

    def __init__(self, operation: str, original_error: BaseException):
        self.operation = operation
        self.code, self.reply = split_reply(original_error)
        super().__init__(f"{operation} failed", original_error)


class FTPTransferError(FTPError):
    """A file could not be moved between the local disk and the server."""

    def __init__(self, source: str, target: str, original_error: Optional[BaseException] = None):
        self.source, self.target = source, target
        super().__init__(f"Failed to transfer '{source}' to '{target}'", original_error)


def split_reply(error: BaseException) -> Tuple[Optional[int], str]:
    """
    Separate "550 No such file" into (550, "No such file").

    Multi-line replies keep their text; a reply without a leading
    three-digit code gives (None, text).
    """
    text = str(error).strip()
    code = text[:3]
    if len(code) == 3 and code.isdigit():
        return int(code), text[3:].lstrip(" -")
    return None, text


def reply_code(error: BaseException) -> Optional[int]:
    """Reply code carried by an ftplib error or FTPProtocolError, else None."""
    if isinstance(error, FTPProtocolError):
        return error.code
    if isinstance(error, FTP_REPLY_ERRORS):
        return split_reply(error)[0]
    return None
