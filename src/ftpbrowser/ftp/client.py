"""ftplib client extensions for FTP Browser.

FTPClient is a thin ftplib.FTP subclass that can adopt an already
connected control socket and switch its data channel negotiation
between PASV and EPSV at runtime.
"""

import ftplib
import io
import socket
from enum import Enum
from typing import List, Optional

from ftpbrowser.ftp.resolver import CONNECT_TIMEOUT


class TransferMode(Enum):
    """Data connection negotiation mode."""
    PASSIVE = "passive"
    EXTENDED_PASSIVE = "extended_passive"


class FTPClient(ftplib.FTP):
    """ftplib.FTP with a pre-connected socket and a switchable passive mode."""

    def __init__(self, timeout: float = CONNECT_TIMEOUT):
        super().__init__(timeout=timeout)
        self.mode = TransferMode.PASSIVE

    def attach(self, sock: socket.socket, host: str, port: int) -> str:
        """
        Adopt a connected control socket and read the server greeting.

        Args:
            sock: Socket already connected to the server
            host: Host name the socket was opened for
            port: Port the socket was opened for

        Returns:
            Server welcome message
        """
        self.host = host
        self.port = port
        self.sock = sock
        self.af = sock.family
        self.file = sock.makefile("r", encoding=self.encoding)
        self.welcome = self.getresp()
        return self.welcome

    def set_nat_workaround(self, enabled: bool) -> None:
        """Ignore the address in PASV replies and reuse the control peer."""
        self.trust_server_pasv_ipv4_address = not enabled

    def set_mode(self, mode: TransferMode) -> None:
        """Select PASV or EPSV for subsequent data connections."""
        self.mode = mode
        self.set_pasv(True)

    def makepasv(self):
        if self.mode is TransferMode.EXTENDED_PASSIVE:
            return ftplib.parse229(self.sendcmd("EPSV"), self.sock.getpeername())
        return super().makepasv()

    def list_lines(self, path: Optional[str] = None) -> List[str]:
        """Fetch raw LIST output for ``path`` (or the cwd) as lines."""
        lines: List[str] = []
        command = f"LIST {path}" if path else "LIST"
        self.retrlines(command, lines.append)
        return lines

    def read_bytes(self, path: str) -> bytes:
        """Download a remote file fully into memory."""
        buffer = io.BytesIO()
        self.retrbinary(f"RETR {path}", buffer.write)
        return buffer.getvalue()

    def store_bytes(self, path: str, data: bytes) -> None:
        """Upload an in-memory buffer to a remote path."""
        self.storbinary(f"STOR {path}", io.BytesIO(data))
