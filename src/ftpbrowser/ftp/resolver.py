"""Address resolution and control socket setup for FTP Browser.

Resolves host:port to candidate addresses, prefers IPv4, and tries each
candidate in turn until one accepts a TCP connection.
"""

import logging
import socket
from typing import Callable, List, Optional, Tuple

from ftpbrowser.ftp.exceptions import FTPConnectionError, FTPResolveError

logger = logging.getLogger("ftpbrowser.resolver")

# Seconds for connect, and afterwards for every read/write on the socket
CONNECT_TIMEOUT = 10.0

# getaddrinfo() result: (family, type, proto, canonname, sockaddr)
AddressInfo = Tuple[int, int, int, str, tuple]
SocketFactory = Callable[[AddressInfo, float], socket.socket]


def resolve_addresses(host: str, port: int) -> List[AddressInfo]:
    """
    Resolve a host and port to candidate socket addresses.

    Args:
        host: Host name or IP literal
        port: TCP port

    Returns:
        Candidates ordered IPv4 first, resolver order kept per family

    Raises:
        FTPResolveError: If the name cannot be resolved
    """
    try:
        infos = socket.getaddrinfo(host, port, 0, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise FTPResolveError(host, port, e) from e

    if not infos:
        raise FTPResolveError(host, port)

    return order_addresses(infos)


def order_addresses(infos: List[AddressInfo]) -> List[AddressInfo]:
    """Stable-sort address infos so IPv4 candidates come first."""
    return sorted(infos, key=lambda info: 0 if info[0] == socket.AF_INET else 1)


def _open_socket(info: AddressInfo, timeout: float) -> socket.socket:
    family, socktype, proto, _, sockaddr = info
    sock = socket.socket(family, socktype, proto)
    try:
        sock.settimeout(timeout)
        sock.connect(sockaddr)
    except OSError:
        sock.close()
        raise
    return sock


def open_control_socket(
    host: str,
    port: int,
    timeout: float = CONNECT_TIMEOUT,
    socket_factory: Optional[SocketFactory] = None
) -> socket.socket:
    """
    Connect to the first reachable candidate address.

    Candidates are tried one after another, never in parallel. The
    returned socket keeps ``timeout`` as its read and write timeout.

    Args:
        host: Host name or IP literal
        port: TCP port
        timeout: Connect and I/O timeout in seconds
        socket_factory: Optional override used to open each candidate

    Returns:
        Connected socket

    Raises:
        FTPResolveError: If the name cannot be resolved
        FTPConnectionError: If every candidate failed (wraps the last error)
    """
    connect = socket_factory or _open_socket
    last_error: Optional[Exception] = None

    for info in resolve_addresses(host, port):
        address = info[4][0]
        try:
            sock = connect(info, timeout)
        except OSError as e:
            logger.debug(f"Connect to {address} port {port} failed: {e}")
            last_error = e
            continue

        sock.settimeout(timeout)
        logger.debug(f"Connected to {address} port {port}")
        return sock

    raise FTPConnectionError(host, port, last_error)
