"""Checks for values typed into the connect form and remote path fields.

Each validator returns ``(is_valid, error_message)`` so callers can show
the message directly; none of them raise.
"""

import ipaddress
import re
from typing import Optional, Tuple

Validation = Tuple[bool, Optional[str]]

# One DNS label: letters, digits and inner hyphens
_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_MAX_HOSTNAME = 253

MIN_TIMEOUT = 1
MAX_TIMEOUT = 300

_OK: Validation = (True, None)


def _blank(value) -> bool:
    return not value or not str(value).strip()


def validate_ip_address(ip: str) -> Validation:
    """
    Accept a literal IPv4 or IPv6 address.

    IPv6 may be written in brackets, as in URLs.
    """
    if _blank(ip):
        return False, "IP address is required"

    ip = ip.strip()
    try:
        ipaddress.ip_address(ip[1:-1] if ip.startswith("[") and ip.endswith("]") else ip)
    except ValueError:
        return False, f"Invalid IP address format: {ip}"
    return _OK


def validate_hostname(hostname: str) -> Validation:
    """Accept a DNS name made of dot-separated labels."""
    if _blank(hostname):
        return False, "Hostname is required"

    hostname = hostname.strip()
    labels = hostname.split(".")
    # An all-numeric last label is a mistyped IPv4 address, not a name
    if (
        len(hostname) <= _MAX_HOSTNAME
        and all(_LABEL.match(label) for label in labels)
        and not labels[-1].isdigit()
    ):
        return _OK
    return False, f"Invalid hostname format: {hostname}"


def validate_host(host: str) -> Validation:
    """
    Accept anything usable as the server address.

    Returns:
        (True, None) for an IP address or host name, else (False, message)
    """
    if _blank(host):
        return False, "Host is required"

    host = host.strip()
    if validate_ip_address(host)[0] or validate_hostname(host)[0]:
        return _OK
    return False, f"Invalid host: {host}. Must be a valid IP address or hostname."


def validate_port(port) -> Validation:
    """Accept a TCP port given as an int or a numeric string."""
    try:
        number = int(port)
    except (ValueError, TypeError):
        return False, "Port must be a number"

    if not 1 <= number <= 65535:
        return False, f"Port must be between 1 and 65535, got {number}"
    return _OK


def validate_timeout(timeout) -> Validation:
    """Accept a socket timeout in seconds within MIN_TIMEOUT..MAX_TIMEOUT."""
    try:
        seconds = float(timeout)
    except (ValueError, TypeError):
        return False, "Timeout must be a number"

    if not MIN_TIMEOUT <= seconds <= MAX_TIMEOUT:
        return False, (
            f"Timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} seconds, "
            f"got {seconds:g}"
        )
    return _OK


def validate_ftp_path(path: str) -> Validation:
    """
    Accept a non-empty remote path.

    CR and LF are refused because they would end the FTP command line
    and let the rest be sent as a second command.
    """
    if _blank(path):
        return False, "FTP path is required"
    if "\r" in path or "\n" in path:
        return False, "FTP path cannot contain line breaks"
    return _OK
