"""Keyring-backed password storage for saved FTP connections.

Passwords never go into the settings file. They are stored in the
system keyring (Windows Credential Manager, macOS Keychain, Secret
Service on Linux) under the account name "host:username".
"""

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

logger = logging.getLogger("ftpbrowser.credentials")

SERVICE_NAME = "ftp-browser"


def account_name(host: str, username: str) -> str:
    """Keyring account for a host and user."""
    return f"{host}:{username}"


class CredentialManager:
    """
    Saves, looks up and forgets FTP passwords.

    Keyring failures (no backend, locked store) are logged and reported
    as "not saved" rather than raised, so a broken keyring only costs
    the user a password prompt.
    """

    SERVICE_NAME = SERVICE_NAME

    def __init__(self, service: str = SERVICE_NAME):
        self._service = service

    def save_password(self, host: str, username: str, password: str) -> bool:
        """
        Store a password.

        Returns:
            True if the keyring accepted it
        """
        try:
            keyring.set_password(self._service, account_name(host, username), password)
        except KeyringError as e:
            logger.warning(f"Keyring refused password for {username}: {e}")
            return False
        return True

    def get_password(self, host: str, username: str) -> Optional[str]:
        """Stored password, or None if absent or the keyring is unavailable."""
        try:
            return keyring.get_password(self._service, account_name(host, username))
        except KeyringError as e:
            logger.debug(f"Keyring lookup failed for {username}: {e}")
            return None

    def delete_password(self, host: str, username: str) -> bool:
        """
        Forget a password.

        Returns:
            True if a stored password was removed
        """
        try:
            keyring.delete_password(self._service, account_name(host, username))
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            logger.warning(f"Keyring delete failed for {username}: {e}")
            return False
        return True

    def has_password(self, host: str, username: str) -> bool:
        return self.get_password(host, username) is not None
