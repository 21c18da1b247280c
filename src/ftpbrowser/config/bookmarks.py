"""Saved FTP connections for FTP Browser.

Bookmarks live in the settings file; passwords, when the user opts to
keep them, go to the system keyring instead.
"""

from dataclasses import dataclass
from typing import List, Optional

from ftpbrowser.config.credentials import CredentialManager
from ftpbrowser.config.settings import SettingsManager


@dataclass
class FtpBookmark:
    """A named FTP connection."""
    name: str
    host: str
    port: int = 21
    username: str = "anonymous"
    save_password: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "save_password": self.save_password,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FtpBookmark":
        return cls(
            name=data["name"],
            host=data.get("host", ""),
            port=int(data.get("port", 21)),
            username=data.get("username", "anonymous"),
            save_password=bool(data.get("save_password", False)),
        )


class BookmarkStore:
    """Reads and writes bookmarks through the settings file and keyring."""

    def __init__(
        self,
        settings_manager: SettingsManager,
        credentials: Optional[CredentialManager] = None
    ):
        """
        Initialize the store.

        Args:
            settings_manager: Settings persistence
            credentials: Keyring wrapper for saved passwords
        """
        self._settings_manager = settings_manager
        self._credentials = credentials or CredentialManager()

    def list(self) -> List[FtpBookmark]:
        """All bookmarks, most recently saved first."""
        return [
            FtpBookmark.from_dict(item)
            for item in self._settings_manager.settings.bookmarks
            if item.get("name")
        ]

    def get(self, name: str) -> Optional[FtpBookmark]:
        """Find a bookmark by name."""
        for bookmark in self.list():
            if bookmark.name == name:
                return bookmark
        return None

    def save(self, bookmark: FtpBookmark, password: Optional[str] = None) -> FtpBookmark:
        """
        Save a bookmark, replacing any bookmark with the same name.

        Args:
            bookmark: Bookmark to save
            password: Password to keep in the keyring when save_password is set

        Returns:
            The stored bookmark (save_password cleared if the keyring refused)
        """
        previous = self.get(bookmark.name)
        if previous and previous.save_password and not bookmark.save_password:
            self._credentials.delete_password(previous.host, previous.username)

        if bookmark.save_password:
            if password is None or not self._credentials.save_password(
                bookmark.host, bookmark.username, password
            ):
                bookmark.save_password = False

        others = [b for b in self.list() if b.name != bookmark.name]
        self._write([bookmark] + others)
        return bookmark

    def delete(self, name: str) -> bool:
        """
        Remove a bookmark and its saved password.

        Returns:
            True if a bookmark was removed
        """
        bookmark = self.get(name)
        if bookmark is None:
            return False
        if bookmark.save_password:
            self._credentials.delete_password(bookmark.host, bookmark.username)
        self._write([b for b in self.list() if b.name != name])
        return True

    def password_for(self, name: str) -> Optional[str]:
        """Saved password of a bookmark, None if none was kept."""
        bookmark = self.get(name)
        if bookmark is None or not bookmark.save_password:
            return None
        return self._credentials.get_password(bookmark.host, bookmark.username)

    def _write(self, bookmarks: List[FtpBookmark]) -> None:
        self._settings_manager.update(bookmarks=[b.to_dict() for b in bookmarks])
