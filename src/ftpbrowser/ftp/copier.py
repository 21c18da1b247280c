"""Remote tree operations for FTP Browser.

FTP has no server-side copy verb, so copies read each file into memory
and store it again under the new name. Directories are walked
depth-first using parsed LIST output.
"""

import logging
from dataclasses import dataclass
from ftplib import error_perm
from typing import Iterator, List, Optional

from ftpbrowser.ftp.client import FTPClient
from ftpbrowser.ftp.listing import ListingEntry, parse_listing
from ftpbrowser.ftp.paths import join_remote

logger = logging.getLogger("ftpbrowser.copier")


def _children(client: FTPClient, path: str) -> Iterator[ListingEntry]:
    # Bare "." and ".." lines survive the fallback parser as names
    for entry in parse_listing(client.list_lines(path)):
        if entry.name not in (".", ".."):
            yield entry


@dataclass
class RemoteTreeItem:
    """A file or directory below a walked remote root."""
    relative_path: str
    is_dir: bool
    size: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert item to a plain dictionary for the GUI."""
        return {
            "relative_path": self.relative_path,
            "is_dir": self.is_dir,
            "size": self.size,
        }


class RemoteCopier:
    """Copies remote files and directory trees on the same server."""

    def __init__(self, client: FTPClient):
        """
        Initialize the copier.

        Args:
            client: Connected FTP client, used exclusively for the copy
        """
        self._client = client

    def copy(self, source: str, target: str, is_dir: bool) -> None:
        """
        Copy a remote file or directory.

        The first failing child aborts the whole copy.

        Args:
            source: Remote path to copy from
            target: Remote path to copy to
            is_dir: True if ``source`` is a directory
        """
        if is_dir:
            self.copy_dir(source, target)
        else:
            self.copy_file(source, target)

    def copy_file(self, source: str, target: str) -> None:
        """Copy one remote file through an in-memory buffer."""
        data = self._client.read_bytes(source)
        self._client.store_bytes(target, data)
        logger.debug(f"Copied {source} -> {target} ({len(data)} bytes)")

    def copy_dir(self, source: str, target: str) -> None:
        """Copy a remote directory tree depth-first."""
        try:
            self._client.mkd(target)
        except error_perm as e:
            # Usually "550 already exists"
            logger.debug(f"MKD {target} refused, continuing: {e}")

        for entry in _children(self._client, source):
            child_source = join_remote(source, entry.name)
            child_target = join_remote(target, entry.name)
            if entry.is_dir:
                self.copy_dir(child_source, child_target)
            else:
                self.copy_file(child_source, child_target)


def walk_remote(client: FTPClient, root: str, prefix: str = "") -> List[RemoteTreeItem]:
    """
    List every file and directory below a remote root.

    Args:
        client: Connected FTP client
        root: Remote directory to walk
        prefix: Relative path of ``root`` inside the walk (internal)

    Returns:
        Items in depth-first order, each directory before its children
    """
    items: List[RemoteTreeItem] = []
    for entry in _children(client, root):
        relative = join_remote(prefix, entry.name) if prefix else entry.name
        if entry.is_dir:
            items.append(RemoteTreeItem(relative_path=relative, is_dir=True))
            items.extend(walk_remote(client, join_remote(root, entry.name), relative))
        else:
            items.append(RemoteTreeItem(relative_path=relative, is_dir=False, size=entry.size))
    return items
