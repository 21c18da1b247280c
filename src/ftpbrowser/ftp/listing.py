"""Directory listing parser for FTP Browser.

Turns raw LIST output into ListingEntry objects. Servers do not agree on
a listing format, so each line is matched against the DOS/IIS shape
first, then the Unix ``ls -l`` shape, and finally kept as a bare name.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

logger = logging.getLogger("ftpbrowser.listing")

DIR_MARKER = "<DIR>"


@dataclass
class ListingEntry:
    """One entry of a remote directory listing."""
    name: str
    size: Optional[int] = None
    modified: Optional[str] = None
    is_dir: bool = False
    raw: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert entry to a plain dictionary for the GUI."""
        return {
            "name": self.name,
            "size": self.size,
            "modified": self.modified,
            "is_dir": self.is_dir,
            "raw": self.raw,
        }


def _parse_size(token: str) -> Optional[int]:
    if token.isascii() and token.isdigit():
        return int(token)
    return None


def _entry_name(tokens: List[str]) -> str:
    name = " ".join(tokens).strip()
    if name in (".", ".."):
        return ""
    return name


def parse_list_line(line: str) -> Optional[ListingEntry]:
    """
    Parse a single listing line.

    Args:
        line: Raw line from the LIST command

    Returns:
        ListingEntry, or None for blank lines and '.'/'..' entries
    """
    trimmed = line.strip()
    if not trimmed:
        return None

    parts = trimmed.split()

    # DOS / IIS: "01-15-24  10:30AM  <DIR>  folder"
    if len(parts) >= 4 and "-" in parts[0] and ":" in parts[1]:
        is_dir = parts[2].upper() == DIR_MARKER
        name = _entry_name(parts[3:])
        if not name:
            return None
        return ListingEntry(
            name=name,
            size=None if is_dir else _parse_size(parts[2]),
            modified=f"{parts[0]} {parts[1]}",
            is_dir=is_dir,
            raw=trimmed,
        )

    # Unix: "drwxr-xr-x 2 user group 4096 Jan 01 00:00 name"
    if len(parts) >= 9:
        name = _entry_name(parts[8:])
        if not name:
            return None
        return ListingEntry(
            name=name,
            size=_parse_size(parts[4]),
            modified=" ".join(parts[5:8]),
            is_dir=parts[0].startswith("d"),
            raw=trimmed,
        )

    logger.debug(f"Unrecognized listing line, keeping as name: {trimmed!r}")
    return ListingEntry(name=trimmed, raw=trimmed)


def parse_listing(lines: Iterable[str]) -> List[ListingEntry]:
    """
    Parse a full directory listing.

    Args:
        lines: Raw listing lines in server order

    Returns:
        Parsed entries in the same order, blank and dot entries removed
    """
    entries = []
    for line in lines:
        entry = parse_list_line(line)
        if entry is not None:
            entries.append(entry)
    return entries
