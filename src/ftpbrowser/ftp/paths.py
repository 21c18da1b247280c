"""Remote path helpers for FTP Browser.

FTP paths are plain '/'-separated strings; these helpers never touch
the local filesystem.
"""


def join_remote(base: str, name: str) -> str:
    """
    Join a remote directory and a child name with a single slash.

    Args:
        base: Remote directory path
        name: Child entry name

    Returns:
        base + name when base already ends in '/', else base + '/' + name
    """
    if base.endswith("/"):
        return f"{base}{name}"
    return f"{base}/{name}"


def normalize_cwd(cwd: str) -> str:
    """
    Normalize a working directory reported by the server.

    Empty or quote-only replies map to the root directory.

    Args:
        cwd: Raw directory string from PWD

    Returns:
        Trimmed directory path, "/" when nothing remains
    """
    trimmed = (cwd or "").strip().strip('"')
    if not trimmed:
        return "/"
    return trimmed
