"""FTP Browser core.

Session and transport layer of the FTP Browser desktop file manager:
- ftp: connection, listing parser, transfers and remote copy
- config: settings, bookmarks and keyring-backed credentials
- utils: logging, events, validators and background tasks
- commands: the boundary the GUI calls into
"""

__version__ = "0.1.0"
