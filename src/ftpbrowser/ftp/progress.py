"""Progress-reporting byte relay for FTP Browser transfers.

ProgressStream sits on the byte path of an upload (as the file object
handed to storbinary) or a download (as the retrbinary callback) and
reports throttled progress to an event sink.
"""

import time
from typing import BinaryIO, Callable, Optional, Tuple

from ftpbrowser.ftp.exceptions import FTPTransferError
from ftpbrowser.utils.events import EventSink, TransferProgress

# Block size for the transfer loop (16KB)
BUFFER_SIZE = 16 * 1024

# Emit at most once per this many bytes...
PROGRESS_BYTES = 128 * 1024

# ...or once per this many seconds, whichever comes first
PROGRESS_INTERVAL = 0.25


class ProgressStream:
    """
    Counts bytes moving between a source and a target and reports them.

    Read side: wrap a local file and pass the stream to ``storbinary``.
    Write side: pass ``stream.write`` as the ``retrbinary`` callback.

    A retried transfer passes the highest count already reported as
    ``floor``; events below it are held back so the reported count
    never goes down for one transfer id. Local read and write failures
    are raised as FTPTransferError naming ``route``.
    """

    def __init__(
        self,
        transfer_id: str,
        sink: EventSink,
        total: Optional[int] = None,
        source: Optional[BinaryIO] = None,
        target: Optional[BinaryIO] = None,
        clock: Callable[[], float] = time.monotonic,
        floor: int = 0,
        route: Tuple[str, str] = ("", "")
    ):
        """
        Initialize the stream.

        Args:
            transfer_id: Caller-supplied id used on every progress event
            sink: Receiver of progress events
            total: Expected size in bytes, None if unknown
            source: Readable binary file for uploads
            target: Writable binary file for downloads
            clock: Monotonic time source in seconds
            floor: Count reported by an earlier attempt of the same transfer
            route: (source, target) names used in error messages
        """
        self._id = transfer_id
        self._sink = sink
        self._total = total
        self._source = source
        self._target = target
        self._clock = clock
        self._floor = floor
        self._route = route
        self._reported = floor
        self._transferred = 0
        self._last_emit = 0
        self._last_tick = clock()
        self._finished = False

    @property
    def transferred(self) -> int:
        """Bytes moved so far."""
        return self._transferred

    @property
    def reported(self) -> int:
        """Highest count sent to the sink, including the floor."""
        return self._reported

    @property
    def finished(self) -> bool:
        """True once the final progress event was emitted."""
        return self._finished

    def read(self, size: int = -1) -> bytes:
        """Read from the source, counting what was read."""
        try:
            data = self._source.read(size)
        except OSError as e:
            raise FTPTransferError(*self._route, e) from e
        if data:
            self._advance(len(data))
        else:
            self.finish()
        return data

    def write(self, block: bytes) -> None:
        """Write a block to the target, counting it."""
        try:
            self._target.write(block)
        except OSError as e:
            raise FTPTransferError(*self._route, e) from e
        self._advance(len(block))

    def finish(self) -> None:
        """Emit the final progress event (only once)."""
        if self._finished:
            return
        self._finished = True
        self._emit()

    def _advance(self, count: int) -> None:
        self._transferred += count
        now = self._clock()
        if (
            self._transferred - self._last_emit >= PROGRESS_BYTES
            or now - self._last_tick >= PROGRESS_INTERVAL
        ):
            self._emit()
            self._last_emit = self._transferred
            self._last_tick = now

    def _emit(self) -> None:
        if self._transferred < self._floor:
            return
        self._reported = self._transferred
        progress = TransferProgress(
            id=self._id,
            transferred=self._transferred,
            total=self._total,
        )
        self._sink.transfer_progress(progress)
