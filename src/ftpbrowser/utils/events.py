"""Event sinks for FTP Browser.

The core never talks to a window directly. Every transfer call receives
an EventSink and reports log lines, progress and outcomes through it.
Delivery is fire-and-forget: a sink that fails is logged and ignored.
"""

import logging
import queue
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger("ftpbrowser.events")

# Event type names as seen by the GUI
LOG = "log"
TRANSFER_PROGRESS = "transfer-progress"
TRANSFER_COMPLETE = "transfer-complete"
TRANSFER_ERROR = "transfer-error"


def now_millis() -> int:
    """Current wall clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass
class LogEntry:
    """A user-visible log line."""
    level: str
    message: str
    timestamp: int


@dataclass
class TransferProgress:
    """Progress information for a single transfer."""
    id: str
    transferred: int
    total: Optional[int] = None

    @property
    def percent(self) -> Optional[float]:
        """Progress as percentage (0-100), None when the total is unknown."""
        if self.total is None:
            return None
        if self.total == 0:
            return 100.0
        return (self.transferred / self.total) * 100.0

    def to_dict(self) -> dict:
        """Event payload for the GUI; total is omitted when unknown."""
        payload = {"id": self.id, "transferred": self.transferred}
        if self.total is not None:
            payload["total"] = self.total
        return payload


@dataclass
class TransferDone:
    """A transfer finished successfully."""
    id: str


@dataclass
class TransferFailed:
    """A transfer finished with an error."""
    id: str
    message: str


class EventSink:
    """Base class for event receivers; subclasses implement deliver()."""

    def deliver(self, event_type: str, payload: Any) -> None:
        raise NotImplementedError

    def _emit(self, event_type: str, payload: Any) -> None:
        try:
            self.deliver(event_type, payload)
        except Exception as e:
            logger.debug(f"Dropped {event_type} event: {e}")

    def log(self, level: str, message: str) -> None:
        """Emit a user-visible log line."""
        self._emit(LOG, LogEntry(level=level, message=message, timestamp=now_millis()))

    def transfer_progress(self, progress: TransferProgress) -> None:
        """Emit a progress update."""
        self._emit(TRANSFER_PROGRESS, progress)

    def transfer_complete(self, transfer_id: str) -> None:
        """Emit the success outcome of a transfer."""
        self._emit(TRANSFER_COMPLETE, TransferDone(id=transfer_id))

    def transfer_error(self, transfer_id: str, message: str) -> None:
        """Emit the failure outcome of a transfer."""
        self._emit(TRANSFER_ERROR, TransferFailed(id=transfer_id, message=message))


class NullEventSink(EventSink):
    """Sink that discards every event."""

    def deliver(self, event_type: str, payload: Any) -> None:
        pass


class CallbackEventSink(EventSink):
    """Sink that forwards every event to a callable."""

    def __init__(self, callback: Callable[[str, Any], None]):
        self._callback = callback

    def deliver(self, event_type: str, payload: Any) -> None:
        self._callback(event_type, payload)


class QueueEventSink(EventSink):
    """
    Thread-safe queue for passing events from worker threads to the GUI.

    Usage:
        # In main thread:
        events = QueueEventSink()
        commands = FTPCommands(session, events)

        # In GUI update loop (main thread):
        def poll_events():
            for event_type, payload in events.get_all():
                if event_type == "transfer-progress":
                    progress_bar.set(payload.percent)
                elif event_type == "log":
                    log_view.append(payload.message)
            root.after(100, poll_events)
    """

    def __init__(self):
        """Initialize the event queue."""
        self._queue: queue.Queue[tuple[str, Any]] = queue.Queue()

    def deliver(self, event_type: str, payload: Any) -> None:
        self._queue.put((event_type, payload))

    def get(self) -> Optional[tuple[str, Any]]:
        """
        Get a single event from the queue.

        Returns:
            Tuple of (event_type, payload) or None if empty
        """
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def get_all(self) -> list[tuple[str, Any]]:
        """
        Get all pending events from the queue.

        Returns:
            List of (event_type, payload) tuples
        """
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return events

    def clear(self) -> None:
        """Clear all pending events."""
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
