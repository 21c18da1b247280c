"""Worker threads for FTP commands.

A GUI must not block on the network, so each command can be handed to a
ThreadedTask. Commands still reach the server one at a time because the
session holds its own lock; a task only moves the wait off the caller.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger("ftpbrowser.tasks")

T = TypeVar("T")


class TaskStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class TaskResult(Generic[T]):
    """Outcome of a task: a return value or the exception it raised."""
    status: TaskStatus
    result: Optional[T] = None
    error: Optional[Exception] = None


class ThreadedTask(Generic[T]):
    """
    One call of ``target`` on a daemon thread.

    Example:
        task = ThreadedTask(commands.list_dir, args=("/pub",),
                            on_complete=window.show_listing)
        task.start()

    ``on_complete`` runs on the worker thread once the result is known;
    a GUI should marshal it back onto its own thread. An exception from
    the callback is logged and does not affect the stored result.
    """

    def __init__(
        self,
        target: Callable[..., T],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        on_complete: Optional[Callable[[TaskResult[T]], None]] = None,
        name: Optional[str] = None
    ):
        self._call = (target, args, kwargs or {})
        self._on_complete = on_complete
        self._name = name or f"ftp-command-{getattr(target, '__name__', 'task')}"

        self._status = TaskStatus.PENDING
        self._result: Optional[TaskResult[T]] = None
        self._done = threading.Event()

    @property
    def name(self) -> str:
        return self._name

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status is TaskStatus.RUNNING

    def start(self) -> None:
        """Launch the worker; a task can only be started once."""
        if self._status is not TaskStatus.PENDING:
            raise RuntimeError("Task already started")

        self._status = TaskStatus.RUNNING
        threading.Thread(target=self._run, name=self._name, daemon=True).start()

    def _run(self) -> None:
        target, args, kwargs = self._call
        try:
            outcome = TaskResult(TaskStatus.COMPLETED, result=target(*args, **kwargs))
        except Exception as e:
            logger.debug(f"{self._name} failed: {e}")
            outcome = TaskResult(TaskStatus.FAILED, error=e)

        self._result = outcome
        self._status = outcome.status
        self._done.set()

        if self._on_complete is not None:
            try:
                self._on_complete(outcome)
            except Exception:
                logger.exception(f"Completion callback of {self._name} raised")

    def get_result(self, timeout: Optional[float] = None) -> TaskResult[T]:
        """
        Block until the task has finished.

        Args:
            timeout: Seconds to wait, None waits forever

        Returns:
            The task's TaskResult, or a PENDING one if it was never started

        Raises:
            TimeoutError: The task is still running after ``timeout``
        """
        if self._status is TaskStatus.PENDING:
            return TaskResult(TaskStatus.PENDING)
        if not self._done.wait(timeout):
            raise TimeoutError(f"{self._name} did not complete within timeout")
        return self._result
