"""Job cancellation

Responsibilities:
- Carry a job-level cancellation signal to every stage
- Terminate registered external processes when the job is cancelled
- Expose an optional deadline checked at operation-start boundaries

Cancelling is a hard stop: in-flight process trees are terminated.
Passing the deadline is a soft stop: nothing new starts, but running
transforms are allowed to finish.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional

from .exceptions import JobCancelled

logger = logging.getLogger(__name__)

class CancellationToken:
    """Thread-safe cancellation signal shared by one job."""

    def __init__(self, deadline: Optional[float] = None):
        """
        Args:
            deadline: Absolute time.monotonic() value after which no new
                operation may start
        """
        self.deadline = deadline
        self.reason: Optional[str] = None
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._next_id = 0

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        return cls(deadline=time.monotonic() + seconds)

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called."""
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def should_stop(self) -> bool:
        """Checked before starting any operation."""
        return self.cancelled or self.expired

    def raise_if_stopped(self) -> None:
        if self.cancelled:
            raise JobCancelled(self.reason or "cancelled")
        if self.expired:
            raise JobCancelled("deadline exceeded")

    def cancel(self, reason: str = "cancelled") -> None:
        """Signal cancellation and run every registered callback once."""
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason
            self._event.set()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        logger.warning("Job cancelled: %s", reason)
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error("Cancellation callback failed: %s", e)

    def register(self, callback: Callable[[], None]) -> int:
        """
        Register a callback run on cancellation.

        If the token is already cancelled the callback runs immediately.

        Returns:
            Handle for unregister()
        """
        with self._lock:
            handle = self._next_id
            self._next_id += 1
            if not self._event.is_set():
                self._callbacks[handle] = callback
                return handle
        callback()
        return handle

    def unregister(self, handle: int) -> None:
        with self._lock:
            self._callbacks.pop(handle, None)

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)
