"""
Debouncer - Coalesces bursts of filesystem events into single batches.
"""

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, List, Optional


class WatchError(Exception):
    """Raised when the event channel of a watch fails or is closed."""
    pass


class _Failure:
    def __init__(self, error: BaseException):
        self.error = error


_CLOSED = object()


@dataclass
class EventBatch:
    """
    Events that arrived within one quiet window.

    Attributes:
        events: The coalesced events, oldest first
        overflowed: True if events were dropped because the channel was full
    """
    events: List[Any] = field(default_factory=list)
    overflowed: bool = False

    def __len__(self) -> int:
        return len(self.events)


class Debouncer:
    """
    Bounded event channel with a quiet-window coalescing stage.

    Producers (the watchdog observer thread) call push(). The consumer calls
    next_batch(), which blocks for the first event and then keeps draining
    until no new event arrived for quiet_period seconds, so a bulk copy
    collapses into one batch.

    When the channel is full an event is dropped and the next batch is
    flagged as overflowed; a batch is pending in that case anyway, so the
    consumer still gets its trigger.
    """

    def __init__(
        self,
        quiet_period: float = 10.0,
        maxsize: int = 4096,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize debouncer.

        Args:
            quiet_period: Seconds without events that end a batch
            maxsize: Capacity of the event channel
            logger: Optional logger instance
        """
        self.quiet_period = quiet_period
        self.logger = logger or logging.getLogger(__name__)
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._overflowed = False
        self._lock = threading.Lock()

    def push(self, event: Any) -> None:
        """Add an event without blocking the producer."""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with self._lock:
                if not self._overflowed:
                    self.logger.debug("Event channel full, coalescing further events")
                self._overflowed = True

    def fail(self, error: BaseException) -> None:
        """Report a terminal watch error to the consumer."""
        self._put_control(_Failure(error))

    def close(self) -> None:
        """Close the channel; the consumer gets a WatchError."""
        self._put_control(_CLOSED)

    def next_batch(self, timeout: Optional[float] = None) -> Optional[EventBatch]:
        """
        Wait for the next coalesced batch of events.

        Args:
            timeout: Seconds to wait for the first event, None to wait forever

        Returns:
            EventBatch, or None if no event arrived within timeout

        Raises:
            WatchError: If the channel failed or was closed
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

        batch = EventBatch()
        self._take(item, batch)

        while True:
            try:
                item = self._queue.get(timeout=self.quiet_period)
            except queue.Empty:
                break
            self._take(item, batch)

        with self._lock:
            batch.overflowed = self._overflowed
            self._overflowed = False

        return batch

    def _take(self, item: Any, batch: EventBatch) -> None:
        if item is _CLOSED:
            raise WatchError("Event channel closed")
        if isinstance(item, _Failure):
            raise WatchError(str(item.error)) from item.error
        batch.events.append(item)

    def _put_control(self, item: Any) -> None:
        # Control messages must not be lost to a full channel
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass
                with self._lock:
                    self._overflowed = True
