"""
WatcherLoop - Keeps one album's thumbnails fresh for the process lifetime.
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .debouncer import Debouncer, EventBatch, WatchError
from .scanner import Scanner
from .staleness import thumbs_path
from .thumbnail_cache import ThumbnailCache

# Access notifications never change the album contents
ACCESS_EVENT_TYPES = frozenset({'opened', 'closed', 'closed_no_write'})

THUMBS_DIR_RESCAN_EVENT_TYPES = frozenset({'deleted', 'moved'})


class WatchState(Enum):
    INIT = 'init'
    FIRST_SCAN = 'first_scan'
    WATCHING = 'watching'
    RESCANNING = 'rescanning'
    TERMINATED = 'terminated'


@dataclass
class WatchTarget:
    """
    A monitored album directory and its thumbnail cache.

    Attributes:
        directory: Absolute path of the album
        cache: Cache shared between the watcher and the HTTP handlers
    """
    directory: str
    cache: ThumbnailCache = field(default_factory=ThumbnailCache)

    @property
    def name(self) -> str:
        return os.path.basename(self.directory.rstrip(os.sep))


def triggers_rescan(batch: EventBatch) -> bool:
    """True if any event in the batch may have changed the album contents."""
    if batch.overflowed:
        return True
    return any(event.event_type not in ACCESS_EVENT_TYPES for event in batch.events)


class _AlbumEventHandler(FileSystemEventHandler):
    """Forwards watchdog events of one album to its debouncer."""

    def __init__(self, debouncer: Debouncer, thumbs_dir: str):
        super().__init__()
        self.debouncer = debouncer
        self.thumbs_dir = thumbs_dir

    def on_any_event(self, event: FileSystemEvent) -> None:
        src_path = os.fsdecode(event.src_path)
        # Our own writes to thumbs/ must not trigger another scan
        if src_path.startswith(self.thumbs_dir + os.sep):
            return
        # Removing or renaming thumbs/ itself invalidates every thumbnail
        if src_path == self.thumbs_dir and event.event_type not in THUMBS_DIR_RESCAN_EVENT_TYPES:
            return
        self.debouncer.push(event)


class WatcherLoop:
    """
    Scans an album at startup and again after every burst of changes.

    States:
        INIT -> FIRST_SCAN -> WATCHING -> RESCANNING -> WATCHING ... -> TERMINATED

    The loop terminates on a watch error (observer failed or died, channel
    closed); the album is then no longer monitored until restart. Loops of
    different albums are fully independent.
    """

    OBSERVER_JOIN_TIMEOUT = 2.0

    def __init__(
        self,
        target: WatchTarget,
        scanner: Scanner,
        quiet_period: float = 10.0,
        health_interval: float = 5.0,
        observer_factory: Callable[[], Observer] = Observer,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize watcher loop.

        Args:
            target: Album to watch
            scanner: Scanner writing into target.cache
            quiet_period: Seconds of silence that end an event burst
            health_interval: Seconds between observer liveness checks
            observer_factory: Creates the watchdog observer
            logger: Optional logger instance
        """
        self.target = target
        self.scanner = scanner
        self.health_interval = health_interval
        self.observer_factory = observer_factory
        self.logger = logger or logging.getLogger(__name__)
        self.debouncer = Debouncer(quiet_period=quiet_period, logger=self.logger)
        self.state = WatchState.INIT
        self.scan_count = 0
        self._stop_requested = False
        self._thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        """Run the loop on a daemon thread."""
        self._thread = threading.Thread(
            target=self.run,
            name=f"watch-{self.target.name}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        """Request the loop to terminate and wait for its thread."""
        self._stop_requested = True
        self.debouncer.close()
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        """Run the state machine until a watch error or stop()."""
        directory = self.target.directory
        self.state = WatchState.INIT

        try:
            observer = self.observer_factory()
            handler = _AlbumEventHandler(self.debouncer, os.path.abspath(thumbs_path(directory)))
            observer.schedule(handler, directory, recursive=False)
            observer.start()
        except Exception as e:
            self.logger.error(f"Cannot watch directory {directory}: {e}")
            self.state = WatchState.TERMINATED
            return

        try:
            self.state = WatchState.FIRST_SCAN
            self._scan(is_first_run=True)

            while True:
                self.state = WatchState.WATCHING
                batch = self.debouncer.next_batch(timeout=self.health_interval)

                if batch is None:
                    if not observer.is_alive():
                        raise WatchError("Observer thread stopped")
                    continue

                if triggers_rescan(batch):
                    self.logger.debug(f"Got {len(batch)} notify events for {directory}")
                    self.state = WatchState.RESCANNING
                    self._scan(is_first_run=False)

        except WatchError as e:
            if self._stop_requested:
                self.logger.info(f"Stopped watching {directory}")
            else:
                self.logger.error(f"Watch error for {directory}: {e}")
        finally:
            self.state = WatchState.TERMINATED
            observer.stop()
            observer.join(timeout=self.OBSERVER_JOIN_TIMEOUT)

    def _scan(self, is_first_run: bool) -> None:
        try:
            self.scanner.scan(self.target.directory, is_first_run)
        except OSError as e:
            self.logger.error(f"Error when scanning {self.target.directory}: {e}")
        self.scan_count += 1
