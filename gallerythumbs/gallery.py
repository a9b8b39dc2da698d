"""
Gallery - Discovers albums and wires caches, scanners and watchers together.
"""

import fnmatch
import logging
import os
from typing import Callable, Dict, List, Optional

from watchdog.observers import Observer

from .gallery_config import GalleryConfig
from .scanner import Scanner
from .thumbnail_generator import ThumbnailGenerator
from .thumbnail_record import ThumbnailRecord
from .watcher import WatcherLoop, WatchTarget


def discover_albums(root_path: str, pattern: str = '*') -> List[str]:
    """
    Find album directories directly inside the gallery root.

    Args:
        root_path: Gallery root
        pattern: Glob pattern album names must match

    Returns:
        Sorted absolute paths of the albums
    """
    albums = []
    with os.scandir(root_path) as entries:
        for entry in entries:
            if entry.name.startswith('.'):
                continue
            if not fnmatch.fnmatch(entry.name, pattern):
                continue
            if entry.is_dir():
                albums.append(os.path.abspath(entry.path))
    return sorted(albums)


def create_thumbnail_generator(config: GalleryConfig, logger: Optional[logging.Logger] = None) -> ThumbnailGenerator:
    """Create a thumbnail generator from the gallery configuration."""
    return ThumbnailGenerator(
        size=config.thumb_size,
        jpeg_size_kb=config.jpeg_size_kb,
        timeout=config.tool_timeout,
        resize_tool=config.resize_tool,
        optimize_tool=config.optimize_tool,
        probe_tool=config.probe_tool,
        logger=logger,
    )


class Gallery:
    """
    Owns one WatchTarget, Scanner and WatcherLoop per album.

    The caches created here are the ones the HTTP handlers read; each is
    written only by the watcher of its own album.
    """

    def __init__(
        self,
        config: GalleryConfig,
        observer_factory: Callable[[], Observer] = Observer,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize gallery.

        Args:
            config: Gallery configuration
            observer_factory: Creates the watchdog observer of each album
            logger: Optional logger instance
        """
        self.config = config
        self.observer_factory = observer_factory
        self.logger = logger or logging.getLogger(__name__)
        self.thumb_gen = create_thumbnail_generator(config, self.logger)
        self.targets: Dict[str, WatchTarget] = {}
        self.watchers: Dict[str, WatcherLoop] = {}

    def discover(self) -> List[WatchTarget]:
        """Create targets and watchers for all albums below the root."""
        for directory in discover_albums(self.config.root_path, self.config.album_pattern):
            self.add_album(directory)

        self.logger.info(f"Albums: {sorted(self.targets)}")
        return list(self.targets.values())

    def add_album(self, directory: str) -> WatchTarget:
        """Create the target and watcher for a single album."""
        target = WatchTarget(directory=os.path.abspath(directory))
        if target.name in self.targets:
            return self.targets[target.name]

        scanner = self.create_scanner(target)
        self.targets[target.name] = target
        self.watchers[target.name] = WatcherLoop(
            target,
            scanner,
            quiet_period=self.config.quiet_period,
            observer_factory=self.observer_factory,
            logger=self.logger,
        )
        return target

    def create_scanner(self, target: WatchTarget) -> Scanner:
        return Scanner(
            target.cache,
            self.thumb_gen,
            max_workers=self.config.max_workers,
            logger=self.logger,
        )

    def start(self) -> None:
        """Start the watcher thread of every album."""
        for name, watcher in self.watchers.items():
            self.logger.info(f"Watching album: {name}")
            watcher.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        for watcher in self.watchers.values():
            watcher.stop(timeout)

    def albums(self) -> List[str]:
        return sorted(self.targets)

    def target(self, album: str) -> Optional[WatchTarget]:
        return self.targets.get(album)

    def records(self, album: str) -> List[ThumbnailRecord]:
        """
        Current thumbnail records of an album.

        Raises:
            KeyError: If the album is unknown
        """
        return self.targets[album].cache.get_snapshot()
