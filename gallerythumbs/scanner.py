"""
Scanner - Scans an album, regenerates stale thumbnails and evicts orphans.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, List, Optional

from .media_kind import MediaKind, classify
from .scan_stats import ScanStats
from .staleness import Staleness, StalenessOracle, thumbs_path
from .thumbnail_cache import ThumbnailCache
from .thumbnail_generator import ProbeError, ThumbnailError, ThumbnailGenerator
from .thumbnail_record import ThumbnailRecord

GENERATED = 'generated'
PROBED = 'probed'


@dataclass
class ScanItem:
    """A supported source file found by a scan."""
    source_path: str
    record: ThumbnailRecord
    staleness: Optional[Staleness] = None

    @property
    def thumbnail_path(self) -> str:
        directory = os.path.dirname(self.source_path)
        return os.path.join(thumbs_path(directory), self.record.thumbnail_filename)


class Scanner:
    """
    Keeps the thumbnails and the cache of one album in sync with its originals.

    A scan lists the album, asks the oracle which thumbnails are stale,
    regenerates them (and on the first run probes the fresh ones) on a
    thread pool, stores the results in the cache and finally deletes
    thumbnails whose original is gone.
    """

    # Keeps empty album directories under version control
    PLACEHOLDER_NAME = '.gitkeep'

    def __init__(
        self,
        cache: ThumbnailCache,
        thumbnail_generator: ThumbnailGenerator,
        oracle: Optional[StalenessOracle] = None,
        max_workers: Optional[int] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scanner.

        Args:
            cache: Cache of the album, shared with the HTTP handlers
            thumbnail_generator: Thumbnail generator instance
            oracle: Staleness oracle (default: platform default oracle)
            max_workers: Size of the worker pool (default: CPU count)
            logger: Optional logger instance
        """
        self.cache = cache
        self.thumb_gen = thumbnail_generator
        self.logger = logger or logging.getLogger(__name__)
        self.oracle = oracle or StalenessOracle(logger=self.logger)
        self.max_workers = max_workers or os.cpu_count() or 1

    def scan(self, directory: str, is_first_run: bool = False) -> ScanStats:
        """
        Scan an album directory.

        Args:
            directory: Album directory
            is_first_run: True for the startup scan, which probes the
                dimensions of every up-to-date thumbnail to warm the cache

        Returns:
            ScanStats with results

        Raises:
            OSError: If the directory itself cannot be listed
        """
        directory = os.path.abspath(directory)
        stats = ScanStats(directory=directory, first_run=is_first_run)
        self.logger.info(f"Scanning for thumbnails: {directory}")

        items = self.list_candidates(directory, stats)
        stats.candidates = len(items)

        to_probe: List[ScanItem] = []
        to_generate: List[ScanItem] = []

        for item in items:
            try:
                item.staleness = self.oracle.needs_regeneration(item.source_path)
            except OSError as e:
                self.logger.warning(f"Failed to check thumbnail for {item.record.source_name}: {e}")
                stats.add_error(f"{item.record.source_name}: {e}")
                continue

            if item.staleness == Staleness.UP_TO_DATE:
                stats.up_to_date += 1
                # Rescans only probe thumbnails that appeared without a
                # regeneration or whose last probe failed
                cached = self.cache.get(item.source_path)
                if is_first_run or cached is None or not cached.has_dimensions:
                    to_probe.append(item)
            else:
                stats.stale += 1
                to_generate.append(item)

        if to_probe or to_generate:
            self._run_parallel(to_probe, to_generate, stats)

        self.evict(directory, items, stats)

        stats.finish()
        self.logger.info(f"Scan complete for {directory}: {stats.summary()}")
        return stats

    def list_candidates(self, directory: str, stats: Optional[ScanStats] = None) -> List[ScanItem]:
        """
        List the supported source files directly inside a directory.

        Subdirectories, the placeholder file, names that are not valid
        unicode and unsupported extensions are skipped. Entries that cannot
        be inspected are logged and skipped. When an image and a video map
        to the same thumbnail name only the image is kept.
        """
        items = []

        with os.scandir(directory) as entries:
            for entry in entries:
                name = entry.name
                try:
                    name.encode('utf-8')
                except UnicodeEncodeError:
                    self.logger.warning(f"Filename is not valid unicode: {name!r}")
                    continue

                try:
                    if not entry.is_file():
                        continue
                except OSError as e:
                    self.logger.warning(f"Cannot read directory entry {name}: {e}")
                    if stats:
                        stats.add_error(f"{name}: {e}")
                    continue

                if name == self.PLACEHOLDER_NAME:
                    continue
                if classify(name) == MediaKind.UNSUPPORTED:
                    continue

                items.append(ScanItem(
                    source_path=os.path.join(directory, name),
                    record=ThumbnailRecord.for_source(name),
                ))

        return self._drop_colliding(items)

    def _drop_colliding(self, items: List[ScanItem]) -> List[ScanItem]:
        """Keep one candidate per thumbnail name, images before videos."""
        kept: Dict[str, ScanItem] = {}
        ordered = sorted(
            items,
            key=lambda item: (classify(item.record.source_name) != MediaKind.IMAGE, item.record.source_name),
        )
        for item in ordered:
            thumb = item.record.thumbnail_filename
            if thumb in kept:
                self.logger.warning(
                    f"Skipping {item.record.source_name}: thumbnail {thumb} "
                    f"already belongs to {kept[thumb].record.source_name}"
                )
                continue
            kept[thumb] = item
        return list(kept.values())

    def evict(self, directory: str, items: List[ScanItem], stats: ScanStats) -> None:
        """
        Delete thumbnails and cache entries whose original is gone.

        Args:
            directory: Album directory
            items: All current candidates of the album
            stats: Stats to update
        """
        self.cache.retain(item.source_path for item in items)

        keep = {item.record.thumbnail_filename for item in items}
        try:
            entries = list(os.scandir(thumbs_path(directory)))
        except FileNotFoundError:
            return
        except OSError as e:
            self.logger.warning(f"Cannot list thumbnails of {directory}: {e}")
            return

        for entry in entries:
            if entry.name in keep or entry.name == self.PLACEHOLDER_NAME:
                continue
            try:
                if entry.is_dir():
                    continue
                self.logger.debug(f"Removing outdated thumbnail: {entry.name}")
                os.remove(entry.path)
                stats.evicted += 1
            except OSError as e:
                self.logger.warning(f"Failed to remove outdated thumbnail {entry.name}: {e}")

    def _run_parallel(
        self,
        to_probe: List[ScanItem],
        to_generate: List[ScanItem],
        stats: ScanStats
    ) -> None:
        """Run probe and generation work items on the worker pool."""
        self.logger.debug(
            f"Submitting {len(to_probe)} probes and {len(to_generate)} generations "
            f"to {self.max_workers} workers"
        )

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='thumbs') as pool:
            futures = {}
            for item in to_probe:
                futures[pool.submit(self._probe_item, item)] = item
            for item in to_generate:
                futures[pool.submit(self._generate_item, item)] = item

            for future in as_completed(futures):
                item = futures[future]
                try:
                    outcome = future.result()
                except ThumbnailError as e:
                    self.logger.warning(f"Failed to process {item.source_path}: {e}")
                    stats.add_error(f"{item.record.source_name}: {e}")
                    continue

                if outcome == GENERATED:
                    stats.generated += 1
                elif outcome == PROBED:
                    stats.probed += 1

    def _probe_item(self, item: ScanItem) -> str:
        """
        Read the size of an up-to-date thumbnail and cache it.

        The record is cached without dimensions if the probe fails.
        """
        try:
            width, height = self.thumb_gen.probe_dimensions(item.thumbnail_path)
        except ProbeError:
            self.cache.upsert(item.source_path, item.record)
            raise

        self.logger.debug(f"Got thumbnail size for {item.record.source_name}: {width}x{height}")
        self.cache.upsert(item.source_path, item.record.with_dimensions(width, height))
        return PROBED

    def _generate_item(self, item: ScanItem) -> str:
        """
        Render a thumbnail, then probe and cache it.

        A thumbnail that was written but cannot be probed is still cached,
        without dimensions, before the probe error is raised.
        """
        self.thumb_gen.generate(item.source_path, item.thumbnail_path)

        try:
            width, height = self.thumb_gen.probe_dimensions(item.thumbnail_path)
        except ProbeError:
            self.cache.upsert(item.source_path, item.record)
            raise

        self.logger.debug(f"Generated thumbnail for {item.record.source_name}: {width}x{height}")
        self.cache.upsert(item.source_path, item.record.with_dimensions(width, height))
        return GENERATED
