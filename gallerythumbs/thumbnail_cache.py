"""
ThumbnailCache - Shared map from source path to thumbnail metadata.
"""

import os
import threading
from typing import Dict, Iterable, List, Optional

from .thumbnail_record import ThumbnailRecord


class ThumbnailCache:
    """
    Thread-safe cache of ThumbnailRecords for one album.

    Written by the album's scanner workers, read by HTTP handlers. The lock
    only guards dictionary operations, no I/O happens while it is held.
    Records are immutable, so snapshots can be handed out without copying
    them.
    """

    def __init__(self):
        self._records: Dict[str, ThumbnailRecord] = {}
        self._lock = threading.Lock()

    def get_snapshot(self) -> List[ThumbnailRecord]:
        """Point-in-time list of all records, in no particular order."""
        with self._lock:
            return list(self._records.values())

    def get(self, source_path: str) -> Optional[ThumbnailRecord]:
        with self._lock:
            return self._records.get(source_path)

    def get_or_unknown(self, source_path: str) -> ThumbnailRecord:
        """Cached record, or a record with unknown dimensions on a miss."""
        record = self.get(source_path)
        if record is None:
            return ThumbnailRecord.unknown(os.path.basename(source_path))
        return record

    def upsert(self, source_path: str, record: ThumbnailRecord) -> None:
        """Insert or replace the record for a source file."""
        with self._lock:
            self._records[source_path] = record

    def retain(self, source_paths: Iterable[str]) -> List[str]:
        """
        Drop every record whose source is not in source_paths.

        Returns:
            The removed source paths
        """
        keep = set(source_paths)
        with self._lock:
            removed = [key for key in self._records if key not in keep]
            for key in removed:
                del self._records[key]
        return removed

    def __contains__(self, source_path: str) -> bool:
        with self._lock:
            return source_path in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
