"""
ScanStats - Statistics for a single scan of an album.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ScanStats:
    """
    Statistics for one scan of an album.

    Attributes:
        directory: Album directory that was scanned
        first_run: Whether this was the startup scan
        candidates: Supported source files found
        up_to_date: Sources whose thumbnail needed no regeneration
        stale: Sources queued for (re)generation
        generated: Thumbnails (re)generated successfully
        probed: Existing thumbnails whose size was read
        evicted: Orphaned thumbnails deleted
        errors: Files that failed at any stage
        start_time: Start timestamp
        end_time: End timestamp, None while the scan runs
        error_details: List of error messages
    """
    directory: str = ''
    first_run: bool = False
    candidates: int = 0
    up_to_date: int = 0
    stale: int = 0
    generated: int = 0
    probed: int = 0
    evicted: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    error_details: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors += 1
        self.error_details.append(message)

    def finish(self) -> None:
        self.end_time = time.time()

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        end = self.end_time if self.end_time is not None else time.time()
        return end - self.start_time

    def summary(self) -> str:
        return (
            f"{self.candidates} files, {self.up_to_date} up to date, "
            f"{self.generated} generated, {self.probed} probed, "
            f"{self.evicted} evicted, {self.errors} errors "
            f"({self.elapsed_seconds:.1f}s)"
        )
