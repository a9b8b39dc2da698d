"""
StalenessOracle - Decides whether an existing thumbnail is still valid.
"""

import logging
import os
from enum import Enum
from typing import Optional

from .media_kind import thumbnail_name

THUMBS_DIR = 'thumbs'


class Staleness(Enum):
    UP_TO_DATE = 'up_to_date'
    NEEDS_GENERATION = 'needs_generation'


def thumbs_path(directory: str) -> str:
    """Path of the thumbnail directory belonging to an album."""
    return os.path.join(directory, THUMBS_DIR)


def thumbnail_path_for(source_path: str) -> str:
    """Path of the thumbnail belonging to a source file."""
    directory, filename = os.path.split(source_path)
    return os.path.join(thumbs_path(directory), thumbnail_name(filename))


class StalenessOracle:
    """
    Compares source and thumbnail timestamps.

    A thumbnail is up to date when it was modified at or after its source.
    Where the platform has a distinct inode change time (POSIX), the
    thumbnail's change time must also be at or after the source's, which
    catches copies and renames that preserve the modification time.
    Elsewhere only the modification time is compared.
    """

    def __init__(
        self,
        check_ctime: Optional[bool] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize oracle.

        Args:
            check_ctime: Also compare change times (default: on POSIX only)
            logger: Optional logger instance
        """
        if check_ctime is None:
            check_ctime = os.name == 'posix'
        self.check_ctime = check_ctime
        self.logger = logger or logging.getLogger(__name__)

    def needs_regeneration(self, source_path: str) -> Staleness:
        """
        Check whether the thumbnail for a source file must be (re)generated.

        Creates the thumbs/ directory next to the source if it is missing.

        Args:
            source_path: Path of the original file

        Returns:
            Staleness verdict

        Raises:
            OSError: If the metadata of the source cannot be read
        """
        os.makedirs(thumbs_path(os.path.dirname(source_path)), exist_ok=True)

        thumb_path = thumbnail_path_for(source_path)
        source_stat = os.stat(source_path)
        try:
            thumb_stat = os.stat(thumb_path)
        except FileNotFoundError:
            return Staleness.NEEDS_GENERATION

        thumb_is_new = thumb_stat.st_mtime_ns >= source_stat.st_mtime_ns
        if not thumb_is_new:
            self.logger.debug(
                f"Thumbnail outdated (mtime): {thumb_path} "
                f"{thumb_stat.st_mtime_ns} < {source_stat.st_mtime_ns}"
            )

        if self.check_ctime and thumb_stat.st_ctime_ns < source_stat.st_ctime_ns:
            self.logger.debug(
                f"Thumbnail outdated (ctime): {thumb_path} "
                f"{thumb_stat.st_ctime_ns} < {source_stat.st_ctime_ns}"
            )
            thumb_is_new = False

        if thumb_is_new:
            return Staleness.UP_TO_DATE
        return Staleness.NEEDS_GENERATION
