"""
ThumbnailRecord - Cache entry for a single source file and its thumbnail.
"""

from dataclasses import dataclass, replace
from typing import Optional

from .media_kind import thumbnail_name


@dataclass(frozen=True)
class ThumbnailRecord:
    """
    Record for a single source file and its thumbnail.

    Attributes:
        source_name: File name of the original inside the album
        thumbnail_filename: File name of the thumbnail inside thumbs/
        width: Thumbnail width in pixels, None until probed
        height: Thumbnail height in pixels, None until probed
    """
    source_name: str
    thumbnail_filename: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def for_source(cls, source_name: str) -> 'ThumbnailRecord':
        """Create a record for a newly discovered source file."""
        return cls(
            source_name=source_name,
            thumbnail_filename=thumbnail_name(source_name),
        )

    @classmethod
    def unknown(cls, source_name: str) -> 'ThumbnailRecord':
        """Fallback record used when a source is not (yet) cached."""
        return cls.for_source(source_name)

    @property
    def has_dimensions(self) -> bool:
        return self.width is not None and self.height is not None

    def with_dimensions(self, width: int, height: int) -> 'ThumbnailRecord':
        """Return a copy carrying the probed thumbnail size."""
        return replace(self, width=width, height=height)

    def to_dict(self) -> dict:
        """Convert to the JSON listing shape."""
        return {
            'name': self.source_name,
            'thumb': self.thumbnail_filename,
            'width': self.width,
            'height': self.height,
        }
