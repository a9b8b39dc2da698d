"""
Thumbnail generation and caching for photo gallery albums

Keeps a thumbs/ directory next to the originals of every album up to date:
    1. Scan: find stale thumbnails, regenerate them in parallel and evict orphans
    2. Watch: rescan after every burst of filesystem changes
    3. Serve: expose the cached thumbnail sizes as JSON for gallery rendering

External tools: ImageMagick (magick, identify) and jpegoptim.
"""

__version__ = "1.0.0"

from .media_kind import MediaKind, classify, thumbnail_name
from .thumbnail_record import ThumbnailRecord
from .staleness import Staleness, StalenessOracle
from .thumbnail_generator import ThumbnailGenerator, ThumbnailError, ProbeError
from .thumbnail_cache import ThumbnailCache
from .scan_stats import ScanStats
from .scanner import Scanner
from .debouncer import Debouncer, EventBatch, WatchError
from .watcher import WatcherLoop, WatchState, WatchTarget
from .gallery_config import GalleryConfig
from .gallery import Gallery, discover_albums

__all__ = [
    "MediaKind",
    "classify",
    "thumbnail_name",
    "ThumbnailRecord",
    "Staleness",
    "StalenessOracle",
    "ThumbnailGenerator",
    "ThumbnailError",
    "ProbeError",
    "ThumbnailCache",
    "ScanStats",
    "Scanner",
    "Debouncer",
    "EventBatch",
    "WatchError",
    "WatcherLoop",
    "WatchState",
    "WatchTarget",
    "GalleryConfig",
    "Gallery",
    "discover_albums",
]
