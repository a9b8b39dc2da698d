"""
GalleryConfig - Configuration for album discovery, thumbnailing and serving.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass
class GalleryConfig:
    """
    Configuration for the thumbnail service.

    Attributes:
        root_path: Directory containing the album directories
        album_pattern: Glob pattern selecting album directories
        thumb_size: Bounding box edge of thumbnails in pixels
        jpeg_size_kb: Target size of JPEG thumbnails in KB
        quiet_period: Seconds of silence that end a burst of changes
        max_workers: Worker threads per scan (None = CPU count)
        tool_timeout: Seconds before an external tool is killed (0 = never)
        resize_tool: ImageMagick binary
        optimize_tool: jpegoptim binary
        probe_tool: identify binary
        host: HTTP bind address
        port: HTTP port
        server: bottle server adapter
        log_level: Logging level name
    """
    root_path: str = '.'
    album_pattern: str = '*'
    thumb_size: int = 300
    jpeg_size_kb: int = 20
    quiet_period: float = 10.0
    max_workers: Optional[int] = None
    tool_timeout: float = 120.0
    resize_tool: str = 'magick'
    optimize_tool: str = 'jpegoptim'
    probe_tool: str = 'identify'
    host: str = '0.0.0.0'
    port: int = 8080
    server: str = 'wsgiref'
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'GalleryConfig':
        """Create configuration from GALLERY_* environment variables."""
        return cls(
            root_path=os.getenv('GALLERY_ROOT', '.'),
            album_pattern=os.getenv('GALLERY_ALBUM_PATTERN', '*'),
            thumb_size=_env_int('GALLERY_THUMB_SIZE', 300),
            jpeg_size_kb=_env_int('GALLERY_JPEG_SIZE_KB', 20),
            quiet_period=_env_float('GALLERY_QUIET_PERIOD', 10.0),
            max_workers=_env_int('GALLERY_MAX_WORKERS', None),
            tool_timeout=_env_float('GALLERY_TOOL_TIMEOUT', 120.0),
            resize_tool=os.getenv('GALLERY_RESIZE_TOOL', 'magick'),
            optimize_tool=os.getenv('GALLERY_OPTIMIZE_TOOL', 'jpegoptim'),
            probe_tool=os.getenv('GALLERY_PROBE_TOOL', 'identify'),
            host=os.getenv('GALLERY_HOST', '0.0.0.0'),
            port=_env_int('GALLERY_PORT', 8080),
            server=os.getenv('GALLERY_SERVER', 'wsgiref'),
            log_level=os.getenv('GALLERY_LOG_LEVEL', 'INFO'),
        )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if not os.path.isdir(self.root_path):
            errors.append(f"Gallery root is not a directory: {self.root_path}")
        if self.thumb_size <= 0:
            errors.append(f"Thumbnail size must be positive: {self.thumb_size}")
        if self.jpeg_size_kb <= 0:
            errors.append(f"JPEG size budget must be positive: {self.jpeg_size_kb}")
        if self.quiet_period < 0:
            errors.append(f"Quiet period must not be negative: {self.quiet_period}")
        if self.max_workers is not None and self.max_workers <= 0:
            errors.append(f"Worker count must be positive: {self.max_workers}")
        if self.tool_timeout < 0:
            errors.append(f"Tool timeout must not be negative: {self.tool_timeout}")
        if not 0 < self.port < 65536:
            errors.append(f"Invalid port: {self.port}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f"Unknown log level: {self.log_level}")

        return errors
