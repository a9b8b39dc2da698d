"""
ThumbnailGenerator - Renders, compresses and measures thumbnails with external tools.
"""

import logging
import os
from typing import Optional, Tuple

from sh import Command, CommandNotFound, ErrorReturnCode, TimeoutException

from .media_kind import MediaKind, classify, is_jpeg


class ThumbnailError(Exception):
    """Raised when an external tool fails for a single file."""
    pass


class ProbeError(ThumbnailError):
    """Raised when the dimensions of a thumbnail cannot be determined."""
    pass


class ThumbnailGenerator:
    """
    Generates thumbnails from originals using ImageMagick and jpegoptim.

    Tool invocations (paths shortened):
        magick <src> -auto-orient -resize 300x300 <thumb>
        magick <video>[0] -auto-orient -resize 300x300 <thumb.jpg>
        jpegoptim -s --size=20 <thumb.jpg>
        identify -ping -format "%w %h" <thumb>
    """

    def __init__(
        self,
        size: int = 300,
        jpeg_size_kb: int = 20,
        timeout: Optional[float] = 120.0,
        resize_tool: str = 'magick',
        optimize_tool: str = 'jpegoptim',
        probe_tool: str = 'identify',
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize thumbnail generator.

        Args:
            size: Bounding box edge for thumbnails (default: 300)
            jpeg_size_kb: Target size of JPEG thumbnails in KB (default: 20)
            timeout: Seconds before a tool is killed, None or 0 to wait forever
            resize_tool: Name or path of the ImageMagick binary
            optimize_tool: Name or path of the jpegoptim binary
            probe_tool: Name or path of the identify binary
            logger: Optional logger instance
        """
        self.size = size
        self.jpeg_size_kb = jpeg_size_kb
        self.timeout = timeout or None
        self.resize_tool = resize_tool
        self.optimize_tool = optimize_tool
        self.probe_tool = probe_tool
        self.logger = logger or logging.getLogger(__name__)

    @property
    def geometry(self) -> str:
        return f"{self.size}x{self.size}"

    def generate(self, source_path: str, thumbnail_path: str) -> None:
        """
        Generate a thumbnail for a source file.

        Args:
            source_path: Path of the original image or video
            thumbnail_path: Where to write the thumbnail

        Raises:
            ThumbnailError: If the file is unsupported or a tool fails
        """
        kind = classify(source_path)

        if kind == MediaKind.IMAGE:
            source_arg = source_path
        elif kind == MediaKind.VIDEO:
            # ImageMagick reads only the first frame of the container
            source_arg = f"{source_path}[0]"
        else:
            raise ThumbnailError(f"Unsupported file type: {source_path}")

        self.logger.debug(f"Creating thumbnail: {source_path} -> {thumbnail_path}")

        # Rotate before resizing so jpegoptim can strip the orientation tag
        self._run(
            self.resize_tool,
            source_arg, '-auto-orient', '-resize', self.geometry, thumbnail_path
        )

        if is_jpeg(thumbnail_path):
            self._run(
                self.optimize_tool,
                '-s', f"--size={self.jpeg_size_kb}", thumbnail_path
            )

    def probe_dimensions(self, thumbnail_path: str) -> Tuple[int, int]:
        """
        Read the pixel size of a thumbnail without decoding it.

        Args:
            thumbnail_path: Path of the thumbnail

        Returns:
            Tuple of (width, height)

        Raises:
            ProbeError: If the tool fails or prints anything but two integers
        """
        try:
            output = self._run(
                self.probe_tool,
                '-ping', '-format', '%w %h', thumbnail_path
            )
        except ThumbnailError as e:
            raise ProbeError(str(e)) from e

        return self.parse_dimensions(output)

    @staticmethod
    def parse_dimensions(output: str) -> Tuple[int, int]:
        """Parse "<width> <height>" as printed by identify."""
        parts = output.split()
        if len(parts) != 2:
            raise ProbeError(f"Expected width and height, got {output!r}")
        try:
            width, height = int(parts[0]), int(parts[1])
        except ValueError:
            raise ProbeError(f"Expected width and height, got {output!r}")
        if width < 0 or height < 0:
            raise ProbeError(f"Negative dimensions: {output!r}")
        return width, height

    def _run(self, tool: str, *args: str) -> str:
        """Run an external tool and return its standard output."""
        kwargs = {}
        if self.timeout:
            kwargs['_timeout'] = self.timeout

        name = os.path.basename(tool)
        try:
            command = Command(tool)
            result = command(*args, **kwargs)
        except CommandNotFound as e:
            raise ThumbnailError(f"{name} not found: {e}") from e
        except ErrorReturnCode as e:
            stderr = e.stderr.decode(errors='replace').strip() if e.stderr else ''
            raise ThumbnailError(
                f"{name} exited with exit code {getattr(e, 'exit_code', '?')}: {stderr}"
            ) from e
        except TimeoutException as e:
            raise ThumbnailError(f"{name} killed after {self.timeout}s") from e

        return str(result)
