"""
MediaKind - Classifies gallery files by extension.
"""

import os
from enum import Enum


class MediaKind(Enum):
    """Kind of source file, decided from its extension."""
    IMAGE = 'image'
    VIDEO = 'video'
    UNSUPPORTED = 'unsupported'


IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png')
VIDEO_EXTENSIONS = ('.mp4',)

# Videos get a still frame thumbnail with this extension
VIDEO_THUMBNAIL_EXTENSION = '.jpg'

JPEG_EXTENSIONS = ('.jpg', '.jpeg')


def classify(filename: str) -> MediaKind:
    """
    Classify a file by its extension (case-insensitive).

    Args:
        filename: File name or path

    Returns:
        MediaKind of the file
    """
    ext = os.path.splitext(filename)[1].lower()

    if ext in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    elif ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return MediaKind.UNSUPPORTED


def thumbnail_name(filename: str) -> str:
    """
    Derive the thumbnail file name for a source file name.

    Images keep their name, videos are mapped to an image extension.
    """
    if classify(filename) == MediaKind.VIDEO:
        root, _ = os.path.splitext(filename)
        return f"{root}{VIDEO_THUMBNAIL_EXTENSION}"
    return filename


def is_jpeg(filename: str) -> bool:
    """True if the file name carries a JPEG extension."""
    return os.path.splitext(filename)[1].lower() in JPEG_EXTENSIONS
