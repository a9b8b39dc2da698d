"""Tests for media classification."""

import pytest
from gallerythumbs.media_kind import MediaKind, classify, is_jpeg, thumbnail_name


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize('filename', ['a.jpg', 'b.jpeg', 'c.png', 'D.JPG', 'e.PnG'])
    def test_images(self, filename):
        """Test still image extensions, case-insensitively."""
        assert classify(filename) == MediaKind.IMAGE

    @pytest.mark.parametrize('filename', ['clip.mp4', 'CLIP.MP4'])
    def test_videos(self, filename):
        """Test the video container extension."""
        assert classify(filename) == MediaKind.VIDEO

    @pytest.mark.parametrize('filename', ['notes.txt', '.gitkeep', 'README', 'movie.mkv', 'jpg'])
    def test_unsupported(self, filename):
        """Test that everything else is unsupported."""
        assert classify(filename) == MediaKind.UNSUPPORTED

    def test_classify_full_path(self):
        """Test that only the file name decides."""
        assert classify('/srv/photos.mp4/holiday.jpg') == MediaKind.IMAGE


class TestThumbnailName:
    """Tests for thumbnail_name()."""

    def test_image_keeps_name(self):
        """Test that images keep their file name."""
        assert thumbnail_name('IMG_0001.JPG') == 'IMG_0001.JPG'
        assert thumbnail_name('scan.png') == 'scan.png'

    def test_video_maps_to_image_extension(self):
        """Test that videos never keep their container extension."""
        assert thumbnail_name('clip.mp4') == 'clip.jpg'
        assert thumbnail_name('Clip.MP4') == 'Clip.jpg'

    def test_video_thumbnail_is_an_image(self):
        """Test that a video thumbnail classifies as an image."""
        assert classify(thumbnail_name('clip.mp4')) == MediaKind.IMAGE

    def test_is_jpeg(self):
        """Test JPEG detection for the optimizer pass."""
        assert is_jpeg('a.jpg')
        assert is_jpeg('a.JPEG')
        assert not is_jpeg('a.png')
