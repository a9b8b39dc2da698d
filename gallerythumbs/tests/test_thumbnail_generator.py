"""Tests for ThumbnailGenerator class."""

import os
from unittest.mock import MagicMock, call

import pytest
from sh import CommandNotFound, ErrorReturnCode_1, TimeoutException

from gallerythumbs.thumbnail_generator import ProbeError, ThumbnailError, ThumbnailGenerator


@pytest.fixture
def tools(mocker):
    """Fixture patching sh.Command with one mock per tool name."""
    mocks = {
        'magick': MagicMock(return_value=''),
        'jpegoptim': MagicMock(return_value=''),
        'identify': MagicMock(return_value='300 225'),
    }
    mocker.patch(
        'gallerythumbs.thumbnail_generator.Command',
        side_effect=lambda name: mocks[name],
    )
    return mocks


class TestThumbnailGenerator:
    """Tests for ThumbnailGenerator class."""

    def test_init_defaults(self):
        """Test default initialization."""
        gen = ThumbnailGenerator()

        assert gen.size == 300
        assert gen.jpeg_size_kb == 20
        assert gen.timeout == 120.0
        assert gen.geometry == '300x300'

    def test_init_custom_values(self):
        """Test initialization with custom values."""
        gen = ThumbnailGenerator(size=150, jpeg_size_kb=10, timeout=0)

        assert gen.geometry == '150x150'
        assert gen.jpeg_size_kb == 10
        assert gen.timeout is None

    def test_generate_jpeg(self, tools):
        """Test resize and optimize invocations for a JPEG."""
        gen = ThumbnailGenerator()

        gen.generate('/album/a.jpg', '/album/thumbs/a.jpg')

        tools['magick'].assert_called_once_with(
            '/album/a.jpg', '-auto-orient', '-resize', '300x300', '/album/thumbs/a.jpg',
            _timeout=120.0,
        )
        tools['jpegoptim'].assert_called_once_with(
            '-s', '--size=20', '/album/thumbs/a.jpg', _timeout=120.0,
        )

    def test_generate_png_skips_optimizer(self, tools):
        """Test that only JPEG thumbnails are compressed."""
        gen = ThumbnailGenerator()

        gen.generate('/album/b.png', '/album/thumbs/b.png')

        assert tools['magick'].call_count == 1
        tools['jpegoptim'].assert_not_called()

    def test_generate_video_uses_first_frame(self, tools):
        """Test that a video is read from frame 0 into a JPEG thumbnail."""
        gen = ThumbnailGenerator()

        gen.generate('/album/clip.mp4', '/album/thumbs/clip.jpg')

        args = tools['magick'].call_args[0]
        assert args[0] == '/album/clip.mp4[0]'
        assert args[-1] == '/album/thumbs/clip.jpg'
        assert tools['jpegoptim'].call_count == 1

    def test_generate_unsupported(self, tools):
        """Test that unsupported files are rejected without running tools."""
        gen = ThumbnailGenerator()

        with pytest.raises(ThumbnailError):
            gen.generate('/album/notes.txt', '/album/thumbs/notes.txt')

        tools['magick'].assert_not_called()

    def test_generate_without_timeout(self, tools):
        """Test that a zero timeout lets tools run unbounded."""
        gen = ThumbnailGenerator(timeout=0)

        gen.generate('/album/b.png', '/album/thumbs/b.png')

        assert tools['magick'].call_args == call(
            '/album/b.png', '-auto-orient', '-resize', '300x300', '/album/thumbs/b.png'
        )

    def test_resize_failure(self, tools):
        """Test that a non-zero exit fails the file and skips compression."""
        tools['magick'].side_effect = ErrorReturnCode_1('magick a.jpg', b'', b'no decode delegate')
        gen = ThumbnailGenerator()

        with pytest.raises(ThumbnailError) as excinfo:
            gen.generate('/album/a.jpg', '/album/thumbs/a.jpg')

        assert 'exit code 1' in str(excinfo.value)
        assert 'no decode delegate' in str(excinfo.value)
        tools['jpegoptim'].assert_not_called()

    def test_optimizer_failure(self, tools):
        """Test that a failing optimizer fails the file."""
        tools['jpegoptim'].side_effect = ErrorReturnCode_1('jpegoptim', b'', b'')
        gen = ThumbnailGenerator()

        with pytest.raises(ThumbnailError):
            gen.generate('/album/a.jpg', '/album/thumbs/a.jpg')

    def test_timeout(self, tools):
        """Test that a killed tool fails the file."""
        tools['magick'].side_effect = TimeoutException(-9, 'magick a.jpg')
        gen = ThumbnailGenerator(timeout=5)

        with pytest.raises(ThumbnailError) as excinfo:
            gen.generate('/album/a.jpg', '/album/thumbs/a.jpg')

        assert 'killed after 5' in str(excinfo.value)

    def test_missing_tool(self, mocker):
        """Test that a missing binary fails the file."""
        mocker.patch(
            'gallerythumbs.thumbnail_generator.Command',
            side_effect=CommandNotFound('magick'),
        )
        gen = ThumbnailGenerator()

        with pytest.raises(ThumbnailError):
            gen.generate('/album/a.jpg', '/album/thumbs/a.jpg')

    def test_custom_tool_names(self, mocker):
        """Test that configured binaries are invoked."""
        command = mocker.patch('gallerythumbs.thumbnail_generator.Command')
        gen = ThumbnailGenerator(resize_tool='/opt/im7/bin/magick', optimize_tool='/usr/local/bin/jpegoptim')

        gen.generate('/album/a.jpg', '/album/thumbs/a.jpg')

        assert [c[0][0] for c in command.call_args_list] == [
            '/opt/im7/bin/magick', '/usr/local/bin/jpegoptim',
        ]


class TestProbeDimensions:
    """Tests for dimension probing."""

    def test_probe(self, tools):
        """Test probing invocation and parsing."""
        gen = ThumbnailGenerator()

        assert gen.probe_dimensions('/album/thumbs/a.jpg') == (300, 225)
        tools['identify'].assert_called_once_with(
            '-ping', '-format', '%w %h', '/album/thumbs/a.jpg', _timeout=120.0,
        )

    @pytest.mark.parametrize('output', ['300 225', '300 225\n', ' 300\t225 '])
    def test_parse_valid(self, output):
        """Test whitespace tolerant parsing."""
        assert ThumbnailGenerator.parse_dimensions(output) == (300, 225)

    @pytest.mark.parametrize('output', ['', '300', '300 225 1', '300x225', 'a b', '300 -1'])
    def test_parse_invalid(self, output):
        """Test that any other output shape is an error."""
        with pytest.raises(ProbeError):
            ThumbnailGenerator.parse_dimensions(output)

    def test_probe_tool_failure(self, tools):
        """Test that a failing identify is a probe error."""
        tools['identify'].side_effect = ErrorReturnCode_1('identify', b'', b'')
        gen = ThumbnailGenerator()

        with pytest.raises(ProbeError):
            gen.probe_dimensions('/album/thumbs/a.jpg')


class TestGeneratedThumbnails:
    """Tests against the Pillow backed fake tools."""

    def test_jpeg_within_size_budget(self, album, fake_tools, image_factory):
        """Test that a generated JPEG respects the optimizer budget."""
        from PIL import Image

        source = image_factory(album / 'big.jpg', size=(4000, 3000))
        (album / 'thumbs').mkdir()
        thumb = str(album / 'thumbs' / 'big.jpg')
        gen = ThumbnailGenerator(jpeg_size_kb=20)

        gen.generate(source, thumb)

        assert os.path.getsize(thumb) <= 20 * 1024
        with Image.open(thumb) as img:
            assert max(img.size) == 300
        assert fake_tools.calls_for('jpegoptim') == [('-s', '--size=20', thumb)]

    def test_probe_generated_thumbnail(self, album, fake_tools, image_factory):
        """Test that probing reports the bounded, aspect preserving size."""
        source = image_factory(album / 'wide.png', size=(1200, 600))
        (album / 'thumbs').mkdir()
        thumb = str(album / 'thumbs' / 'wide.png')
        gen = ThumbnailGenerator()

        gen.generate(source, thumb)

        assert gen.probe_dimensions(thumb) == (300, 150)
