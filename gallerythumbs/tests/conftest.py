"""
Pytest fixtures for gallerythumbs tests.
"""

import logging
import os
import threading
import time

import pytest


class FakeTools:
    """
    Stand-ins for magick, jpegoptim and identify, implemented with Pillow.

    Install with the fake_tools fixture, which patches sh.Command in the
    thumbnail generator module.
    """

    def __init__(self):
        self.calls = []
        self.fail_sources = set()
        self.probe_output = None
        self._lock = threading.Lock()

    def command(self, name):
        tool = os.path.basename(name)
        handler = {
            'magick': self._magick,
            'jpegoptim': self._jpegoptim,
            'identify': self._identify,
        }[tool]

        def run(*args, **kwargs):
            with self._lock:
                self.calls.append((tool, args, kwargs))
            return handler(*args)

        return run

    def calls_for(self, tool):
        return [args for name, args, _ in self.calls if name == tool]

    def _magick(self, source, *args):
        from PIL import Image
        from sh import ErrorReturnCode_1

        output = args[-1]
        size = int(args[args.index('-resize') + 1].split('x')[0])
        source_path = source[:-3] if source.endswith('[0]') else source

        if os.path.basename(source_path) in self.fail_sources:
            raise ErrorReturnCode_1(f"magick {source}", b'', b'magick: no decode delegate')

        if source.endswith('[0]'):
            # First video frame
            img = Image.new('RGB', (1920, 1080), color='green')
        else:
            img = Image.open(source_path)
            img = img.convert('RGB') if output.lower().endswith(('.jpg', '.jpeg')) else img
        img.thumbnail((size, size))
        img.save(output)
        return ''

    def _jpegoptim(self, *args):
        from PIL import Image

        budget = int(args[1].split('=')[1]) * 1024
        path = args[-1]
        img = Image.open(path)
        img.load()
        quality = 85
        while os.path.getsize(path) > budget and quality > 5:
            img.save(path, format='JPEG', quality=quality)
            quality -= 10
        return ''

    def _identify(self, *args):
        from PIL import Image

        if self.probe_output is not None:
            return self.probe_output
        with Image.open(args[-1]) as img:
            return f"{img.size[0]} {img.size[1]}"


@pytest.fixture
def fake_tools(mocker):
    """Fixture routing all external tool calls to FakeTools."""
    tools = FakeTools()
    mocker.patch('gallerythumbs.thumbnail_generator.Command', side_effect=tools.command)
    return tools


def make_image(path, size=(640, 480), color='red', age=None):
    """Write a JPEG or PNG image, optionally backdating its mtime by age seconds."""
    from PIL import Image

    img = Image.new('RGB', size, color=color)
    img.save(str(path))
    if age is not None:
        when = time.time() - age
        os.utime(str(path), (when, when))
    return str(path)


@pytest.fixture
def album(tmp_path):
    """Fixture providing an empty album directory."""
    path = tmp_path / 'Album'
    path.mkdir()
    return path


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    return logging.getLogger('test')


def wait_for(predicate, timeout=5.0, interval=0.01):
    """Poll predicate until it is true or timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def image_factory():
    """Fixture providing make_image."""
    return make_image


@pytest.fixture
def waiter():
    """Fixture providing wait_for."""
    return wait_for
