"""
Main entry point for running the package as a module.

Usage:
    python -m gallerythumbs scan Album
    python -m gallerythumbs list Album
    python -m gallerythumbs serve --root /srv/gallery
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
