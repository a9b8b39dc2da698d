"""
Command Line Interface for the gallery thumbnail service.
"""

import argparse
import json
import logging
import os
from typing import List, Optional

from .gallery import Gallery, create_thumbnail_generator
from .gallery_config import GalleryConfig
from .scanner import Scanner
from .server import create_app, sorted_listing
from .thumbnail_cache import ThumbnailCache
from .watcher import WatchTarget


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('sh').setLevel(logging.WARNING)
    logging.getLogger('watchdog').setLevel(logging.WARNING)

    return logging.getLogger('gallerythumbs')


def get_config(args: argparse.Namespace) -> GalleryConfig:
    """Get configuration from environment and CLI overrides."""
    config = GalleryConfig.from_env()

    if getattr(args, 'root', None):
        config.root_path = args.root
    if getattr(args, 'pattern', None):
        config.album_pattern = args.pattern
    if getattr(args, 'size', None) is not None:
        config.thumb_size = args.size
    if getattr(args, 'jpeg_size', None) is not None:
        config.jpeg_size_kb = args.jpeg_size
    if getattr(args, 'workers', None) is not None:
        config.max_workers = args.workers
    if getattr(args, 'timeout', None) is not None:
        config.tool_timeout = args.timeout
    if getattr(args, 'quiet_period', None) is not None:
        config.quiet_period = args.quiet_period
    if getattr(args, 'host', None):
        config.host = args.host
    if getattr(args, 'port', None) is not None:
        config.port = args.port

    return config


def load_config(args: argparse.Namespace, logger: logging.Logger) -> Optional[GalleryConfig]:
    """Build and validate the configuration, logging every problem."""
    try:
        config = get_config(args)
    except ValueError as e:
        logger.error(f"Invalid environment configuration: {e}")
        return None

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return None

    if not getattr(args, 'verbose', False):
        logging.getLogger().setLevel(config.log_level.upper())
    return config


def create_scanner(config: GalleryConfig, cache: ThumbnailCache, logger: logging.Logger) -> Scanner:
    thumb_gen = create_thumbnail_generator(config, logger)
    return Scanner(cache, thumb_gen, max_workers=config.max_workers, logger=logger)


def resolve_album(config: GalleryConfig, album: str) -> str:
    """Album argument as a path, relative to the gallery root if not found as given."""
    if os.path.isdir(album):
        return os.path.abspath(album)
    return os.path.abspath(os.path.join(config.root_path, album))


def cmd_scan(args: argparse.Namespace) -> int:
    """Execute scan command."""
    logger = setup_logging(args.verbose)
    config = load_config(args, logger)
    if config is None:
        return 1

    directory = resolve_album(config, args.album)
    scanner = create_scanner(config, ThumbnailCache(), logger)

    try:
        stats = scanner.scan(directory, is_first_run=args.first_run)
    except OSError as e:
        logger.error(f"Scan failed: {e}")
        return 1

    if not args.quiet:
        print()
        print(f"Files: {stats.candidates}")
        print(f"Up to date: {stats.up_to_date}")
        print(f"Generated: {stats.generated}")
        print(f"Probed: {stats.probed}")
        print(f"Evicted: {stats.evicted}")
        print(f"Errors: {stats.errors}")
        print(f"Time: {stats.elapsed_seconds:.1f}s")

    return 0 if stats.errors == 0 else 1


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command: scan once, then print the JSON listing."""
    logger = setup_logging(args.verbose)
    config = load_config(args, logger)
    if config is None:
        return 1

    target = WatchTarget(directory=resolve_album(config, args.album))
    scanner = create_scanner(config, target.cache, logger)

    try:
        scanner.scan(target.directory, is_first_run=True)
    except OSError as e:
        logger.error(f"Scan failed: {e}")
        return 1

    listing = sorted_listing(target, target.cache.get_snapshot())
    print(json.dumps(listing, indent=4))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Execute serve command: watch all albums and serve listings."""
    from bottle import run

    logger = setup_logging(args.verbose)
    config = load_config(args, logger)
    if config is None:
        return 1

    gallery = Gallery(config, logger=logger)
    try:
        targets = gallery.discover()
    except OSError as e:
        logger.error(f"Album discovery failed: {e}")
        return 1

    if not targets:
        logger.warning(f"No albums found in {config.root_path}")

    gallery.start()
    logger.info(f"Serving on {config.host}:{config.port}")

    try:
        run(
            app=create_app(gallery),
            host=config.host,
            port=config.port,
            server=config.server,
            quiet=not args.verbose,
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    finally:
        gallery.stop(timeout=5)

    logger.info("Exiting.")
    return 0


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Add thumbnail configuration arguments to a parser."""
    group = parser.add_argument_group('Thumbnails')
    group.add_argument('--root', metavar='PATH', help='Override GALLERY_ROOT')
    group.add_argument('-s', '--size', type=int, help='Thumbnail bounding box (default: 300)')
    group.add_argument('--jpeg-size', type=int, metavar='KB',
                       help='JPEG size budget in KB (default: 20)')
    group.add_argument('-w', '--workers', type=int, help='Worker threads (default: CPU count)')
    group.add_argument('--timeout', type=float, metavar='SECONDS',
                       help='Kill external tools after SECONDS, 0 to disable (default: 120)')


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='gallerythumbs',
        description='Thumbnail generation and caching for photo galleries',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  Scan once:  python -m gallerythumbs scan Album
  Listing:    python -m gallerythumbs list Album
  Serve:      python -m gallerythumbs serve --root /srv/gallery

Configuration:
  GALLERY_* environment variables, overridden by the options below.
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Scan command
    scan_parser = subparsers.add_parser('scan', help='Scan one album and update its thumbnails')
    scan_parser.add_argument('album', help='Album directory (or name below --root)')
    scan_parser.add_argument('--first-run', action='store_true',
                             help='Also probe the size of up-to-date thumbnails')
    scan_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress the summary')
    scan_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(scan_parser)

    # List command
    list_parser = subparsers.add_parser('list', help='Scan one album and print its JSON listing')
    list_parser.add_argument('album', help='Album directory (or name below --root)')
    list_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(list_parser)

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Watch all albums and serve listings over HTTP')
    serve_parser.add_argument('--pattern', help='Override GALLERY_ALBUM_PATTERN')
    serve_parser.add_argument('--host', help='Override GALLERY_HOST')
    serve_parser.add_argument('-p', '--port', type=int, help='Override GALLERY_PORT')
    serve_parser.add_argument('--quiet-period', type=float, metavar='SECONDS',
                              help='Seconds of silence before a rescan (default: 10)')
    serve_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(serve_parser)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'scan':
        return cmd_scan(parsed_args)
    elif parsed_args.command == 'list':
        return cmd_list(parsed_args)
    elif parsed_args.command == 'serve':
        return cmd_serve(parsed_args)

    return 1
