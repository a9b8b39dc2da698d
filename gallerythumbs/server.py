"""
HTTP handlers serving album thumbnail listings for gallery rendering.
"""

import json
import logging
import os
from functools import wraps
from typing import List

from bottle import Bottle, HTTPResponse, Response, abort, response, static_file

from .gallery import Gallery
from .thumbnail_record import ThumbnailRecord
from .watcher import WatchTarget

logger = logging.getLogger(__name__)


def allow_cross_origin(func):
    """Decorate a view function to allow cross domain access."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
        except HTTPResponse as r:
            r.set_header('Access-Control-Allow-Origin', '*')
            raise
        (result if isinstance(result, Response) else response) \
            .set_header('Access-Control-Allow-Origin', '*')
        return result
    return wrapper


def creation_time(path: str) -> float:
    """Creation time of a file; birth time where the platform records it."""
    try:
        st = os.stat(path)
    except OSError:
        return float('-inf')
    return getattr(st, 'st_birthtime', st.st_ctime)


def sorted_listing(target: WatchTarget, records: List[ThumbnailRecord]) -> List[dict]:
    """Serialize records newest first by the creation time of their source."""
    def key(record):
        return creation_time(os.path.join(target.directory, record.source_name))

    return [record.to_dict() for record in sorted(records, key=key, reverse=True)]


def json_response(data) -> str:
    response.content_type = 'application/json'
    return json.dumps(data)


def create_app(gallery: Gallery) -> Bottle:
    """
    Create the bottle application for a gallery.

    Routes:
        GET /albums                          names of all albums
        GET /albums/<album>/thumbs           thumbnail records, newest first
        GET /albums/<album>/thumbs/<name>    record of one source file
        GET /static/<album>/<path>           originals and thumbs/ files
    """
    app = Bottle()

    def get_target(album: str) -> WatchTarget:
        target = gallery.target(album)
        if target is None:
            logger.debug(f"Unknown album: {album}")
            abort(404, f"Unknown album: {album!r}")
        return target

    @app.route('/albums')
    @allow_cross_origin
    def albums():
        return json_response(gallery.albums())

    @app.route('/albums/<album>/thumbs')
    @allow_cross_origin
    def thumbs(album):
        target = get_target(album)
        return json_response(sorted_listing(target, target.cache.get_snapshot()))

    @app.route('/albums/<album>/thumbs/<name>')
    @allow_cross_origin
    def thumb(album, name):
        target = get_target(album)
        # A miss degrades to unknown dimensions, never to an error
        record = target.cache.get_or_unknown(os.path.join(target.directory, name))
        return json_response(record.to_dict())

    @app.route('/static/<album>/<filepath:path>')
    def static(album, filepath):
        target = get_target(album)
        return static_file(filepath, root=target.directory)

    return app
