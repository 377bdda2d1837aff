"""Inbound path normalization and category validation."""

import re

from tmdbproxy.common.errors import BadRequest

API_PREFIX = "/api"
LEGACY_PREFIX = "/tmdb"
ALLOWED_CATEGORIES = ("movie", "tv", "person", "search")

_ALLOWED_PATH = re.compile(r"^/(" + "|".join(ALLOWED_CATEGORIES) + r")/")


def _strip_prefix(path: str, prefix: str) -> str:
    return path[len(prefix):] if path.startswith(prefix) else path


def normalize_path(raw_path: str) -> str:
    """
    Turn a raw inbound path into the upstream sub-path used as cache key.

    The ``/api`` namespace, the query string and the legacy ``/tmdb``
    segment are removed, in that order.

    Args:
        raw_path: Request path, optionally with query string

    Returns:
        Normalized path such as ``/movie/550``

    Raises:
        BadRequest: If the path is not under an allowed category
    """
    path = _strip_prefix(raw_path, API_PREFIX)
    path = path.split("?", 1)[0]
    path = _strip_prefix(path, LEGACY_PREFIX)

    if not _ALLOWED_PATH.match(path):
        raise BadRequest()
    return path
