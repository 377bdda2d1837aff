"""Common utilities for tmdbproxy."""

from tmdbproxy.common.errors import BadRequest, ProxyError, UpstreamUnavailable
from tmdbproxy.common.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "ProxyError",
    "BadRequest",
    "UpstreamUnavailable",
]
