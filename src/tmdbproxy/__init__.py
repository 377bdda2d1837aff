"""
tmdbproxy: Caching reverse proxy for the TMDB API.

Validates inbound paths, injects the server-held API key, forwards
requests upstream and keeps successful responses in a bounded in-memory cache.
"""

__version__ = "1.0.0"
