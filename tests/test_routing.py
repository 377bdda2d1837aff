"""Tests for inbound path normalization."""

import pytest

from tmdbproxy.common.errors import BadRequest
from tmdbproxy.common.http import is_preflight
from tmdbproxy.proxy.routing import normalize_path


class TestNormalizePath:
    """Tests for normalize_path."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("/movie/550", "/movie/550"),
            ("/api/movie/550?language=en", "/movie/550"),
            ("/tmdb/tv/1399", "/tv/1399"),
            ("/api/tmdb/person/287?append_to_response=images", "/person/287"),
            ("/search/movie?query=fight", "/search/movie"),
            ("/movie/550/credits", "/movie/550/credits"),
        ],
    )
    def test_accepts_allowed_categories(self, raw, expected):
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "/foo/bar",
            "/",
            "",
            "/movie",
            "/movies/550",
            "/api/collection/10",
            "/discover/movie",
            "movie/550",
            "/tmdb/tmdb/movie/550",
        ],
    )
    def test_rejects_other_paths(self, raw):
        with pytest.raises(BadRequest) as exc_info:
            normalize_path(raw)
        assert exc_info.value.message == "Invalid TMDB API path"
        assert exc_info.value.status_code == 400

    def test_query_string_does_not_affect_key(self):
        """Different query strings map to the same normalized path."""
        assert normalize_path("/movie/550?language=en") == normalize_path("/movie/550?language=de")

    def test_legacy_segment_only_after_api_prefix(self):
        """The /api prefix is stripped before the legacy segment."""
        with pytest.raises(BadRequest):
            normalize_path("/tmdb/api/movie/550")


class TestPreflight:
    def test_options_is_preflight(self):
        assert is_preflight("OPTIONS") is True
        assert is_preflight("options") is True

    def test_get_is_not_preflight(self):
        assert is_preflight("GET") is False
