"""Unit tests for URL and resource path helpers."""

import pytest

from trace2spec.core.config import DEFAULT_IRREGULAR_PLURALS
from trace2spec.core.urls import query_param_names, url_path
from trace2spec.services.entities.paths import (
    entity_name_for_path,
    matches_pattern,
    normalize_path,
    resource_root,
    singularize,
)


class TestUrlPath:
    """Tests for URL path extraction."""

    def test_absolute_url(self):
        assert url_path("https://app.test/orders/1?x=1#frag") == "/orders/1"

    def test_host_only_url_is_root(self):
        assert url_path("https://app.test") == "/"

    def test_path_absolute_reference_uses_base(self):
        assert url_path("/orders", "https://app.test/app/") == "/orders"

    def test_relative_reference_resolves(self):
        assert url_path("orders/1") == "/orders/1"
        assert url_path("orders/1?page=2", "https://app.test/app/") == "/app/orders/1"

    @pytest.mark.parametrize("url", [None, "", "   ", "not a url", "::bad::", "http://[::1"])
    def test_unparseable(self, url):
        assert url_path(url) is None

    def test_query_param_names(self):
        assert query_param_names("https://app.test/api/orders?page=2&sort=name&page=3") == ["page", "sort"]
        assert query_param_names(None) == []


class TestNormalizePath:
    """Tests for resource path normalization."""

    def test_numeric_segments_become_params(self):
        assert normalize_path("https://app.test/api/orders/42?expand=items") == "/api/orders/:id"

    def test_uuid_segments_become_params(self):
        url = "https://app.test/api/orders/3F2504E0-4F89-11D3-9A0C-0305E82C3301/items/7"
        assert normalize_path(url) == "/api/orders/:id/items/:id"

    def test_trailing_slash_removed(self):
        assert normalize_path("https://app.test/api/orders/") == "/api/orders"

    def test_root(self):
        assert normalize_path("https://app.test/") == "/"

    def test_relative_request_url(self):
        assert normalize_path("api/orders/42", "https://app.test/") == "/api/orders/:id"

    def test_unparseable(self):
        assert normalize_path("not a url") is None


class TestEntityNaming:
    """Tests for singularization and entity names."""

    @pytest.mark.parametrize(
        ("plural", "singular"),
        [
            ("widgets", "widget"),
            ("categories", "category"),
            ("addresses", "address"),
            ("class", "class"),
            ("status", "statu"),
            ("people", "person"),
        ],
    )
    def test_singularize(self, plural, singular):
        assert singularize(plural, DEFAULT_IRREGULAR_PLURALS) == singular

    def test_resource_root_skips_api_and_version(self):
        assert resource_root("/api/v2/orders/:id") == "orders"
        assert resource_root("/api/:id") is None

    @pytest.mark.parametrize(
        ("path", "name"),
        [
            ("/api/widgets", "Widget"),
            ("/api/v1/categories/:id", "Category"),
            ("/api/user-profiles/:id", "UserProfile"),
            ("/api/people", "Person"),
            ("/orders/:id/items", "Order"),
        ],
    )
    def test_entity_name_for_path(self, path, name):
        assert entity_name_for_path(path, DEFAULT_IRREGULAR_PLURALS) == name

    def test_name_map_overrides(self):
        assert entity_name_for_path("/api/usr", name_map={"Usr": "User"}) == "User"

    def test_no_resource_segment(self):
        assert entity_name_for_path("/api") is None

    def test_matches_pattern(self):
        assert matches_pattern("https://app.test/api/health", ["/health"])
        assert matches_pattern("https://app.test/api/v1/metrics", ["/v\\d+/metrics$/"])
        assert not matches_pattern("https://app.test/api/orders", ["/health", "/^ftp:/"])
