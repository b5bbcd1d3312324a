"""Tests for searchmock.registry -- trie routing and Route buckets."""

from __future__ import annotations

from searchmock.models import MockPattern, NormalizedRequest
from searchmock.registry import PatternRegistry, split_path


def _resolver(request: NormalizedRequest) -> dict:
    return {}


def _pattern(method: str, path: str, **kwargs: object) -> MockPattern:
    return MockPattern(method=method, path=path, resolver=_resolver, **kwargs)


class TestSplitPath:
    def test_ignores_slashes(self) -> None:
        assert split_path("/a//b/") == ["a", "b"]

    def test_root(self) -> None:
        assert split_path("/") == []

    def test_decodes_percent_escapes(self) -> None:
        assert split_path("/foo%2Cbar/_search") == ["foo,bar", "_search"]

    def test_encoded_slash_stays_in_segment(self) -> None:
        assert split_path("/idx/_doc/a%2Fb") == ["idx", "_doc", "a/b"]

    def test_decodes_once(self) -> None:
        assert split_path("/idx/_doc/100%2541") == ["idx", "_doc", "100%41"]


class TestRegister:
    def test_creates_route_on_first_registration(self) -> None:
        registry = PatternRegistry()
        route = registry.register(_pattern("GET", "/_cat/indices"))
        assert route.method == "GET"
        assert route.path == "/_cat/indices"
        assert len(route.patterns) == 1
        assert registry.lookup("GET", "/_cat/indices") is route

    def test_same_method_and_path_share_route(self) -> None:
        registry = PatternRegistry()
        first = registry.register(_pattern("POST", "/test/_search"))
        second = registry.register(_pattern("POST", "/test/_search", body={"a": 1}))
        assert first is second
        assert len(registry) == 1

    def test_patterns_sorted_by_specificity(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("POST", "/s"))
        registry.register(_pattern("POST", "/s", body={"a": 1}))
        registry.register(_pattern("POST", "/s", body={"a": 1}, querystring={"q": "1"}))
        registry.register(_pattern("POST", "/s", querystring={"q": "2"}))

        route = registry.lookup("POST", "/s")
        assert route is not None
        assert [p.specificity for p in route.patterns] == [4, 3, 3, 2]

    def test_equal_specificity_keeps_insertion_order(self) -> None:
        registry = PatternRegistry()
        first = _pattern("POST", "/s", body={"n": 1})
        second = _pattern("POST", "/s", querystring={"n": "2"})
        third = _pattern("POST", "/s", body={"n": 3})
        for p in (first, second, third):
            registry.register(p)

        route = registry.lookup("POST", "/s")
        assert route is not None
        assert route.patterns == [first, second, third]

    def test_trailing_slash_is_the_same_route(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/a/"))
        registry.register(_pattern("GET", "/a", body=None))
        assert len(registry) == 1

    def test_param_names_do_not_split_routes(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/:index/_count"))
        registry.register(_pattern("GET", "/:name/_count"))
        assert len(registry) == 1


class TestMatch:
    def test_literal(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/_cat/indices"))
        assert registry.match("GET", "/_cat/indices") is not None
        assert registry.match("GET", "/_cat/health") is None

    def test_method_must_match(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/_cat/indices"))
        assert registry.match("POST", "/_cat/indices") is None

    def test_named_parameter_matches_any_segment(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/:index/_count"))
        assert registry.match("GET", "/foo/_count") is not None
        assert registry.match("GET", "/bar/_count") is not None
        assert registry.match("GET", "/_count") is None
        assert registry.match("GET", "/foo/bar/_count") is None

    def test_literal_preferred_over_parameter(self) -> None:
        registry = PatternRegistry()
        param = registry.register(_pattern("GET", "/:index/_search"))
        literal = registry.register(_pattern("GET", "/logs/_search"))
        assert registry.match("GET", "/logs/_search") is literal
        assert registry.match("GET", "/other/_search") is param

    def test_backtracks_when_literal_branch_lacks_method(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("POST", "/logs/_search"))
        param = registry.register(_pattern("GET", "/:index/_search"))
        assert registry.match("GET", "/logs/_search") is param

    def test_standalone_wildcard_matches_every_path(self) -> None:
        registry = PatternRegistry()
        route = registry.register(_pattern("HEAD", "*"))
        assert registry.match("HEAD", "/") is route
        assert registry.match("HEAD", "/a/b/c") is route
        assert registry.match("GET", "/a") is None

    def test_trailing_wildcard(self) -> None:
        registry = PatternRegistry()
        route = registry.register(_pattern("GET", "/_nodes/*"))
        assert registry.match("GET", "/_nodes/stats/jvm") is route
        assert registry.match("GET", "/_nodes") is route
        assert registry.match("GET", "/_cluster/health") is None

    def test_wildcard_is_last_resort(self) -> None:
        registry = PatternRegistry()
        wildcard = registry.register(_pattern("GET", "*"))
        literal = registry.register(_pattern("GET", "/_cat/health"))
        assert registry.match("GET", "/_cat/health") is literal
        assert registry.match("GET", "/_cat/indices") is wildcard

    def test_trailing_slash_insignificant(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/test/_search"))
        assert registry.match("GET", "/test/_search/") is not None

    def test_encoded_comma_matches_literal_comma(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/foo%2Cbar/_search"))
        assert registry.match("GET", "/foo,bar/_search") is not None

        registry = PatternRegistry()
        registry.register(_pattern("GET", "/foo,bar/_search"))
        assert registry.match("GET", "/foo%2Cbar/_search") is not None

    def test_param_matches_encoded_slash(self) -> None:
        registry = PatternRegistry()
        route = registry.register(_pattern("GET", "/:index/_doc/:id"))
        assert registry.match("GET", "/idx/_doc/a%2Fb") is route
        assert registry.match("GET", "/idx/_doc/a/b") is None


class TestRemove:
    def test_remove_drops_whole_route(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("POST", "/s"))
        registry.register(_pattern("POST", "/s", body={"a": 1}))
        assert registry.remove("POST", "/s") is True
        assert registry.lookup("POST", "/s") is None
        assert registry.match("POST", "/s") is None

    def test_remove_keeps_other_methods(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/s"))
        registry.register(_pattern("POST", "/s"))
        registry.remove("POST", "/s")
        assert registry.match("GET", "/s") is not None

    def test_remove_unknown_route_is_noop(self) -> None:
        registry = PatternRegistry()
        assert registry.remove("GET", "/nope") is False

    def test_remove_wildcard(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("HEAD", "*"))
        assert registry.remove("HEAD", "*") is True
        assert registry.match("HEAD", "/x") is None

    def test_clear(self) -> None:
        registry = PatternRegistry()
        registry.register(_pattern("GET", "/a"))
        registry.register(_pattern("GET", "/:index/b"))
        registry.register(_pattern("GET", "*"))
        registry.clear()
        assert registry.routes() == []
        assert registry.match("GET", "/a") is None
