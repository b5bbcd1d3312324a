"""
Catalog of named search-engine operations.

Maps an operation name (as the client exposes it, e.g. ``search`` or
``indices.create``) to every HTTP method and path template it may be sent
with, so a test can write ``mock.add({"api": "search"}, fn)`` instead of
listing ``/_search`` and ``/:index/_search`` for both GET and POST.

Path parameters use the ``:name`` form understood by the registry.
"""

from __future__ import annotations

from dataclasses import dataclass

from searchmock.models import ConfigurationError


@dataclass(frozen=True)
class ApiSpec:
    """Methods and path templates of one named operation."""

    name: str
    methods: tuple[str, ...]
    paths: tuple[str, ...]

    def to_pattern(self) -> dict[str, list[str]]:
        return {"method": list(self.methods), "path": list(self.paths)}


def _api(name: str, methods: str, *paths: str) -> ApiSpec:
    return ApiSpec(name=name, methods=tuple(methods.split(",")), paths=paths)


_CATALOG: dict[str, ApiSpec] = {
    spec.name: spec
    for spec in (
        _api("info", "GET", "/"),
        _api("ping", "HEAD", "/"),
        _api("search", "GET,POST", "/_search", "/:index/_search"),
        _api("count", "GET,POST", "/_count", "/:index/_count"),
        _api("msearch", "GET,POST", "/_msearch", "/:index/_msearch"),
        _api("bulk", "POST,PUT", "/_bulk", "/:index/_bulk"),
        _api("mget", "GET,POST", "/_mget", "/:index/_mget"),
        _api("index", "PUT,POST", "/:index/_doc/:id", "/:index/_doc"),
        _api("create", "PUT,POST", "/:index/_create/:id"),
        _api("get", "GET", "/:index/_doc/:id"),
        _api("exists", "HEAD", "/:index/_doc/:id"),
        _api("delete", "DELETE", "/:index/_doc/:id"),
        _api("update", "POST", "/:index/_update/:id"),
        _api("delete_by_query", "POST", "/:index/_delete_by_query"),
        _api("update_by_query", "POST", "/_update_by_query", "/:index/_update_by_query"),
        _api("scroll", "GET,POST", "/_search/scroll", "/_search/scroll/:scroll_id"),
        _api("clear_scroll", "DELETE", "/_search/scroll", "/_search/scroll/:scroll_id"),
        _api("cat.health", "GET", "/_cat/health"),
        _api("cat.indices", "GET", "/_cat/indices", "/_cat/indices/:index"),
        _api("cat.count", "GET", "/_cat/count", "/_cat/count/:index"),
        _api("cluster.health", "GET", "/_cluster/health", "/_cluster/health/:index"),
        _api("indices.create", "PUT", "/:index"),
        _api("indices.delete", "DELETE", "/:index"),
        _api("indices.exists", "HEAD", "/:index"),
        _api("indices.get", "GET", "/:index"),
        _api("indices.refresh", "GET,POST", "/_refresh", "/:index/_refresh"),
        _api("indices.get_mapping", "GET", "/_mapping", "/:index/_mapping"),
        _api("indices.put_mapping", "PUT,POST", "/:index/_mapping"),
    )
}


def get_api(name: str) -> ApiSpec:
    """Return the catalog entry for *name*.

    Raises:
        ConfigurationError: If the operation is not in the catalog.
    """
    spec = _CATALOG.get(name)
    if spec is None:
        raise ConfigurationError(f"The api '{name}' does not exist")
    return spec


def api_names() -> list[str]:
    """Return every operation name, sorted."""
    return sorted(_CATALOG)
