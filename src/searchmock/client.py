"""
Registration API: declare which requests are mocked and how they answer.

Usage:
    import httpx
    from searchmock import ClientMock

    mock = ClientMock()
    mock.add({"method": "GET", "path": "/_cat/health"}, lambda req: {"status": "green"})
    mock.add(
        {"method": "POST", "path": "/:index/_search", "body": {"query": {"match_all": {}}}},
        lambda req: {"hits": {"total": {"value": 0, "relation": "eq"}, "hits": []}},
    )

    async with httpx.AsyncClient(
        base_url="http://localhost:9200",
        transport=mock.get_connection()(),
    ) as client:
        resp = await client.get("/_cat/health")
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from searchmock.apis import get_api
from searchmock.config import MockConfig
from searchmock.connection import MockConnection
from searchmock.models import (
    UNSET,
    ConfigurationError,
    MockPattern,
    NormalizedRequest,
    Resolver,
)
from searchmock.registry import PatternRegistry
from searchmock.resolver import resolve

logger = logging.getLogger(__name__)

_EXPANDABLE_KEYS = ("method", "path")


def _expand(pattern: Mapping[str, Any]) -> Iterator[dict[str, Any]]:
    """Yield one single-method, single-path pattern per (method, path) pair.

    An ``api`` key is replaced by the catalog's methods and paths first.
    Methods expand in the outer loop and paths in the inner one.
    """
    expanded = dict(pattern)
    if "api" in expanded:
        expanded.update(get_api(expanded.pop("api")).to_pattern())

    for key in _EXPANDABLE_KEYS:
        value = expanded.get(key)
        if isinstance(value, (list, tuple)):
            if not value:
                raise ConfigurationError(f"The {key} is not defined")
            for item in value:
                yield from _expand({**expanded, key: item})
            return
    yield expanded


def _method_and_path(pattern: Mapping[str, Any]) -> tuple[str, str]:
    method = pattern.get("method")
    if not isinstance(method, str) or not method:
        raise ConfigurationError("The method is not defined")
    path = pattern.get("path")
    if not isinstance(path, str) or not path:
        raise ConfigurationError("The path is not defined")
    return method.upper(), path


class ClientMock:
    """Registry of mocked requests plus the transport that serves them.

    Every mutating method returns ``self`` so calls can be chained.
    """

    def __init__(self, config: MockConfig | None = None) -> None:
        self._config = config or MockConfig.from_env()
        self._registry = PatternRegistry()

    @property
    def config(self) -> MockConfig:
        return self._config

    @property
    def registry(self) -> PatternRegistry:
        return self._registry

    def add(self, pattern: Mapping[str, Any], resolver: Resolver | None = None) -> ClientMock:
        """Register *resolver* for every (method, path) pair of *pattern*.

        Args:
            pattern: Mapping with ``method`` and ``path`` (a string or a list
                of strings each), or ``api`` naming a catalog operation, and
                optionally ``body`` and ``querystring`` constraints.
            resolver: Called with the :class:`NormalizedRequest`; returns a
                dict/list (JSON), a string (plain text), a
                :class:`~searchmock.models.ResponseError`, or another
                :class:`~searchmock.models.SearchClientError` to fail the
                request.

        Raises:
            ConfigurationError: If the method, the path or the resolver is
                missing, checked in that order.
        """
        for single in _expand(pattern):
            method, path = _method_and_path(single)
            if not callable(resolver):
                raise ConfigurationError("The resolver function is not defined")
            self._registry.register(
                MockPattern(
                    method=method,
                    path=path,
                    resolver=resolver,
                    body=single.get("body", UNSET),
                    querystring=single.get("querystring", UNSET),
                )
            )
        return self

    def get(self, pattern: Mapping[str, Any]) -> Resolver | None:
        """Return the resolver a request described by *pattern* would reach.

        ``body`` defaults to ``None`` and ``querystring`` to ``{}``, matching
        what the connection produces for a bare request.
        """
        method, path = _method_and_path(pattern)
        request = NormalizedRequest(
            method=method,
            path=path,
            querystring=dict(pattern.get("querystring") or {}),
            body=pattern.get("body"),
        )
        return resolve(self._registry, request)

    def clear(self, pattern: Mapping[str, Any]) -> ClientMock:
        """Remove every route for the (method, path) pairs of *pattern*.

        Only method and path are considered; all patterns on those routes
        are dropped regardless of their body or querystring.
        """
        for single in _expand(pattern):
            method, path = _method_and_path(single)
            self._registry.remove(method, path)
        return self

    def clear_all(self) -> ClientMock:
        """Remove every registered pattern."""
        self._registry.clear()
        logger.debug("Cleared all mocks")
        return self

    def get_connection(self) -> Callable[[], MockConnection]:
        """Return a factory for transports bound to this mock.

        Pass ``mock.get_connection()()`` as the ``transport`` of an httpx
        client; each call creates a new transport sharing this registry.
        """
        return functools.partial(MockConnection, self)

    def __repr__(self) -> str:
        return f"ClientMock(routes={len(self._registry)})"
