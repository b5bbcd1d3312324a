"""Pattern registry with trie-based path matching.

Templates are split into segments: literals, named parameters (``:name``)
and the ``*`` wildcard, which consumes the rest of the path. Each terminal
node holds one :class:`Route` per HTTP method.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import unquote

from searchmock.models import MockPattern

logger = logging.getLogger(__name__)

PARAM_MARKER = ":"
WILDCARD = "*"


def split_path(path: str) -> list[str]:
    """Split a path into non-empty segments, then decode each one.

    ``/a%2Cb`` and ``/a,b`` yield the same segments, while ``%2F`` stays
    inside its segment. Leading, trailing and repeated slashes are ignored.
    """
    return [unquote(part) if "%" in part else part for part in path.split("/") if part]


@dataclass
class Route:
    """All patterns registered for one method and one path template.

    Patterns are kept in descending specificity; ``sorted`` is stable, so
    equal specificity keeps insertion order.
    """

    method: str
    path: str
    patterns: list[MockPattern] = field(default_factory=list)

    def insert(self, pattern: MockPattern) -> None:
        self.patterns.append(pattern)
        self.patterns.sort(key=lambda p: p.specificity, reverse=True)


class _TrieNode:
    """A node in the route trie."""

    __slots__ = ("children", "param_child", "routes", "wildcard_routes")

    def __init__(self) -> None:
        # Literal segment children: "_search" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child per level
        self.param_child: _TrieNode | None = None
        # Routes terminating at this node, keyed by method
        self.routes: dict[str, Route] = {}
        # Routes whose template ends with "*" at this level
        self.wildcard_routes: dict[str, Route] = {}


class PatternRegistry:
    """Stores registered patterns and finds the Route for a request.

    Usage::

        registry = PatternRegistry()
        registry.register(MockPattern("GET", "/:index/_count", resolver))
        route = registry.match("GET", "/logs/_count")
    """

    __slots__ = ("_root",)

    def __init__(self) -> None:
        self._root = _TrieNode()

    def register(self, pattern: MockPattern) -> Route:
        """Insert *pattern* into its Route, creating the Route if needed."""
        node, wildcard = self._walk(pattern.path, create=True)
        assert node is not None
        table = node.wildcard_routes if wildcard else node.routes
        route = table.get(pattern.method)
        if route is None:
            route = Route(method=pattern.method, path=pattern.path)
            table[pattern.method] = route
        route.insert(pattern)
        logger.debug(
            "Registered %s %s specificity=%d (%d in route)",
            pattern.method,
            pattern.path,
            pattern.specificity,
            len(route.patterns),
        )
        return route

    def lookup(self, method: str, path: str) -> Route | None:
        """Return the Route for an exact (method, template) pair."""
        node, wildcard = self._walk(path, create=False)
        if node is None:
            return None
        table = node.wildcard_routes if wildcard else node.routes
        return table.get(method)

    def match(self, method: str, path: str) -> Route | None:
        """Return the Route matching a concrete request path.

        Literal segments take priority over parameters, and parameters over
        a wildcard; a branch that has nothing for *method* backtracks.
        """
        return self._match_node(self._root, method, split_path(path), 0)

    def remove(self, method: str, path: str) -> bool:
        """Drop the whole Route for (method, template). Returns whether one existed."""
        node, wildcard = self._walk(path, create=False)
        if node is None:
            return False
        table = node.wildcard_routes if wildcard else node.routes
        removed = table.pop(method, None) is not None
        if removed:
            logger.debug("Removed route %s %s", method, path)
        return removed

    def clear(self) -> None:
        """Remove every route."""
        self._root = _TrieNode()

    def routes(self) -> list[Route]:
        """Return every registered Route."""
        result: list[Route] = []
        self._collect_routes(self._root, result)
        return result

    def __len__(self) -> int:
        return len(self.routes())

    # -- internals ---------------------------------------------------------

    def _walk(self, path: str, *, create: bool) -> tuple[_TrieNode | None, bool]:
        """Follow a template to its node.

        Returns ``(node, is_wildcard)``; a ``*`` segment ends the walk, any
        segments after it are ignored.
        """
        node = self._root
        for seg in split_path(path):
            if seg == WILDCARD:
                return node, True
            if seg.startswith(PARAM_MARKER):
                if node.param_child is None:
                    if not create:
                        return None, False
                    node.param_child = _TrieNode()
                node = node.param_child
            else:
                child = node.children.get(seg)
                if child is None:
                    if not create:
                        return None, False
                    child = node.children[seg] = _TrieNode()
                node = child
        return node, False

    def _match_node(
        self,
        node: _TrieNode,
        method: str,
        parts: list[str],
        index: int,
    ) -> Route | None:
        """Recursively match path parts against the trie."""
        if index == len(parts):
            route = node.routes.get(method)
            if route is not None:
                return route
            # "/a/*" also matches "/a"
            return node.wildcard_routes.get(method)

        part = parts[index]

        # 1. Literal child
        child = node.children.get(part)
        if child is not None:
            route = self._match_node(child, method, parts, index + 1)
            if route is not None:
                return route

        # 2. Parameter child, any single non-empty segment
        if node.param_child is not None:
            route = self._match_node(node.param_child, method, parts, index + 1)
            if route is not None:
                return route

        # 3. Wildcard consumes the remainder
        return node.wildcard_routes.get(method)

    def _collect_routes(self, node: _TrieNode, result: list[Route]) -> None:
        result.extend(node.routes.values())
        result.extend(node.wildcard_routes.values())
        for child in node.children.values():
            self._collect_routes(child, result)
        if node.param_child is not None:
            self._collect_routes(node.param_child, result)
