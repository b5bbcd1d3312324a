"""Specificity resolver: pick the single best pattern for a normalized request."""

from __future__ import annotations

import logging

from searchmock.models import MockPattern, NormalizedRequest, Resolver, json_equal
from searchmock.registry import PatternRegistry

logger = logging.getLogger(__name__)


def pattern_matches(pattern: MockPattern, request: NormalizedRequest) -> bool:
    """Check the optional body/querystring constraints of *pattern*.

    A pattern that declares neither matches unconditionally.
    """
    if pattern.has_body and not json_equal(request.body, pattern.body):
        return False
    if pattern.has_querystring and not json_equal(request.querystring, pattern.querystring):
        return False
    return True


def resolve(registry: PatternRegistry, request: NormalizedRequest) -> Resolver | None:
    """Return the resolver of the most specific matching pattern, or ``None``.

    ``None`` covers both a missing route and a route whose patterns are all
    too specific for the request.
    """
    route = registry.match(request.method, request.path)
    if route is None:
        logger.debug("No route for %s %s", request.method, request.path)
        return None

    for pattern in route.patterns:
        if pattern_matches(pattern, request):
            return pattern.resolver

    logger.debug(
        "Route %s %s exists but none of its %d patterns matched",
        route.method,
        route.path,
        len(route.patterns),
    )
    return None
