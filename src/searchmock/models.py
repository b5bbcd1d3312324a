"""
Data models and exception hierarchy for searchmock.

All public types used by the searchmock library are defined here. Models are
frozen dataclasses: a registered pattern is never mutated, only removed.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

import httpx

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SearchClientError(Exception):
    """Base exception for all client-side errors.

    A resolver that *returns* an instance of this class (other than
    :class:`ResponseError`) makes the intercepted request fail with it.
    """


class ConfigurationError(SearchClientError):
    """A mock pattern is malformed (missing method, path, resolver or unknown api)."""


class SearchConnectionError(SearchClientError):
    """The request body could not be read, decompressed or parsed."""


class SearchTimeoutError(SearchClientError):
    """The request timed out."""


class RequestAbortedError(SearchClientError):
    """The request was cancelled before a response was delivered."""

    def __init__(self, message: str = "Request aborted") -> None:
        super().__init__(message)


class ResponseError(SearchClientError):
    """A pre-built error response, delivered as-is with its own status and body."""

    def __init__(self, status_code: int, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body!r}")


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


class _Unset:
    """Marker for an optional pattern field that was not declared."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

Resolver = Callable[["NormalizedRequest"], Any]


@dataclass(frozen=True)
class MockPattern:
    """A single registered rule: one method, one path template, optional constraints.

    ``body`` and ``querystring`` default to :data:`UNSET`; ``None`` is a
    declared ``null`` body, not an absent one.
    """

    method: str
    path: str
    resolver: Resolver
    body: Any = UNSET
    querystring: Any = UNSET

    @property
    def has_body(self) -> bool:
        return self.body is not UNSET

    @property
    def has_querystring(self) -> bool:
        return self.querystring is not UNSET

    @property
    def specificity(self) -> int:
        """Number of declared fields; method and path always count."""
        return 2 + int(self.has_body) + int(self.has_querystring)


@dataclass(frozen=True)
class NormalizedRequest:
    """Canonical, fully decoded form of an intercepted request."""

    method: str
    path: str
    querystring: dict[str, str] = field(default_factory=dict)
    body: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict (e.g. for JSON output)."""
        return asdict(self)


@dataclass(frozen=True)
class RawRequest:
    """An outgoing request as the client produced it, before normalization.

    ``body`` is ``bytes``, ``str``, an iterable or async iterable of
    ``bytes`` (a live stream), or ``None``.
    """

    method: str
    path: str
    querystring: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def header(self, name: str) -> str:
        """Case-insensitive header lookup, ``""`` when absent."""
        if isinstance(self.headers, httpx.Headers):
            return self.headers.get(name, "")
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return ""

    @classmethod
    def from_httpx(cls, request: httpx.Request) -> RawRequest:
        """Build from an ``httpx.Request``.

        Buffered content is passed as ``bytes``; a streamed body is passed
        through unread so the normalizer can drain it.
        """
        body: Any
        if isinstance(request.stream, httpx.ByteStream):
            body = request.content or None
        else:
            body = request.stream
        # raw_path keeps percent-escapes, so an encoded "/" stays inside its segment
        path = request.url.raw_path.split(b"?", 1)[0].decode("ascii")
        return cls(
            method=request.method,
            path=path,
            querystring=request.url.query.decode("ascii"),
            headers=request.headers,
            body=body,
        )


# ---------------------------------------------------------------------------
# Equality
# ---------------------------------------------------------------------------


def json_equal(a: Any, b: Any) -> bool:
    """Structural equality for parsed JSON values.

    Object key order is ignored and array order is significant. Unlike
    ``==``, booleans never compare equal to numbers.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if isinstance(a, Mapping):
        if not isinstance(b, Mapping) or a.keys() != b.keys():
            return False
        return all(json_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)):
        if not isinstance(b, (list, tuple)) or len(a) != len(b):
            return False
        return all(json_equal(x, y) for x, y in zip(a, b))
    if isinstance(b, (Mapping, list, tuple)):
        return False
    return bool(a == b)
