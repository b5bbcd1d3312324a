"""
Request normalization: raw outgoing request -> :class:`NormalizedRequest`.

The body may arrive as bytes, a string, or a live stream, optionally
gzip-compressed, optionally newline-delimited JSON. Streams are drained
completely before anything is decoded; that is the only place normalization
suspends.
"""

from __future__ import annotations

import gzip
import json
import logging
import zlib
from collections.abc import AsyncIterable, Iterable
from typing import Any
from urllib.parse import parse_qsl

from searchmock.models import (
    ConfigurationError,
    NormalizedRequest,
    RawRequest,
    SearchConnectionError,
)

logger = logging.getLogger(__name__)

DEFAULT_NDJSON_MARKER = "x-ndjson"


def parse_querystring(query: str) -> dict[str, str]:
    """Parse a query string into a flat map. Repeated keys: last one wins."""
    return dict(parse_qsl(query, keep_blank_values=True))


def is_stream(body: Any) -> bool:
    """True for a live byte stream (anything iterable that is not a buffer)."""
    if body is None or isinstance(body, (bytes, bytearray, memoryview, str)):
        return False
    return isinstance(body, (AsyncIterable, Iterable))


def _as_bytes(body: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def _drain(stream: Iterable[bytes]) -> bytes:
    buffer = bytearray()
    try:
        for chunk in stream:
            buffer += _as_bytes(chunk)
    except Exception as exc:
        raise SearchConnectionError(f"Failed to read request body: {exc}") from exc
    return bytes(buffer)


async def _adrain(stream: AsyncIterable[bytes] | Iterable[bytes]) -> bytes:
    if not isinstance(stream, AsyncIterable):
        return _drain(stream)
    buffer = bytearray()
    try:
        async for chunk in stream:
            buffer += _as_bytes(chunk)
    except Exception as exc:
        raise SearchConnectionError(f"Failed to read request body: {exc}") from exc
    return bytes(buffer)


def decode_body(
    payload: bytes,
    *,
    content_encoding: str = "",
    content_type: str = "",
    ndjson_marker: str = DEFAULT_NDJSON_MARKER,
) -> Any:
    """Decompress and parse a fully buffered body.

    Returns ``None`` for an empty payload, a list for newline-delimited JSON,
    and the single parsed value otherwise.
    """
    if content_encoding.strip().lower() == "gzip":
        try:
            payload = gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as exc:
            raise SearchConnectionError(f"Failed to decompress request body: {exc}") from exc

    if not payload:
        return None

    try:
        text = payload.decode("utf-8")
        if ndjson_marker and ndjson_marker in content_type:
            lines = (line.rstrip("\r") for line in text.split("\n"))
            return [json.loads(line) for line in lines if line.strip()]
        return json.loads(text)
    except ValueError as exc:
        raise SearchConnectionError(f"Failed to parse request body: {exc}") from exc


def _finish(raw: RawRequest, payload: bytes | None, ndjson_marker: str) -> NormalizedRequest:
    body = None
    if payload:
        body = decode_body(
            payload,
            content_encoding=raw.header("content-encoding"),
            content_type=raw.header("content-type"),
            ndjson_marker=ndjson_marker,
        )
    normalized = NormalizedRequest(
        method=raw.method,
        path=raw.path,
        querystring=parse_querystring(raw.querystring),
        body=body,
    )
    logger.debug(
        "Normalized %s %s query_keys=%d body=%s",
        normalized.method,
        normalized.path,
        len(normalized.querystring),
        type(body).__name__,
    )
    return normalized


def normalize(raw: RawRequest, *, ndjson_marker: str = DEFAULT_NDJSON_MARKER) -> NormalizedRequest:
    """Normalize a request whose body is a buffer or a synchronous stream."""
    payload: bytes | None = None
    if is_stream(raw.body):
        if isinstance(raw.body, AsyncIterable) and not isinstance(raw.body, Iterable):
            raise ConfigurationError("An async body stream requires anormalize()")
        payload = _drain(raw.body)
    elif raw.body is not None:
        payload = _as_bytes(raw.body)
    return _finish(raw, payload, ndjson_marker)


async def anormalize(
    raw: RawRequest, *, ndjson_marker: str = DEFAULT_NDJSON_MARKER
) -> NormalizedRequest:
    """Async variant of normalize(); drains async streams without blocking."""
    payload: bytes | None = None
    if is_stream(raw.body):
        payload = await _adrain(raw.body)
    elif raw.body is not None:
        payload = _as_bytes(raw.body)
    return _finish(raw, payload, ndjson_marker)
