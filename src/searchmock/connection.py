"""
Mock connection: an httpx transport that answers from the pattern registry.

``MockConnection`` implements both the sync and the async httpx transport
interfaces, so the same object can back an ``httpx.Client`` or an
``httpx.AsyncClient``::

    mock = ClientMock()
    client = httpx.AsyncClient(
        base_url="http://localhost:9200",
        transport=mock.get_connection()(),
    )

A request may carry a cancellation signal in its extensions
(``extensions={"signal": event}``). For the async client this is an
``asyncio.Event``; for the sync client any object with ``is_set()``.
Once the signal fires the request fails with :class:`RequestAbortedError`
and no response is delivered.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import json
import logging
import time
from collections.abc import Coroutine
from contextlib import nullcontext
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import httpx

from searchmock.logging import (
    OUTCOME_MATCHED,
    OUTCOME_NOT_FOUND,
    OUTCOME_RAISED,
    OUTCOME_RESPONSE_ERROR,
    request_extra,
    request_id_scope,
)
from searchmock.models import (
    NormalizedRequest,
    RawRequest,
    RequestAbortedError,
    ResponseError,
    SearchClientError,
)
from searchmock.normalize import anormalize, normalize
from searchmock.resolver import resolve

if TYPE_CHECKING:
    from searchmock.client import ClientMock

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Mock not found"
OPAQUE_ID_HEADER = "x-opaque-id"

_JSON_CONTENT_TYPE = "application/json; charset=utf-8"
_TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

_otel_tracer: Any = None
try:
    from opentelemetry import trace

    _otel_tracer = trace.get_tracer("searchmock")
except ImportError:
    pass


def _otel_span(name: str, method: str, path: str) -> Any:
    """Return an OTel span context manager, or nullcontext if OTel is absent."""
    if _otel_tracer is not None:
        return _otel_tracer.start_as_current_span(
            name,
            attributes={"http.request.method": method, "url.path": path},
        )
    return nullcontext()


def _elapsed_ms(t0: float) -> float:
    return (time.monotonic() - t0) * 1000


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def build_response(status_code: int, payload: Any, product_header: str = "") -> httpx.Response:
    """Serialize *payload* into the response a real node would send.

    Strings are sent as plain text, everything else as JSON.
    """
    if isinstance(payload, str):
        content = payload.encode("utf-8")
        content_type = _TEXT_CONTENT_TYPE
    else:
        content = json.dumps(payload, default=_json_default).encode("utf-8")
        content_type = _JSON_CONTENT_TYPE

    headers = {
        "content-type": content_type,
        "content-length": str(len(content)),
        "date": datetime.now(timezone.utc).isoformat(),
        "connection": "keep-alive",
    }
    if product_header:
        headers["x-elastic-product"] = product_header
    return httpx.Response(status_code, headers=headers, content=content)


def _is_aborted(signal: Any) -> bool:
    return signal is not None and bool(signal.is_set())


async def _until_aborted(
    work: Coroutine[Any, Any, NormalizedRequest], signal: Any
) -> NormalizedRequest:
    """Await *work* unless *signal* fires first.

    The pending work is cancelled on abort and its outcome is discarded.
    """
    if _is_aborted(signal):
        work.close()
        raise RequestAbortedError()
    if not inspect.iscoroutinefunction(getattr(signal, "wait", None)):
        result = await work
        if _is_aborted(signal):
            raise RequestAbortedError()
        return result

    task = asyncio.ensure_future(work)
    waiter = asyncio.ensure_future(signal.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()

    if _is_aborted(signal):
        if task.done() and not task.cancelled():
            task.exception()
        raise RequestAbortedError()
    return task.result()


class MockConnection(httpx.BaseTransport, httpx.AsyncBaseTransport):
    """Transport that resolves every request against a :class:`ClientMock`.

    The registry is read when each request is resolved, so patterns added
    or cleared after the transport was created are honored. Log records for
    a request carrying ``X-Opaque-Id`` are tagged with that id.
    """

    def __init__(self, mock: ClientMock) -> None:
        self._mock = mock

    @property
    def mock(self) -> ClientMock:
        return self._mock

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        raw = RawRequest.from_httpx(request)
        signal = request.extensions.get("signal")
        with request_id_scope(raw.header(OPAQUE_ID_HEADER)), _otel_span(
            "searchmock.request", raw.method, raw.path
        ):
            t0 = time.monotonic()
            if _is_aborted(signal):
                raise RequestAbortedError()
            normalized = normalize(raw, ndjson_marker=self._mock.config.ndjson_marker)
            if _is_aborted(signal):
                raise RequestAbortedError()
            return self._respond(normalized, t0)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        raw = RawRequest.from_httpx(request)
        signal = request.extensions.get("signal")
        with request_id_scope(raw.header(OPAQUE_ID_HEADER)), _otel_span(
            "searchmock.request", raw.method, raw.path
        ):
            t0 = time.monotonic()
            work = anormalize(raw, ndjson_marker=self._mock.config.ndjson_marker)
            if signal is None:
                normalized = await work
            else:
                normalized = await _until_aborted(work, signal)
            return self._respond(normalized, t0)

    def _respond(self, request: NormalizedRequest, t0: float) -> httpx.Response:
        """Invoke the winning resolver, or synthesize the not-found response."""
        config = self._mock.config
        resolver = resolve(self._mock.registry, request)

        if resolver is None:
            payload: Any = {"error": NOT_FOUND_MESSAGE}
            if config.echo_request_on_miss:
                payload["params"] = request.to_dict()
            status = config.not_found_status
            logger.info(
                "No mock for %s %s",
                request.method,
                request.path,
                extra=request_extra(
                    request.method, request.path, status, OUTCOME_NOT_FOUND, _elapsed_ms(t0)
                ),
            )
            return build_response(status, payload, config.product_header)

        payload = resolver(request)
        status = 200
        outcome = OUTCOME_MATCHED
        if isinstance(payload, ResponseError):
            status = payload.status_code
            payload = payload.body
            outcome = OUTCOME_RESPONSE_ERROR
        elif isinstance(payload, SearchClientError):
            logger.debug(
                "Mock for %s %s raised %s",
                request.method,
                request.path,
                type(payload).__name__,
                extra=request_extra(
                    request.method, request.path, None, OUTCOME_RAISED, _elapsed_ms(t0)
                ),
            )
            raise payload

        logger.debug(
            "Mocked %s %s",
            request.method,
            request.path,
            extra=request_extra(request.method, request.path, status, outcome, _elapsed_ms(t0)),
        )
        return build_response(status, payload, config.product_header)
