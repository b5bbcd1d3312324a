"""
Structured logging for intercepted requests.

Every request the mock connection answers is logged once with a fixed set
of fields: ``method``, ``path``, ``status``, ``outcome`` (``matched``,
``not_found``, ``response_error`` or ``raised``) and ``duration_ms``. The
formatters here render those fields by name, so a captured log reads as a
list of "what was asked, what was answered".

Records are correlated by a request-id held in a ``ContextVar``. A test can
bind one explicitly; the connection also scopes each request to the
``X-Opaque-Id`` header that search clients send.

Usage::

    from searchmock.logging import configure_logging, bind_request_id
    configure_logging(logging.DEBUG)   # JSON to stderr
    bind_request_id("test-bulk-01")
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "searchmock"

OUTCOME_MATCHED = "matched"
OUTCOME_NOT_FOUND = "not_found"
OUTCOME_RESPONSE_ERROR = "response_error"
OUTCOME_RAISED = "raised"

REQUEST_FIELDS = ("method", "path", "status", "outcome", "duration_ms")

_request_id_var: ContextVar[str] = ContextVar("searchmock_request_id", default="")

_RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "request_id",
    "rid",
    *REQUEST_FIELDS,
}


def bind_request_id(request_id: str | None = None) -> str:
    """Set the request-id for the current context, generating one if omitted."""
    rid = request_id or uuid.uuid4().hex[:12]
    _request_id_var.set(rid)
    return rid


def get_request_id() -> str:
    """Return the current request-id, or ``""`` if none is bound."""
    return _request_id_var.get()


@contextmanager
def request_id_scope(request_id: str) -> Iterator[str]:
    """Bind *request_id* until the block exits; an empty id keeps the current one."""
    if not request_id:
        yield _request_id_var.get()
        return
    token = _request_id_var.set(request_id)
    try:
        yield request_id
    finally:
        _request_id_var.reset(token)


def request_extra(
    method: str, path: str, status: int | None, outcome: str, duration_ms: float
) -> dict:
    """Build the ``extra=`` mapping for one answered request."""
    return {
        "request_id": _request_id_var.get(),
        "method": method,
        "path": path,
        "status": status,
        "outcome": outcome,
        "duration_ms": round(duration_ms, 1),
    }


def request_fields(record: logging.LogRecord) -> dict[str, Any]:
    """The request fields present on *record*, in display order."""
    return {key: getattr(record, key) for key in REQUEST_FIELDS if hasattr(record, key)}


def _record_request_id(record: logging.LogRecord) -> str:
    return getattr(record, "request_id", "") or _request_id_var.get()


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Request fields appear at the top level under their own names; any other
    ``extra`` values are grouped under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        rid = _record_request_id(record)
        if rid:
            entry["request_id"] = rid
        entry.update(request_fields(record))

        extra = {k: v for k, v in record.__dict__.items() if k not in _RESERVED}
        if extra:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines; answered requests get a ``METHOD path -> status`` suffix."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-5s [%(rid)s] %(name)s - %(message)s")

    def formatMessage(self, record: logging.LogRecord) -> str:
        record.rid = _record_request_id(record)  # type: ignore[attr-defined]
        line = super().formatMessage(record)
        fields = request_fields(record)
        if "outcome" in fields:
            method = fields.get("method", "?")
            path = fields.get("path", "?")
            status = fields.get("status") or "-"
            line += f" | {method} {path} -> {status} {fields['outcome']}"
        return line


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = True,
) -> None:
    """Attach a single stderr handler to the ``searchmock`` logger tree.

    Args:
        level: Logging level (default ``logging.INFO``).
        json_format: JSON lines if ``True``, otherwise :class:`TextFormatter`.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if json_format else TextFormatter())

    root = logging.getLogger(LOGGER_NAME)
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
