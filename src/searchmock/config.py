"""
Configuration for searchmock.

All configuration is validated at construction time, not per-request.
Environment variables are read once via ``MockConfig.from_env()`` and
the resulting object is immutable.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from searchmock.normalize import DEFAULT_NDJSON_MARKER

logger = logging.getLogger(__name__)

_DEFAULT_PRODUCT_HEADER = "Elasticsearch"
_DEFAULT_NOT_FOUND_STATUS = 404


@dataclass(frozen=True)
class MockConfig:
    """Validated, immutable configuration for mock connections.

    Args:
        product_header: Value of the ``x-elastic-product`` response header.
            Clients that verify the product check this; an empty string
            omits the header.
        echo_request_on_miss: Include the normalized request under
            ``"params"`` in the not-found body, for debugging test setup.
        ndjson_marker: Substring of the content type that selects
            newline-delimited JSON parsing.
        not_found_status: Status code of the synthesized not-found response.
    """

    product_header: str = _DEFAULT_PRODUCT_HEADER
    echo_request_on_miss: bool = False
    ndjson_marker: str = DEFAULT_NDJSON_MARKER
    not_found_status: int = _DEFAULT_NOT_FOUND_STATUS

    def __post_init__(self) -> None:
        errors: list[str] = []

        if not self.ndjson_marker:
            errors.append("ndjson_marker must be a non-empty string")
        if self.not_found_status < 400 or self.not_found_status > 599:
            errors.append(f"not_found_status must be 400-599, got {self.not_found_status}")
        if "\n" in self.product_header or "\r" in self.product_header:
            errors.append("product_header must not contain line breaks")

        if errors:
            raise ValueError("Invalid searchmock configuration: " + "; ".join(errors))

    @classmethod
    def from_env(cls, **overrides: object) -> MockConfig:
        """Build config from environment variables with optional overrides.

        Environment variables:
            SEARCHMOCK_PRODUCT_HEADER    -- x-elastic-product value (default Elasticsearch)
            SEARCHMOCK_ECHO_REQUEST      -- echo the request in 404 bodies (default false)
            SEARCHMOCK_NDJSON_MARKER     -- ndjson content-type marker (default x-ndjson)
            SEARCHMOCK_NOT_FOUND_STATUS  -- status for unmatched requests (default 404)

        Explicit keyword arguments override environment variables.
        """

        def _env(key: str, default: str) -> str:
            return os.environ.get(key, default)

        def _env_int(key: str, default: int) -> int:
            raw = os.environ.get(key)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                raise ValueError(f"Environment variable {key}={raw!r} is not a valid integer")

        def _env_bool(key: str, default: bool) -> bool:
            raw = os.environ.get(key)
            if raw is None:
                return default
            low = raw.strip().lower()
            if low in ("true", "1", "yes"):
                return True
            if low in ("false", "0", "no", ""):
                return False
            raise ValueError(f"Environment variable {key}={raw!r} is not a valid boolean")

        kwargs: dict[str, object] = {
            "product_header": _env("SEARCHMOCK_PRODUCT_HEADER", _DEFAULT_PRODUCT_HEADER),
            "echo_request_on_miss": _env_bool("SEARCHMOCK_ECHO_REQUEST", False),
            "ndjson_marker": _env("SEARCHMOCK_NDJSON_MARKER", DEFAULT_NDJSON_MARKER),
            "not_found_status": _env_int("SEARCHMOCK_NOT_FOUND_STATUS", _DEFAULT_NOT_FOUND_STATUS),
        }
        kwargs.update({k: v for k, v in overrides.items() if v is not None})

        config = cls(**kwargs)  # type: ignore[arg-type]
        logger.debug(
            "searchmock config: product_header=%r echo_request_on_miss=%s"
            " ndjson_marker=%r not_found_status=%d",
            config.product_header,
            config.echo_request_on_miss,
            config.ndjson_marker,
            config.not_found_status,
        )
        return config
