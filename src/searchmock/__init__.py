"""searchmock: mock transport for search-engine HTTP clients in tests."""

from searchmock.client import ClientMock
from searchmock.config import MockConfig
from searchmock.connection import MockConnection
from searchmock.logging import (
    bind_request_id,
    configure_logging,
    get_request_id,
    request_id_scope,
)
from searchmock.models import (
    UNSET,
    ConfigurationError,
    MockPattern,
    NormalizedRequest,
    RawRequest,
    RequestAbortedError,
    ResponseError,
    SearchClientError,
    SearchConnectionError,
    SearchTimeoutError,
)

__version__ = "0.3.0"

__all__ = [
    "ClientMock",
    "ConfigurationError",
    "MockConfig",
    "MockConnection",
    "MockPattern",
    "NormalizedRequest",
    "RawRequest",
    "RequestAbortedError",
    "ResponseError",
    "SearchClientError",
    "SearchConnectionError",
    "SearchTimeoutError",
    "UNSET",
    "__version__",
    "bind_request_id",
    "configure_logging",
    "get_request_id",
    "request_id_scope",
]
