"""HTTP utilities public API (barrel module).

This package provides:
- Shared HTTP client manager and helpers
- Request descriptors, options and the request decorator
- Transport pipeline for single attempts
- Retry engine with exponential backoff and cancellation
- Response normalizer and error classifier
- The resilient API client composing all of the above

Recommended import pattern for consumers:
    from zimcert_client.utils.http import create_api_client, CancellationToken

This keeps call sites stable even if internal modules are reorganized.
"""

from .cancellation import CancellationToken
from .classifier import (
    cancelled,
    classify_application_error,
    classify_exception,
    classify_http_error,
    classify_status,
    classify_transport_failure,
    malformed_response,
    parse_retry_after,
)
from .client_manager import (
    HTTPClientManager,
    create_limits,
    create_timeout,
    http_client_manager,
)
from .normalizer import EnvelopeShape, ResponseNormalizer, detect_shape
from .request import (
    REQUEST_ID_HEADER,
    AttemptMetadata,
    RequestDecorator,
    RequestDescriptor,
    RequestOptions,
    mint_correlation_id,
)
from .resilient_client import ResilientApiClient, create_api_client
from .retry import RetryEngine, RetryPolicy
from .transport import RawOutcome, RawResponse, Transport, TransportFailure

__all__ = [
    "HTTPClientManager",
    "http_client_manager",
    "create_timeout",
    "create_limits",
    "CancellationToken",
    "RequestOptions",
    "RequestDescriptor",
    "AttemptMetadata",
    "RequestDecorator",
    "REQUEST_ID_HEADER",
    "mint_correlation_id",
    "Transport",
    "RawResponse",
    "TransportFailure",
    "RawOutcome",
    "RetryPolicy",
    "RetryEngine",
    "EnvelopeShape",
    "detect_shape",
    "ResponseNormalizer",
    "parse_retry_after",
    "classify_transport_failure",
    "classify_status",
    "classify_http_error",
    "classify_application_error",
    "classify_exception",
    "malformed_response",
    "cancelled",
    "ResilientApiClient",
    "create_api_client",
]
