"""Error classifier: every failure maps to exactly one ClassifiedError.

Pure functions turning transport failures, HTTP error statuses and
application-level ``success: false`` envelopes into a
:class:`~zimcert_client.exceptions.ClassifiedError`. The same input
always yields the same kind and message.

Message priority: explicit backend message, then the status-code
default, then the generic fallback.
"""

import json
import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional, Tuple

import httpx

from ...exceptions import ClassifiedError
from ..errors import RETRYABLE_STATUSES, ErrorKind, default_message

logger = logging.getLogger(__name__)


def parse_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[float]:
    """Parse a Retry-After header.

    Supports both delta-seconds and HTTP-date formats.

    :param headers: Response headers
    :return: Seconds to wait, or None if absent or unparsable
    """
    if not headers:
        return None
    retry_after = (headers.get("retry-after") or "").strip()
    if not retry_after:
        return None

    if retry_after.isdigit():
        return float(retry_after)

    try:
        retry_date = parsedate_to_datetime(retry_after)
    except (TypeError, ValueError):
        logger.warning(f"Failed to parse Retry-After header '{retry_after}'")
        return None
    if retry_date is None:
        return None
    delay = (retry_date - datetime.now(retry_date.tzinfo)).total_seconds()
    return max(0.0, delay)


def extract_error_fields(body: Any) -> Tuple[Optional[str], Optional[str], Any]:
    """Pull message, code and details out of an error body.

    Recognized formats, in order:
    ``{error: {message}}``, ``{message}``, ``{error: "..."}`` and a
    bare string body.

    :param body: Decoded error body
    :return: Tuple of (message, code, details)
    """
    message: Optional[str] = None
    code: Any = None
    details: Any = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            message = error["message"]
        elif body.get("message"):
            message = body["message"]
        elif isinstance(error, str) and error.strip():
            message = error

        code = body.get("code")
        if code is None and isinstance(error, dict):
            code = error.get("code") or error.get("name")
        details = body.get("details")
        if details is None and isinstance(error, dict):
            details = error.get("details")
    elif isinstance(body, str) and body.strip():
        message = body.strip()

    return (
        str(message) if message is not None else None,
        str(code) if code is not None else None,
        details,
    )


def decode_error_body(content: bytes, headers: Optional[Mapping[str, str]] = None) -> Any:
    """Decode an error response body as leniently as possible.

    JSON is preferred; plain-text bodies are used as the message.
    Anything else (HTML error pages, binary) yields None.
    """
    if not content or not content.strip():
        return None
    try:
        return json.loads(content)
    except ValueError:
        pass
    content_type = ((headers or {}).get("content-type") or "").lower()
    if content_type.startswith("text/plain"):
        return content.decode("utf-8", errors="replace")
    return None


def classify_transport_failure(exc: BaseException) -> ClassifiedError:
    """Classify a failure where no response was obtained.

    :param exc: Exception raised by the transport
    :return: Timeout, Network or Unknown classified error
    """
    if isinstance(exc, httpx.TimeoutException):
        kind, code = ErrorKind.TIMEOUT, "TIMEOUT"
    elif isinstance(exc, httpx.TransportError):
        kind, code = ErrorKind.NETWORK, "NETWORK_ERROR"
    else:
        kind, code = ErrorKind.UNKNOWN, "UNKNOWN_ERROR"
    return ClassifiedError(
        kind=kind,
        message=default_message(kind),
        code=code,
        details={"exception": type(exc).__name__, "reason": str(exc)},
    )


def classify_status(status: int, envelope_failure: bool = False) -> ErrorKind:
    """Map an HTTP error status to an error kind.

    An enveloped ``success: false`` body turns non-retryable statuses
    into ``ApplicationError``; retryable statuses keep their
    status-derived kind.

    Every 5xx is a ``ServerError``, but only 500, 502, 503 and 504 are
    in ``RETRYABLE_STATUSES``. 501 and 505 describe a request the
    server will never accept, so they are classified as server errors
    and still not retried.
    """
    if status == 408:
        return ErrorKind.TIMEOUT
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if 500 <= status < 600:
        return ErrorKind.SERVER_ERROR
    if envelope_failure and status not in RETRYABLE_STATUSES:
        return ErrorKind.APPLICATION_ERROR
    if 400 <= status < 500:
        return ErrorKind.CLIENT_ERROR
    return ErrorKind.UNKNOWN


def classify_http_error(
    status: int,
    content: bytes = b"",
    headers: Optional[Mapping[str, str]] = None,
) -> ClassifiedError:
    """Classify a response whose status is outside the success range.

    :param status: HTTP status code
    :param content: Raw response body
    :param headers: Response headers
    :return: Classified error
    """
    body = decode_error_body(content, headers)
    message, code, details = extract_error_fields(body)
    envelope_failure = isinstance(body, dict) and body.get("success") is False
    kind = classify_status(status, envelope_failure)

    retry_after = parse_retry_after(headers) if status in RETRYABLE_STATUSES else None
    return ClassifiedError(
        kind=kind,
        message=message or default_message(kind, status),
        http_status=status,
        code=code,
        details=details,
        retry_after=retry_after,
    )


def classify_application_error(body: Any, status: Optional[int] = None) -> ClassifiedError:
    """Classify an enveloped ``success: false`` body.

    :param body: Decoded envelope
    :param status: HTTP status the envelope arrived with
    :return: ApplicationError classified error
    """
    message, code, details = extract_error_fields(body)
    return ClassifiedError(
        kind=ErrorKind.APPLICATION_ERROR,
        message=message or default_message(ErrorKind.APPLICATION_ERROR, status),
        http_status=status,
        code=code,
        details=details,
    )


def malformed_response(reason: str, status: Optional[int] = None) -> ClassifiedError:
    """Build the error for a success status whose body cannot be parsed."""
    return ClassifiedError(
        kind=ErrorKind.MALFORMED_RESPONSE,
        message=default_message(ErrorKind.MALFORMED_RESPONSE),
        http_status=status,
        code="MALFORMED_RESPONSE",
        details={"reason": reason},
    )


def cancelled(reason: Optional[str] = None) -> ClassifiedError:
    """Build the error for a logical request cancelled by its caller."""
    return ClassifiedError(
        kind=ErrorKind.CANCELLED,
        message=default_message(ErrorKind.CANCELLED),
        code="CANCELLED",
        details={"reason": reason or "cancelled"},
    )


def classify_exception(exc: BaseException) -> ClassifiedError:
    """Classify an unexpected exception raised while building or sending.

    :param exc: Any exception that escaped the pipeline stages
    :return: The classified error
    """
    if isinstance(exc, ClassifiedError):
        return exc
    if isinstance(exc, (httpx.HTTPError, httpx.InvalidURL)):
        return classify_transport_failure(exc)
    return ClassifiedError(
        kind=ErrorKind.UNKNOWN,
        message=str(exc) or default_message(ErrorKind.UNKNOWN),
        code="CLIENT_ERROR",
        details={"exception": type(exc).__name__},
    )
