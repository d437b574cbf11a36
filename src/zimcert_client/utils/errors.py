"""
Error taxonomy and error data models for the API client core.

This module provides the closed set of error kinds every failure is
mapped to, the Pydantic model describing a classified error, and the
user-facing default messages used when the backend supplies none.

The module provides:
- ErrorKind: the closed error taxonomy
- ErrorDetail: serializable view of a classified error
- Default messages per kind and per HTTP status
- The set of retryable HTTP statuses
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    """Kinds of failure a logical request can resolve with.

    The set is closed: every transport failure, HTTP error status,
    malformed body or application-level rejection maps to exactly
    one of these values.
    """

    NETWORK = "Network"
    TIMEOUT = "Timeout"
    CLIENT_ERROR = "ClientError"
    RATE_LIMITED = "RateLimited"
    SERVER_ERROR = "ServerError"
    CANCELLED = "Cancelled"
    MALFORMED_RESPONSE = "MalformedResponse"
    APPLICATION_ERROR = "ApplicationError"
    UNKNOWN = "Unknown"


class ErrorDetail(BaseModel):
    """Serializable form of a classified error.

    This is the only error shape handed to presentation code. It
    deliberately carries no attempt counts or retry state.
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: ErrorKind = Field(..., description="Error kind from the closed taxonomy")
    message: str = Field(..., description="Human-readable error message")
    http_status: Optional[int] = Field(
        None, alias="httpStatus", description="HTTP status, when a response was received"
    )
    code: Optional[str] = Field(None, description="Backend or client error code")
    details: Optional[Any] = Field(None, description="Additional error details")


# HTTP statuses worth another attempt
RETRYABLE_STATUSES: FrozenSet[int] = frozenset({408, 429, 500, 502, 503, 504})

# Kinds produced without any HTTP status that are still transient
RETRYABLE_KINDS: FrozenSet[ErrorKind] = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT})

NETWORK_ERROR = "Network error. Please check your connection and try again."
SERVER_ERROR = "Server error. Please try again later."
VALIDATION_ERROR = "Please check your input and try again."
UNAUTHORIZED = "You are not authorized to perform this action."
FORBIDDEN = "You don't have permission to access this resource."
NOT_FOUND = "The requested resource was not found."
CONFLICT = "A conflict occurred. The resource already exists or has been modified."
TIMEOUT = "Request timed out. Please try again."
RATE_LIMITED = "Too many requests. Please wait a moment and try again."
MALFORMED_RESPONSE = "The server returned an unexpected response."
APPLICATION_ERROR = "API request failed"
CANCELLED = "The request was cancelled."
UNKNOWN_ERROR = "An unexpected error occurred. Please try again."

STATUS_MESSAGES: Dict[int, str] = {
    400: VALIDATION_ERROR,
    401: UNAUTHORIZED,
    403: FORBIDDEN,
    404: NOT_FOUND,
    408: TIMEOUT,
    409: CONFLICT,
    429: RATE_LIMITED,
    500: SERVER_ERROR,
    502: SERVER_ERROR,
    503: SERVER_ERROR,
    504: SERVER_ERROR,
}

KIND_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.NETWORK: NETWORK_ERROR,
    ErrorKind.TIMEOUT: TIMEOUT,
    ErrorKind.RATE_LIMITED: RATE_LIMITED,
    ErrorKind.SERVER_ERROR: SERVER_ERROR,
    ErrorKind.CANCELLED: CANCELLED,
    ErrorKind.MALFORMED_RESPONSE: MALFORMED_RESPONSE,
    ErrorKind.APPLICATION_ERROR: APPLICATION_ERROR,
}


def default_message(kind: ErrorKind, status: Optional[int] = None) -> str:
    """Pick the fallback message for a failure without a backend message.

    Status-specific messages win over kind defaults, which win over
    the generic fallback.

    :param kind: Classified error kind
    :type kind: ErrorKind
    :param status: HTTP status, if a response was received
    :type status: Optional[int]
    :return: User-facing message
    :rtype: str
    """
    if status is not None and status in STATUS_MESSAGES:
        return STATUS_MESSAGES[status]
    return KIND_MESSAGES.get(kind, UNKNOWN_ERROR)
