"""Structured exception classes for the ZIM certificate API client."""

import json
from typing import Any, Dict, Optional

from .utils.errors import RETRYABLE_KINDS, RETRYABLE_STATUSES, ErrorDetail, ErrorKind


class ZimcertClientError(Exception):
    """Base exception for all client errors.

    This exception serves as the parent class for all client specific
    exceptions, providing a consistent interface for error handling
    across feature-level callers.

    :param message: Human-readable error message
    :param code: Optional error code for programmatic handling
    :param details: Optional dictionary containing additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        """Initialize the exception with message, code, and details."""
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details if details is not None else {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format.

        :return: Dictionary containing error code, message, and details
        """
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string.

        :return: JSON-encoded string representation of the exception
        """
        return json.dumps(self.to_dict(), default=str)


class ClassifiedError(ZimcertClientError):
    """The single failure shape every API call resolves with.

    Raised for network failures, HTTP error statuses, malformed
    response bodies, application-level ``success: false`` envelopes
    and cancellation. The ``kind`` is drawn from :class:`ErrorKind`.

    ``retry_after`` and ``correlation_id`` are diagnostic only and are
    not part of the presentation model returned by :meth:`to_model`.

    :param kind: Error kind from the closed taxonomy
    :param message: Human-readable error message
    :param http_status: HTTP status code, when a response was received
    :param code: Backend or client error code
    :param details: Additional error details from the backend
    :param retry_after: Seconds the server asked us to wait, if any
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        http_status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        retry_after: Optional[float] = None,
    ):
        """Initialize the classified error."""
        super().__init__(message=message, code=code, details=details)
        # Only keep a code the backend or classifier actually supplied
        self.code = code
        self.details = details
        self.kind = kind
        self.http_status = http_status
        self.retry_after = retry_after
        self.correlation_id: Optional[str] = None

    @property
    def is_retryable(self) -> bool:
        """Whether another attempt could succeed.

        :return: True for network failures, timeouts and retryable statuses
        """
        if self.kind in RETRYABLE_KINDS:
            return True
        return self.http_status is not None and self.http_status in RETRYABLE_STATUSES

    def to_model(self) -> ErrorDetail:
        """Convert to the presentation model.

        :return: ErrorDetail instance
        """
        return ErrorDetail(
            kind=self.kind,
            message=self.message,
            http_status=self.http_status,
            code=self.code,
            details=self.details,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary using the wire-style field names.

        :return: Dictionary with kind, message, httpStatus, code and details
        """
        return self.to_model().model_dump(mode="json", by_alias=True)

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self.kind.value!r}, message={self.message!r}, "
            f"http_status={self.http_status!r}, code={self.code!r})"
        )


class ConfigurationError(ZimcertClientError):
    """Raised for configuration-related errors.

    This exception is raised when configuration validation fails
    or when required configuration settings are missing or invalid.

    :param message: Description of the configuration error
    :param setting: Optional name of the problematic setting
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        """Initialize configuration error with message and optional setting."""
        details = {}
        if setting:
            details["setting"] = setting
        super().__init__(message=message, code="CONFIGURATION_ERROR", details=details)


class SessionStoreError(ZimcertClientError):
    """Raised when the session store cannot be read or written.

    The request decorator treats this as "no token available" and
    sends the request unauthenticated.

    :param message: Description of the storage failure
    :param path: Optional path of the backing file
    """

    def __init__(self, message: str, path: Optional[str] = None):
        """Initialize session store error with message and optional path."""
        details = {}
        if path:
            details["path"] = path
        super().__init__(message=message, code="SESSION_STORE_ERROR", details=details)
