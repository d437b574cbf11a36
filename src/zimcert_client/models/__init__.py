"""Pydantic models for response envelopes and resource results."""

from .envelopes import (
    ApiEnvelope,
    CanonicalResponse,
    EnvelopeError,
    ResponseMeta,
)
from .resources import Certificate, SearchResult, VerificationResult

__all__ = [
    "ApiEnvelope",
    "CanonicalResponse",
    "EnvelopeError",
    "ResponseMeta",
    "Certificate",
    "SearchResult",
    "VerificationResult",
]
