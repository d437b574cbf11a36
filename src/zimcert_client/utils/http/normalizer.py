"""Response normalizer: one canonical success shape for every caller.

The backend answers with several envelope variants depending on the
endpoint and its age: ``{success, data}`` envelopes, envelopes whose
``data`` nests a collection (``{data: {items: [...]}}`` or a
resource-specific key such as ``certificates``), flat legacy bodies,
and binary downloads. :func:`detect_shape` decides which variant a
body is with an explicit, ordered policy, and
:class:`ResponseNormalizer` unwraps it into a
:class:`~zimcert_client.models.CanonicalResponse`.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from ...models.envelopes import ApiEnvelope, CanonicalResponse, ResponseMeta
from .classifier import classify_application_error, malformed_response
from .transport import RawResponse

logger = logging.getLogger(__name__)

GENERIC_COLLECTION_KEY = "items"
PAGINATION_KEYS = ("total", "page", "pageSize", "hasMore")


class EnvelopeShape(str, Enum):
    """Recognized response body variants, in detection priority order."""

    BINARY = "binary"
    ENVELOPED = "enveloped"
    FLAT = "flat"


def detect_shape(body: Any, binary: bool = False) -> EnvelopeShape:
    """Decide which envelope variant a decoded body uses.

    Policy, first match wins:

    1. the caller declared the response binary
    2. a dict with a boolean ``success`` that is false, or that
       carries a ``data`` key, is an envelope
    3. anything else is a flat legacy body; ``{success: true}``
       without ``data`` is a legacy body that happens to report success

    :param body: Decoded JSON body
    :param binary: Whether the caller declared a binary response
    :return: Detected shape
    :raises ValueError: If ``success`` is present but not a boolean
    """
    if binary:
        return EnvelopeShape.BINARY
    if isinstance(body, dict) and "success" in body:
        success = body["success"]
        if not isinstance(success, bool):
            raise ValueError(f"'success' must be a boolean, got {type(success).__name__}")
        if success is False or "data" in body:
            return EnvelopeShape.ENVELOPED
    return EnvelopeShape.FLAT


def unwrap_collection(
    container: Any, resource_key: Optional[str] = None
) -> Tuple[Any, Optional[Dict[str, Any]]]:
    """Unwrap a nested collection from a payload container.

    The resource-specific key wins over the generic ``items`` key.
    Pagination fields found beside the collection are returned as
    metadata.

    :param container: Payload candidate
    :param resource_key: Resource-specific collection key, e.g. ``certificates``
    :return: Tuple of (payload, pagination fields or None)
    """
    if not isinstance(container, dict):
        return container, None
    for key in (resource_key, GENERIC_COLLECTION_KEY):
        if key and key in container:
            meta = {k: container[k] for k in PAGINATION_KEYS if k in container}
            return container[key], meta or None
    return container, None


class ResponseNormalizer:
    """Turns a successful raw response into a CanonicalResponse.

    Normalization is total: every success-range response either maps
    to a canonical response or raises a classified
    ``MalformedResponse``/``ApplicationError``.
    """

    def normalize(
        self,
        raw: RawResponse,
        *,
        binary: bool = False,
        resource_key: Optional[str] = None,
    ) -> CanonicalResponse:
        """Normalize a success-range response.

        :param raw: Raw response from the transport
        :type raw: RawResponse
        :param binary: The caller declared the payload binary
        :type binary: bool
        :param resource_key: Resource-specific collection key
        :type resource_key: Optional[str]
        :return: Canonical response
        :rtype: CanonicalResponse
        :raises ClassifiedError: For malformed bodies and ``success: false``
        """
        if binary:
            return CanonicalResponse(payload=raw.content)

        try:
            body = raw.json()
        except ValueError as e:
            raise malformed_response(f"Response body is not valid JSON: {e}", raw.status_code)
        if body is None:
            return CanonicalResponse()

        try:
            shape = detect_shape(body)
        except ValueError as e:
            raise malformed_response(str(e), raw.status_code)

        try:
            if shape is EnvelopeShape.ENVELOPED:
                return self._from_envelope(body, raw.status_code, resource_key)
            payload, meta = unwrap_collection(body, resource_key)
            return CanonicalResponse(
                payload=payload,
                meta=ResponseMeta.model_validate(meta) if meta else None,
            )
        except ValidationError as e:
            raise malformed_response(f"Unexpected envelope structure: {e}", raw.status_code)

    def _from_envelope(
        self, body: Dict[str, Any], status: int, resource_key: Optional[str]
    ) -> CanonicalResponse:
        envelope = ApiEnvelope.model_validate(body)
        if not envelope.success:
            raise classify_application_error(body, status)

        payload, meta = unwrap_collection(envelope.data, resource_key)
        if envelope.meta:
            meta = {**envelope.meta, **(meta or {})}
        return CanonicalResponse(
            payload=payload,
            meta=ResponseMeta.model_validate(meta) if meta else None,
        )
