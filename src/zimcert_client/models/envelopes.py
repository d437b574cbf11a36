"""Response envelope and canonical response models.

The certificate backend wraps payloads inconsistently across
endpoints. These models describe the enveloped shape the backend
uses today and the canonical shape every caller receives.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class EnvelopeError(BaseModel):
    """Error object carried by a ``success: false`` envelope."""

    model_config = ConfigDict(extra="allow")

    message: Optional[str] = Field(None, description="Backend error message")
    code: Optional[str] = Field(None, description="Backend error code")
    name: Optional[str] = Field(None, description="Backend error name")
    details: Optional[Any] = Field(None, description="Backend error details")


class ApiEnvelope(BaseModel):
    """The ``{success, data?, error?, meta?}`` response envelope.

    ``success`` must be a real boolean; a body carrying any other
    ``success`` value is treated as malformed.
    """

    model_config = ConfigDict(extra="allow")

    success: StrictBool
    data: Optional[Any] = None
    error: Optional[Union[EnvelopeError, str]] = None
    meta: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class ResponseMeta(BaseModel):
    """Pagination and listing metadata attached to a payload."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    total: Optional[int] = None
    page: Optional[int] = None
    page_size: Optional[int] = Field(None, alias="pageSize")
    has_more: Optional[bool] = Field(None, alias="hasMore")


class CanonicalResponse(BaseModel):
    """The single success shape returned to every caller.

    :param payload: Unwrapped payload (collection, object, scalar or bytes)
    :param meta: Optional pagination/listing metadata
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    payload: Any = None
    meta: Optional[ResponseMeta] = None

    @property
    def data(self) -> Any:
        """Alias for :attr:`payload`."""
        return self.payload
