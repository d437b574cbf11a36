"""Result models returned by the resource wrappers."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

Certificate = Dict[str, Any]


class SearchResult(BaseModel):
    """Certificate search page."""

    items: List[Certificate] = Field(default_factory=list)
    total: int = 0
    has_more: Optional[bool] = None


class VerificationResult(BaseModel):
    """Outcome of verifying a certificate or a holder's certificates.

    ``certificate`` is the primary match; ``certificates`` lists every
    match when verification was done by national ID.
    """

    valid: bool = False
    certificate: Optional[Certificate] = None
    certificates: List[Certificate] = Field(default_factory=list)
    message: Optional[str] = None
