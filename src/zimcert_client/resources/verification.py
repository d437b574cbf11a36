"""Certificate verification by public id or by holder national id."""

import logging
from typing import Optional
from urllib.parse import quote

from ..models.resources import VerificationResult
from ..utils.http.resilient_client import ResilientApiClient

logger = logging.getLogger(__name__)

NATIONAL_ID_SEARCH_LIMIT = 50


async def verify_by_public_id(
    client: ResilientApiClient, public_id: str
) -> VerificationResult:
    """Verify a certificate by the public id printed on it.

    :param client: API client
    :param public_id: Public verification id
    :return: Verification result from the backend
    """
    response = await client.get(f"/verify/{quote(str(public_id), safe='')}")
    payload = response.payload
    if isinstance(payload, dict):
        return VerificationResult.model_validate(payload)
    return VerificationResult()


async def verify_by_national_id(
    client: ResilientApiClient,
    national_id: str,
    organization_id: Optional[str] = None,
) -> VerificationResult:
    """Verify a holder by national id.

    Searches certificates across organizations (or within one, when
    ``organization_id`` is given). The holder verifies as valid when
    any matching certificate has status ``issued``; every match is
    returned, the first one as the primary certificate.

    :param client: API client
    :param national_id: Holder national id
    :param organization_id: Optional organization filter
    :return: Verification result
    """
    search = {"query": national_id, "limit": NATIONAL_ID_SEARCH_LIMIT}
    if organization_id:
        search["organizationId"] = organization_id

    response = await client.post(
        "/certificates/search", search, resource_key="certificates"
    )
    certificates = response.payload if isinstance(response.payload, list) else []
    if not certificates:
        logger.debug("No certificates found for national id lookup")
        return VerificationResult(valid=False, certificate=None, certificates=[])

    return VerificationResult(
        valid=any(cert.get("status") == "issued" for cert in certificates),
        certificate=certificates[0],
        certificates=certificates,
    )
