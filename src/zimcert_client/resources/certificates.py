"""Certificate lifecycle calls: listing, search, issuance and revocation."""

import logging
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import quote

from ..models.resources import Certificate, SearchResult
from ..utils.http.resilient_client import ResilientApiClient
from . import messages

logger = logging.getLogger(__name__)

CertificateStatus = Literal["issued", "revoked", "pending"]


def certificate_path(certificate_id: str, *suffix: str) -> str:
    """Build ``/certificates/<id>[/suffix...]`` with the id URL-quoted."""
    parts = ["certificates", quote(str(certificate_id), safe="")]
    parts.extend(suffix)
    return "/" + "/".join(parts)


async def list_certificates(
    client: ResilientApiClient, organization_id: Optional[str] = None
) -> List[Certificate]:
    """List certificates of an organization.

    :param client: API client
    :param organization_id: Organization; the configured default if omitted
    :return: Certificates
    """
    org = organization_id or client.settings.organization_id
    response = await client.get("/certificates", params={"organizationId": org})
    return response.payload or []


async def search_certificates(
    client: ResilientApiClient, filters: Dict[str, Any]
) -> SearchResult:
    """Search certificates.

    The backend answers with ``certificates`` or ``items`` nested in
    its envelope; both arrive here as one list. ``total`` falls back to
    the number of returned items when the backend omits it.

    :param client: API client
    :param filters: Search filters such as ``query``, ``status``, ``limit``
    :return: Page of matching certificates
    """
    response = await client.post(
        "/certificates/search", filters, resource_key="certificates"
    )
    items = response.payload if isinstance(response.payload, list) else []
    meta = response.meta
    total = meta.total if meta is not None and meta.total is not None else len(items)
    return SearchResult(
        items=items,
        total=total,
        has_more=meta.has_more if meta is not None else None,
    )


async def get_certificate(client: ResilientApiClient, certificate_id: str) -> Certificate:
    response = await client.get(certificate_path(certificate_id))
    return response.payload


async def get_certificate_with_amendments(
    client: ResilientApiClient, certificate_id: str
) -> Certificate:
    response = await client.get(certificate_path(certificate_id, "with-amendments"))
    return response.payload


async def certificate_statistics(
    client: ResilientApiClient, organization_id: Optional[str] = None
) -> Dict[str, Any]:
    """Issued, revoked and pending counts for an organization."""
    org = organization_id or client.settings.organization_id
    response = await client.get(
        "/certificates/statistics", params={"organizationId": org}
    )
    return response.payload


async def issue_certificate(
    client: ResilientApiClient, data: Dict[str, Any]
) -> Certificate:
    """Issue a certificate.

    A request carrying ``nationalId`` is issued through the national-ID
    route, which resolves the student on the server.

    :param client: API client
    :param data: Issue form
    :return: The issued certificate
    """
    path = "/certificates/issue-by-national-id" if data.get("nationalId") else "/certificates"
    response = await client.post(
        path, data, success_message=messages.CERTIFICATE_ISSUED
    )
    return response.payload


async def bulk_issue(client: ResilientApiClient, data: Dict[str, Any]) -> Dict[str, Any]:
    response = await client.post(
        "/certificates/bulk-issue",
        data,
        success_message=messages.BULK_OPERATION_COMPLETED,
    )
    return response.payload


async def reissue_certificate(
    client: ResilientApiClient,
    certificate_id: str,
    reason: str,
    new_data: Dict[str, Any],
) -> Certificate:
    response = await client.post(
        "/certificates/reissue",
        {"certificateId": certificate_id, "reason": reason, "newData": new_data},
        success_message=messages.CERTIFICATE_ISSUED,
    )
    return response.payload


async def add_amendment(
    client: ResilientApiClient,
    certificate_id: str,
    amendment_type: Literal["correction", "update", "reissue"],
    reason: str,
    new_data: Dict[str, Any],
) -> Certificate:
    response = await client.post(
        certificate_path(certificate_id, "amendments"),
        {"amendmentType": amendment_type, "reason": reason, "newData": new_data},
    )
    return response.payload


async def revoke_certificate(
    client: ResilientApiClient, certificate_id: str, reason: Optional[str] = None
) -> Dict[str, Any]:
    response = await client.post(
        certificate_path(certificate_id, "revoke"),
        {"reason": reason},
        success_message=messages.CERTIFICATE_REVOKED,
    )
    return response.payload


async def bulk_revoke(
    client: ResilientApiClient,
    certificate_ids: List[str],
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    response = await client.post(
        "/certificates/bulk-revoke",
        {"certificateIds": list(certificate_ids), "reason": reason},
        success_message=messages.CERTIFICATE_REVOKED,
    )
    return response.payload


async def update_certificate_status(
    client: ResilientApiClient,
    certificate_id: str,
    status: CertificateStatus,
    reason: Optional[str] = None,
) -> Certificate:
    """Set a certificate's status directly."""
    response = await client.put(
        certificate_path(certificate_id, "status"),
        {"status": status, "reason": reason},
    )
    logger.debug(f"Certificate {certificate_id} status set to {status}")
    return response.payload
