"""Reports and bulk CSV operations."""

from typing import Any, Dict, Literal, Optional

from ..utils.http.resilient_client import ResilientApiClient
from . import messages


async def generate_report(
    client: ResilientApiClient,
    organization_id: Optional[str] = None,
    report_type: Literal["summary", "detailed"] = "summary",
) -> Any:
    org = organization_id or client.settings.organization_id
    response = await client.get(
        "/reports/generate", params={"organizationId": org, "type": report_type}
    )
    return response.payload


async def export_report(
    client: ResilientApiClient,
    organization_id: Optional[str] = None,
    export_format: Literal["json", "csv"] = "json",
) -> bytes:
    """Download a report export as raw bytes.

    :param client: API client
    :param organization_id: Organization; the configured default if omitted
    :param export_format: ``json`` or ``csv``
    :return: File content
    """
    org = organization_id or client.settings.organization_id
    response = await client.get(
        "/reports/export",
        params={"organizationId": org, "format": export_format},
        binary=True,
        success_message=messages.DATA_EXPORTED,
    )
    return response.payload


async def bulk_import_csv(
    client: ResilientApiClient, data: Dict[str, Any]
) -> Dict[str, Any]:
    response = await client.post(
        "/bulk/import-csv", data, success_message=messages.BULK_OPERATION_COMPLETED
    )
    return response.payload


async def download_bulk_template(client: ResilientApiClient) -> bytes:
    """Download the CSV template for bulk issuance."""
    response = await client.get(
        "/bulk/template", binary=True, success_message=messages.TEMPLATE_DOWNLOADED
    )
    return response.payload
