"""Templates, programs, students and institutions."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..utils.http.resilient_client import ResilientApiClient
from . import messages


def _as_list(payload: Any) -> List[Dict[str, Any]]:
    return payload if isinstance(payload, list) else []


# Templates


async def list_templates(client: ResilientApiClient) -> List[Dict[str, Any]]:
    response = await client.get("/templates")
    return _as_list(response.payload)


async def create_template(
    client: ResilientApiClient, data: Dict[str, Any]
) -> Dict[str, Any]:
    response = await client.post(
        "/templates", data, success_message=messages.TEMPLATE_CREATED
    )
    return response.payload


async def update_template(
    client: ResilientApiClient, data: Dict[str, Any]
) -> Dict[str, Any]:
    """Replace a template; ``data`` carries the template ``id``."""
    response = await client.put(
        "/templates", data, success_message=messages.SETTINGS_SAVED
    )
    return response.payload


# Programs


async def list_programs(
    client: ResilientApiClient, organization_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """List programs, optionally restricted to one organization."""
    params = {"organizationId": organization_id} if organization_id else None
    response = await client.get("/programs", params=params)
    return _as_list(response.payload)


async def create_program(
    client: ResilientApiClient, data: Dict[str, Any]
) -> Dict[str, Any]:
    response = await client.post(
        "/programs", data, success_message=messages.PROGRAM_CREATED
    )
    return response.payload


async def update_program(
    client: ResilientApiClient, data: Dict[str, Any]
) -> Dict[str, Any]:
    response = await client.put(
        "/programs", data, success_message=messages.SETTINGS_SAVED
    )
    return response.payload


async def delete_program(client: ResilientApiClient, program_id: str) -> None:
    await client.delete(f"/programs/{quote(str(program_id), safe='')}")


# Students


async def list_students(client: ResilientApiClient) -> List[Dict[str, Any]]:
    response = await client.get("/students")
    return _as_list(response.payload)


async def import_students_csv(
    client: ResilientApiClient, csv_data: str, field_mapping: Dict[str, str]
) -> Dict[str, Any]:
    """Import students from CSV text.

    :param client: API client
    :param csv_data: Raw CSV content
    :param field_mapping: CSV column name per student field
    :return: Import summary from the backend
    """
    response = await client.post(
        "/students/import-csv",
        {"csvData": csv_data, "fieldMapping": dict(field_mapping)},
        success_message=messages.BULK_OPERATION_COMPLETED,
    )
    return response.payload


# Institutions


async def list_institutions(client: ResilientApiClient) -> List[Dict[str, Any]]:
    response = await client.get("/institutions")
    return _as_list(response.payload)
