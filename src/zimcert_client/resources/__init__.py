"""Thin async wrappers for the certificate backend's resources.

Each wrapper takes a :class:`~zimcert_client.utils.http.ResilientApiClient`
as its first argument and returns the unwrapped payload.
"""

from .catalog import (
    create_program,
    create_template,
    delete_program,
    import_students_csv,
    list_institutions,
    list_programs,
    list_students,
    list_templates,
    update_program,
    update_template,
)
from .certificates import (
    add_amendment,
    bulk_issue,
    bulk_revoke,
    certificate_statistics,
    get_certificate,
    get_certificate_with_amendments,
    issue_certificate,
    list_certificates,
    reissue_certificate,
    revoke_certificate,
    search_certificates,
    update_certificate_status,
)
from .messages import SUCCESS_MESSAGES
from .reports import (
    bulk_import_csv,
    download_bulk_template,
    export_report,
    generate_report,
)
from .verification import verify_by_national_id, verify_by_public_id

__all__ = [
    "SUCCESS_MESSAGES",
    "list_certificates",
    "search_certificates",
    "get_certificate",
    "get_certificate_with_amendments",
    "certificate_statistics",
    "issue_certificate",
    "bulk_issue",
    "reissue_certificate",
    "add_amendment",
    "revoke_certificate",
    "bulk_revoke",
    "update_certificate_status",
    "list_templates",
    "create_template",
    "update_template",
    "list_programs",
    "create_program",
    "update_program",
    "delete_program",
    "list_students",
    "import_students_csv",
    "list_institutions",
    "verify_by_public_id",
    "verify_by_national_id",
    "generate_report",
    "export_report",
    "bulk_import_csv",
    "download_bulk_template",
]
