"""Success messages reported to the notifier by mutating wrappers."""

CERTIFICATE_ISSUED = "Certificate issued successfully"
CERTIFICATE_REVOKED = "Certificate revoked successfully"
BULK_OPERATION_COMPLETED = "Bulk operation completed successfully"
DATA_EXPORTED = "Data exported successfully"
SETTINGS_SAVED = "Settings saved successfully"
TEMPLATE_CREATED = "Template created"
PROGRAM_CREATED = "Program created successfully"
TEMPLATE_DOWNLOADED = "Template downloaded successfully"

SUCCESS_MESSAGES = {
    "CERTIFICATE_ISSUED": CERTIFICATE_ISSUED,
    "CERTIFICATE_REVOKED": CERTIFICATE_REVOKED,
    "BULK_OPERATION_COMPLETED": BULK_OPERATION_COMPLETED,
    "DATA_EXPORTED": DATA_EXPORTED,
    "SETTINGS_SAVED": SETTINGS_SAVED,
    "TEMPLATE_CREATED": TEMPLATE_CREATED,
    "PROGRAM_CREATED": PROGRAM_CREATED,
    "TEMPLATE_DOWNLOADED": TEMPLATE_DOWNLOADED,
}
