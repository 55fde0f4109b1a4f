from docvault.schemas.audit import AccessLogEntryResponse, AuditLogEntryResponse
from docvault.schemas.document import DocumentDetail, DocumentSearchResponse, DocumentUpdate
from docvault.schemas.health import HealthResponse

__all__ = [
    "AccessLogEntryResponse",
    "AuditLogEntryResponse",
    "DocumentDetail",
    "DocumentSearchResponse",
    "DocumentUpdate",
    "HealthResponse",
]
