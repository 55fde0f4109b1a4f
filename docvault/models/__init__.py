from docvault.models.base import Base, TimestampMixin
from docvault.models.entity import Entity
from docvault.models.document_type import DocumentType
from docvault.models.document import Document
from docvault.models.audit import AccessLogEntry, AccessType, AuditLogEntry, AuditOperation

__all__ = [
    "Base",
    "TimestampMixin",
    "Entity",
    "DocumentType",
    "Document",
    "AccessLogEntry",
    "AccessType",
    "AuditLogEntry",
    "AuditOperation",
]
