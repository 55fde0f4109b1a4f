"""Pydantic schemas for the document access log and audit trail."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from docvault.models.audit import AccessType, AuditOperation


class AccessLogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    document_id: uuid.UUID
    access_type: AccessType
    accessed_by: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    success: bool
    error_message: str | None = None
    timestamp: datetime


class AuditLogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    document_id: uuid.UUID
    operation: AuditOperation
    table_name: str
    record_id: uuid.UUID
    old_values: dict | None = None
    new_values: dict | None = None
    changed_fields: list[str] | None = None
    user_id: str | None = None
    user_role: str | None = None
    session_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    reason: str | None = None
    timestamp: datetime


class UserAuditEntryResponse(AuditLogEntryResponse):
    file_name: str | None = None
    original_file_name: str | None = None
    type_name: str | None = None


class AuditOperationStats(BaseModel):
    operation: AuditOperation
    count: int
    unique_documents: int
    unique_users: int
