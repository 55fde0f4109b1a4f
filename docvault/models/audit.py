"""ORM models for the document access log and audit trail: immutable append-only logs."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum as SAEnum, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from docvault.models.base import Base, utcnow


class AccessType(str, enum.Enum):
    VIEW = "view"
    DOWNLOAD = "download"
    UPLOAD = "upload"
    UPDATE = "update"
    DELETE = "delete"


class AuditOperation(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESTORE = "RESTORE"
    VERIFY = "VERIFY"
    UNVERIFY = "UNVERIFY"


class AccessLogEntry(Base):
    __tablename__ = "document_access_log"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # No foreign key: entries outlive hard-deleted documents.
    document_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    access_type: Mapped[AccessType] = mapped_column(
        SAEnum(
            AccessType,
            name="access_type",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )
    accessed_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )


class AuditLogEntry(Base):
    __tablename__ = "document_audit"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    operation: Mapped[AuditOperation] = mapped_column(
        SAEnum(
            AuditOperation,
            name="audit_operation",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )
    table_name: Mapped[str] = mapped_column(String(100), nullable=False, default="documents")
    record_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    old_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    changed_fields: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)
    user_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
