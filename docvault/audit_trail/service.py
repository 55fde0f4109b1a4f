"""AccessLogger and AuditLogger: immutable append-only document logs.

Both expose static methods only; there is no update or delete surface.

Writes made on behalf of a primary operation go through ``emit_best_effort``:
each runs inside a SAVEPOINT. A failed log insert is rolled back on its own
and reported on the ``docvault.audit`` logger; the document change it
belongs to still commits.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.models.audit import AccessLogEntry, AccessType, AuditLogEntry, AuditOperation
from docvault.models.document import Document
from docvault.models.document_type import DocumentType

alert_logger = logging.getLogger("docvault.audit")

T = TypeVar("T")


@dataclass(frozen=True)
class Actor:
    """Who is touching a document, as reported by the transport boundary."""

    user_id: str = "system"
    user_role: str | None = None
    session_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


async def emit_best_effort(
    db: AsyncSession,
    write: Callable[[], Awaitable[T]],
    *,
    description: str,
) -> T | None:
    """Run a log write in a savepoint; a database failure is logged, not raised."""
    try:
        async with db.begin_nested():
            return await write()
    except SQLAlchemyError:
        alert_logger.exception("Log write failed (%s); primary operation continues", description)
        return None


class AccessLogger:
    """Append-only record of every touch on a document."""

    @staticmethod
    async def record(
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        access_type: AccessType,
        accessed_by: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        success: bool = True,
        error_message: str | None = None,
    ) -> AccessLogEntry:
        entry = AccessLogEntry(
            id=uuid.uuid4(),
            document_id=document_id,
            access_type=access_type,
            accessed_by=accessed_by,
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            error_message=error_message,
        )
        db.add(entry)
        await db.flush()
        return entry

    @staticmethod
    async def record_for(
        db: AsyncSession,
        document_id: uuid.UUID,
        access_type: AccessType,
        actor: Actor,
        *,
        success: bool = True,
        error_message: str | None = None,
    ) -> AccessLogEntry | None:
        """Best-effort access entry attributed to ``actor``."""
        return await emit_best_effort(
            db,
            lambda: AccessLogger.record(
                db,
                document_id=document_id,
                access_type=access_type,
                accessed_by=actor.user_id,
                ip_address=actor.ip_address,
                user_agent=actor.user_agent,
                success=success,
                error_message=error_message,
            ),
            description=f"access {access_type.value} on {document_id}",
        )

    @staticmethod
    async def entries_for_document(
        db: AsyncSession,
        document_id: uuid.UUID,
        limit: int | None = None,
    ) -> list[AccessLogEntry]:
        query = (
            select(AccessLogEntry)
            .where(AccessLogEntry.document_id == document_id)
            .order_by(AccessLogEntry.timestamp.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())


class AuditLogger:
    """Append-only structured diff log for mutating document operations."""

    @staticmethod
    async def record(
        db: AsyncSession,
        *,
        document_id: uuid.UUID,
        operation: AuditOperation,
        record_id: uuid.UUID | None = None,
        old_values: dict | None = None,
        new_values: dict | None = None,
        changed_fields: list[str] | None = None,
        user_id: str | None = None,
        user_role: str | None = None,
        session_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        reason: str | None = None,
        table_name: str = "documents",
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            id=uuid.uuid4(),
            document_id=document_id,
            operation=operation,
            table_name=table_name,
            record_id=record_id or document_id,
            old_values=old_values,
            new_values=new_values,
            changed_fields=changed_fields,
            user_id=user_id,
            user_role=user_role,
            session_id=session_id,
            ip_address=ip_address,
            user_agent=user_agent,
            reason=reason,
        )
        db.add(entry)
        await db.flush()
        return entry

    @staticmethod
    async def record_for(
        db: AsyncSession,
        document_id: uuid.UUID,
        operation: AuditOperation,
        actor: Actor,
        **values: Any,
    ) -> AuditLogEntry | None:
        """Best-effort audit entry attributed to ``actor``."""
        return await emit_best_effort(
            db,
            lambda: AuditLogger.record(
                db,
                document_id=document_id,
                operation=operation,
                user_id=actor.user_id,
                user_role=actor.user_role,
                session_id=actor.session_id,
                ip_address=actor.ip_address,
                user_agent=actor.user_agent,
                **values,
            ),
            description=f"audit {operation.value} on {document_id}",
        )

    @staticmethod
    async def trail_for_document(
        db: AsyncSession,
        document_id: uuid.UUID,
        limit: int | None = None,
    ) -> list[AuditLogEntry]:
        """Audit entries for one document, newest first."""
        query = (
            select(AuditLogEntry)
            .where(AuditLogEntry.document_id == document_id)
            .order_by(AuditLogEntry.timestamp.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def trail_for_user(
        db: AsyncSession,
        user_id: str,
        limit: int | None = None,
    ) -> list[dict]:
        """Audit entries by one user, with the document's display fields.

        Outer joins keep entries whose document has since been hard-deleted.
        """
        query = (
            select(
                AuditLogEntry,
                Document.file_name,
                Document.original_file_name,
                DocumentType.type_name,
            )
            .outerjoin(Document, Document.id == AuditLogEntry.document_id)
            .outerjoin(DocumentType, DocumentType.id == Document.document_type_id)
            .where(AuditLogEntry.user_id == user_id)
            .order_by(AuditLogEntry.timestamp.desc())
        )
        if limit:
            query = query.limit(limit)

        rows = (await db.execute(query)).all()
        return [
            {
                "entry": entry,
                "file_name": file_name,
                "original_file_name": original_file_name,
                "type_name": type_name,
            }
            for entry, file_name, original_file_name, type_name in rows
        ]

    @staticmethod
    async def stats(
        db: AsyncSession,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[dict]:
        """Per-operation counts within an optional time window, busiest first."""
        count = func.count(AuditLogEntry.id).label("count")
        query = select(
            AuditLogEntry.operation,
            count,
            func.count(distinct(AuditLogEntry.document_id)).label("unique_documents"),
            func.count(distinct(AuditLogEntry.user_id)).label("unique_users"),
        )
        if from_date is not None:
            query = query.where(AuditLogEntry.timestamp >= from_date)
        if to_date is not None:
            query = query.where(AuditLogEntry.timestamp <= to_date)
        query = query.group_by(AuditLogEntry.operation).order_by(count.desc())

        rows = (await db.execute(query)).all()
        return [
            {
                "operation": operation.value if isinstance(operation, AuditOperation) else operation,
                "count": total,
                "unique_documents": unique_documents,
                "unique_users": unique_users,
            }
            for operation, total, unique_documents, unique_users in rows
        ]
