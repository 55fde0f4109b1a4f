"""Audit trail and access log endpoints."""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.audit_trail.service import AccessLogger, AuditLogger
from docvault.dependencies import get_db
from docvault.schemas.audit import (
    AccessLogEntryResponse,
    AuditLogEntryResponse,
    AuditOperationStats,
    UserAuditEntryResponse,
)

router = APIRouter()


@router.get("/documents/{document_id}", response_model=list[AuditLogEntryResponse])
async def document_audit_trail(
    document_id: uuid.UUID,
    limit: int | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[AuditLogEntryResponse]:
    """Audit trail of one document, newest first."""
    entries = await AuditLogger.trail_for_document(db, document_id, limit)
    return [AuditLogEntryResponse.model_validate(e) for e in entries]


@router.get("/documents/{document_id}/access", response_model=list[AccessLogEntryResponse])
async def document_access_log(
    document_id: uuid.UUID,
    limit: int | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[AccessLogEntryResponse]:
    entries = await AccessLogger.entries_for_document(db, document_id, limit)
    return [AccessLogEntryResponse.model_validate(e) for e in entries]


@router.get("/users/{user_id}", response_model=list[UserAuditEntryResponse])
async def user_audit_trail(
    user_id: str,
    limit: int | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[UserAuditEntryResponse]:
    """Everything one user changed, with document display fields."""
    rows = await AuditLogger.trail_for_user(db, user_id, limit)
    return [
        UserAuditEntryResponse(
            **AuditLogEntryResponse.model_validate(row["entry"]).model_dump(),
            file_name=row["file_name"],
            original_file_name=row["original_file_name"],
            type_name=row["type_name"],
        )
        for row in rows
    ]


@router.get("/stats", response_model=list[AuditOperationStats])
async def audit_stats(
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[AuditOperationStats]:
    stats = await AuditLogger.stats(db, from_date, to_date)
    return [AuditOperationStats(**s) for s in stats]
