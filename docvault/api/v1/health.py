import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from docvault import __version__
from docvault.config import settings
from docvault.dependencies import get_db
from docvault.models.audit import AccessLogEntry, AuditLogEntry
from docvault.models.document import Document
from docvault.models.entity import Entity
from docvault.schemas.health import HealthResponse

router = APIRouter()


def _storage_status() -> str:
    root = settings.upload_dir
    return "healthy" if os.path.isdir(root) and os.access(root, os.W_OK) else "unhealthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        db_status = "unhealthy"

    storage_status = _storage_status()
    overall = "healthy" if db_status == storage_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        storage=storage_status,
        timestamp=datetime.now(timezone.utc),
        environment=settings.environment,
        version=__version__,
    )


@router.get("/metrics")
async def get_metrics(db: AsyncSession = Depends(get_db)) -> dict:
    """Vault-wide counters: documents, stored bytes, entities and log volume."""
    documents = (await db.execute(
        select(
            func.count(Document.id),
            func.count(Document.id).filter(Document.is_active.is_(True)),
            func.count(Document.id).filter(Document.is_active.is_(True), Document.is_verified.is_(True)),
            func.coalesce(func.sum(Document.file_size).filter(Document.is_active.is_(True)), 0),
        )
    )).one()
    entities = (await db.execute(select(func.count(Entity.id)))).scalar_one()
    access_entries = (await db.execute(select(func.count(AccessLogEntry.id)))).scalar_one()
    failed_access = (await db.execute(
        select(func.count(AccessLogEntry.id)).where(AccessLogEntry.success.is_(False))
    )).scalar_one()
    audit_entries = (await db.execute(select(func.count(AuditLogEntry.id)))).scalar_one()

    total, active, verified, stored_bytes = documents
    return {
        "documents": {
            "total": total,
            "active": active,
            "soft_deleted": total - active,
            "verified": verified,
            "stored_bytes": stored_bytes,
        },
        "entities": entities,
        "access_log": {
            "total": access_entries,
            "failed": failed_access,
        },
        "audit_entries": audit_entries,
    }
