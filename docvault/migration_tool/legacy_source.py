"""Read-only access to the legacy document store and its entity directory.

Owns its own async engine since the migration runs as an offline batch,
not inside FastAPI. The legacy schema uses camelCase column names.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from sqlalchemy import text as sa_text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from docvault.database import build_engine

logger = logging.getLogger("docvault.migration.legacy")

ACTIVE_DOCUMENTS_SQL = """
    SELECT id, entityType, entityId, documentType, documentNumber, fileName,
           filePath, fileSize, mimeType, uploadedAt, expiryDate, isVerified,
           verifiedBy, verifiedAt, notes
    FROM documents
    WHERE isActive = 1
    ORDER BY uploadedAt ASC, id ASC
"""

# Directory lookups by entity type; each returns the parts of a display name.
DIRECTORY_SQL = {
    "client": "SELECT firstName, middleName, lastName FROM clients WHERE id = :id",
    "shop": "SELECT shopName FROM shops WHERE id = :id",
}


def _parse_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass(frozen=True)
class LegacyDocument:
    id: int
    entity_type: str
    entity_id: int
    document_type: str
    file_name: str
    file_path: str
    file_size: int | None
    mime_type: str
    uploaded_at: datetime | None = None
    document_number: str | None = None
    expiry_date: date | None = None
    is_verified: bool = False
    verified_by: str | None = None
    verified_at: datetime | None = None
    notes: str | None = None

    @classmethod
    def from_row(cls, row) -> "LegacyDocument":
        data = row._mapping
        file_path = data["filePath"]
        return cls(
            id=int(data["id"]),
            entity_type=data["entityType"],
            entity_id=int(data["entityId"]),
            document_type=data["documentType"],
            file_name=data["fileName"] or Path(file_path).name,
            file_path=file_path,
            file_size=data["fileSize"],
            mime_type=data["mimeType"],
            uploaded_at=_parse_datetime(data["uploadedAt"]),
            document_number=data["documentNumber"],
            expiry_date=_parse_date(data["expiryDate"]),
            is_verified=bool(data["isVerified"]),
            verified_by=data["verifiedBy"],
            verified_at=_parse_datetime(data["verifiedAt"]),
            notes=data["notes"],
        )


class LegacyDocumentSource:
    """Legacy documents table, file tree and client/shop directory."""

    def __init__(self, database_url: str, upload_dir: str | Path, engine: AsyncEngine | None = None):
        self.engine = engine or build_engine(database_url)
        self.upload_dir = Path(upload_dir)

    async def fetch_active_documents(self) -> list[LegacyDocument]:
        """Active legacy documents, oldest upload first."""
        async with self.engine.connect() as conn:
            rows = (await conn.execute(sa_text(ACTIVE_DOCUMENTS_SQL))).all()
        return [LegacyDocument.from_row(row) for row in rows]

    async def count_active_documents(self) -> int:
        async with self.engine.connect() as conn:
            result = await conn.execute(sa_text("SELECT COUNT(*) FROM documents WHERE isActive = 1"))
            return result.scalar_one()

    def resolve_file(self, document: LegacyDocument) -> Path:
        """Absolute legacy paths are used as is; relative ones sit under the upload root."""
        path = Path(document.file_path)
        return path if path.is_absolute() else self.upload_dir / path

    async def display_name(self, entity_type: str, entity_id: int) -> str:
        """Directory name for an entity; a miss falls back to e.g. ``Client 42``."""
        fallback = f"{entity_type.replace('_', ' ').title()} {entity_id}"
        query = DIRECTORY_SQL.get(entity_type)
        if query is None:
            return fallback

        try:
            async with self.engine.connect() as conn:
                row = (await conn.execute(sa_text(query), {"id": entity_id})).first()
        except SQLAlchemyError:
            logger.warning("Directory lookup failed for %s %s", entity_type, entity_id, exc_info=True)
            return fallback

        if row is None:
            return fallback
        name = " ".join(str(part) for part in row if part)
        return name or fallback

    async def close(self) -> None:
        await self.engine.dispose()
