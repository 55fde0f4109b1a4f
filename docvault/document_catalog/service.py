"""DocumentTypeCatalog: read-only registry of document types and their upload policy."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.document_catalog.seed import default_rows
from docvault.exceptions import DocumentTypeNotFoundError
from docvault.models.document_type import DocumentType

logger = logging.getLogger("docvault.catalog")


class DocumentTypeCatalog:
    """Static lookups over the document_types table."""

    @staticmethod
    async def list_types(db: AsyncSession, category: str | None = None) -> list[DocumentType]:
        """Active types, optionally filtered by category, ordered by display name."""
        query = select(DocumentType).where(DocumentType.is_active.is_(True))
        if category:
            query = query.where(DocumentType.category == category)
        result = await db.execute(query.order_by(DocumentType.display_name))
        return list(result.scalars().all())

    @staticmethod
    async def get_by_name(db: AsyncSession, type_name: str) -> DocumentType:
        result = await db.execute(
            select(DocumentType).where(
                DocumentType.type_name == type_name,
                DocumentType.is_active.is_(True),
            )
        )
        document_type = result.scalar_one_or_none()
        if document_type is None:
            raise DocumentTypeNotFoundError(type_name)
        return document_type

    @staticmethod
    async def seed(db: AsyncSession, rows: list[dict] | None = None) -> int:
        """Insert catalog rows that are missing. Existing rows are left untouched."""
        rows = rows if rows is not None else default_rows()
        existing = set((await db.execute(select(DocumentType.type_name))).scalars().all())

        inserted = 0
        for row in rows:
            if row["type_name"] in existing:
                continue
            db.add(DocumentType(**row))
            inserted += 1

        if inserted:
            await db.commit()
            logger.info("Document type catalog seeded with %d new types", inserted)
        return inserted
