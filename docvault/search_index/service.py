"""SearchIndex: filtered, paginated queries over active documents.

Filters are accumulated as SQLAlchemy predicates and joined with AND into a
single parameterized query. An absent filter leaves that column unconstrained.
"""

from datetime import date, datetime, timedelta, timezone

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.config import Settings
from docvault.exceptions import InvalidFilterError
from docvault.models.document import Document
from docvault.models.document_type import DocumentType
from docvault.models.entity import Entity
from docvault.schemas.document import DocumentTypeStats, SearchFilters


def build_predicates(filters: SearchFilters) -> list:
    """Predicates for ``filters`` over Document joined to Entity and DocumentType."""
    predicates = [Document.is_active.is_(True)]

    if filters.entity_type is not None:
        predicates.append(Entity.entity_type == filters.entity_type)
    if filters.external_entity_id is not None:
        predicates.append(Entity.external_entity_id == filters.external_entity_id)
    if filters.type_name is not None:
        predicates.append(DocumentType.type_name == filters.type_name)
    if filters.is_verified is not None:
        predicates.append(Document.is_verified.is_(filters.is_verified))
    if filters.expiring_before is not None:
        predicates.append(Document.expiry_date.is_not(None))
        predicates.append(Document.expiry_date <= filters.expiring_before)

    return predicates


def expiring_cutoff(within_days: int, today: date | None = None) -> date:
    today = today or datetime.now(timezone.utc).date()
    return today + timedelta(days=within_days)


def _validate(filters: SearchFilters) -> None:
    if filters.limit is not None and filters.limit < 0:
        raise InvalidFilterError(f"limit must be non-negative, got {filters.limit}")
    if filters.offset is not None and filters.offset < 0:
        raise InvalidFilterError(f"offset must be non-negative, got {filters.offset}")


class SearchIndex:
    """Read-side queries over the documents table."""

    def __init__(self, settings: Settings):
        self.expiring_cap = settings.expiring_results_cap
        self.expiring_default_days = settings.expiring_default_days

    @staticmethod
    def _filtered(query, filters: SearchFilters):
        return (
            query.join(Entity, Document.entity_id == Entity.id)
            .join(DocumentType, Document.document_type_id == DocumentType.id)
            .where(and_(*build_predicates(filters)))
        )

    async def search(self, db: AsyncSession, filters: SearchFilters) -> list[Document]:
        """Matching active documents, newest first.

        The offset only applies when a limit is given.
        """
        _validate(filters)
        query = self._filtered(select(Document), filters).order_by(Document.uploaded_at.desc())

        if filters.limit is not None:
            query = query.limit(filters.limit)
            if filters.offset:
                query = query.offset(filters.offset)

        result = await db.execute(query)
        return list(result.scalars().all())

    async def count(self, db: AsyncSession, filters: SearchFilters) -> int:
        """Number of documents ``search`` would return without pagination."""
        _validate(filters)
        query = self._filtered(select(func.count(Document.id)).select_from(Document), filters)
        return (await db.execute(query)).scalar_one()

    async def expiring(self, db: AsyncSession, within_days: int | None = None) -> list[Document]:
        """Documents whose expiry date falls on or before today + ``within_days``.

        The window defaults to ``settings.expiring_default_days``.
        """
        if within_days is None:
            within_days = self.expiring_default_days
        if within_days < 0:
            raise InvalidFilterError(f"within_days must be non-negative, got {within_days}")
        return await self.search(
            db,
            SearchFilters(
                expiring_before=expiring_cutoff(within_days),
                limit=self.expiring_cap,
            ),
        )

    async def stats(self, db: AsyncSession, entity_type: str | None = None) -> list[DocumentTypeStats]:
        """Per-type document counts, bytes and verified counts.

        Every active type appears, with zeros when it has no documents.
        """
        join_condition = and_(
            Document.document_type_id == DocumentType.id,
            Document.is_active.is_(True),
        )
        if entity_type:
            join_condition = and_(
                join_condition,
                Document.entity_id.in_(select(Entity.id).where(Entity.entity_type == entity_type)),
            )

        query = (
            select(
                DocumentType.type_name,
                DocumentType.category,
                DocumentType.display_name,
                func.count(Document.id),
                func.coalesce(func.sum(Document.file_size), 0),
                func.count(case((Document.is_verified.is_(True), Document.id))),
            )
            .select_from(DocumentType)
            .outerjoin(Document, join_condition)
            .where(DocumentType.is_active.is_(True))
            .group_by(
                DocumentType.id,
                DocumentType.type_name,
                DocumentType.category,
                DocumentType.display_name,
            )
            .order_by(DocumentType.category, DocumentType.display_name)
        )

        rows = (await db.execute(query)).all()
        return [
            DocumentTypeStats(
                type_name=type_name,
                category=category,
                display_name=display_name,
                count=count,
                total_size=total_size or 0,
                verified_count=verified_count,
            )
            for type_name, category, display_name, count, total_size, verified_count in rows
        ]
