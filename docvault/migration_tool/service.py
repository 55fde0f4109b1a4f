"""MigrationTool: one-time transplant of legacy documents into the vault.

State machine: NOT_STARTED → RUNNING → COMPLETED | COMPLETED_WITH_ERRORS.

Each legacy document is one unit of work: entity refresh, type lookup,
idempotency check on file name, staged copy, row + access entry commit,
then the file is renamed into place. A failing item is rolled back and
counted; the batch carries on. Re-runs skip everything already migrated.
"""

import enum
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles.os
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docvault.audit_trail.service import AccessLogger, Actor
from docvault.config import Settings
from docvault.document_catalog.service import DocumentTypeCatalog
from docvault.document_store.storage import FileStorage, hash_file, partitioned_path
from docvault.entity_registry.service import EntityRegistry
from docvault.exceptions import DocumentTypeNotFoundError, StorageError
from docvault.migration_tool.legacy_source import LegacyDocument, LegacyDocumentSource
from docvault.models.audit import AccessLogEntry, AccessType
from docvault.models.document import Document

logger = logging.getLogger("docvault.migration")


class MigrationStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"


class ItemOutcome(str, enum.Enum):
    MIGRATED = "migrated"
    SKIPPED = "skipped"
    FAILED = "failed"


class MigrationItemError(Exception):
    """A single legacy document could not be migrated."""


@dataclass
class MigrationResult:
    status: MigrationStatus = MigrationStatus.NOT_STARTED
    success: int = 0
    failed: int = 0
    skipped: int = 0
    failures: dict[int, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.success + self.failed + self.skipped


@dataclass
class MigrationVerification:
    legacy_count: int
    migrated_count: int
    missing_files: list[str]

    @property
    def ok(self) -> bool:
        return not self.missing_files and self.migrated_count > 0


class MigrationTool:
    """Copies active legacy documents into the target store."""

    def __init__(
        self,
        settings: Settings,
        legacy: LegacyDocumentSource,
        session_factory: async_sessionmaker[AsyncSession],
        storage: FileStorage | None = None,
    ):
        self.legacy = legacy
        self.session_factory = session_factory
        self.storage = storage or FileStorage(settings.upload_dir)
        self.actor = Actor(user_id=settings.migration_actor)
        self.status = MigrationStatus.NOT_STARTED

    async def migrate(self) -> MigrationResult:
        if self.status == MigrationStatus.RUNNING:
            raise RuntimeError("Migration is already running")

        self.status = MigrationStatus.RUNNING
        result = MigrationResult(status=self.status)
        logger.info("Starting document migration from legacy store")

        try:
            documents = await self.legacy.fetch_active_documents()
            logger.info("Found %d legacy documents to migrate", len(documents))

            async with self.session_factory() as db:
                for legacy_doc in documents:
                    outcome = await self._migrate_one(db, legacy_doc, result)
                    if outcome is ItemOutcome.MIGRATED:
                        result.success += 1
                    elif outcome is ItemOutcome.SKIPPED:
                        result.skipped += 1
                    else:
                        result.failed += 1
        except Exception:
            self.status = MigrationStatus.COMPLETED_WITH_ERRORS
            result.status = self.status
            logger.exception("Migration aborted")
            raise

        self.status = (
            MigrationStatus.COMPLETED if result.failed == 0 else MigrationStatus.COMPLETED_WITH_ERRORS
        )
        result.status = self.status
        logger.info(
            "Migration completed: %d documents, %d successful, %d failed, %d skipped",
            result.total,
            result.success,
            result.failed,
            result.skipped,
        )
        return result

    async def _migrate_one(
        self,
        db: AsyncSession,
        legacy_doc: LegacyDocument,
        result: MigrationResult,
    ) -> ItemOutcome:
        staged: Path | None = None
        try:
            entity_name = await self.legacy.display_name(legacy_doc.entity_type, legacy_doc.entity_id)
            entity = await EntityRegistry.upsert(
                db, legacy_doc.entity_type, legacy_doc.entity_id, entity_name
            )

            try:
                document_type = await DocumentTypeCatalog.get_by_name(db, legacy_doc.document_type)
            except DocumentTypeNotFoundError as e:
                raise MigrationItemError(f"Unknown document type: {legacy_doc.document_type}") from e

            if await self._already_migrated(db, entity.id, document_type.id, legacy_doc.file_name):
                await db.commit()
                logger.info("Legacy document %s already exists, skipping", legacy_doc.id)
                return ItemOutcome.SKIPPED

            source = self.legacy.resolve_file(legacy_doc)
            if not await aiofiles.os.path.isfile(source):
                raise MigrationItemError(f"Source file not found: {source}")

            relative_path = partitioned_path(
                legacy_doc.entity_type, legacy_doc.entity_id, legacy_doc.file_name
            )
            if await self.storage.exists(relative_path):
                raise MigrationItemError(f"Destination already exists: {relative_path}")
            staged = await self.storage.stage_copy(source)
            fingerprint = await hash_file(staged)
            file_size = legacy_doc.file_size
            if file_size is None:
                file_size = (await aiofiles.os.stat(staged)).st_size

            document = Document(
                id=uuid.uuid4(),
                entity=entity,
                document_type=document_type,
                document_number=legacy_doc.document_number,
                file_name=legacy_doc.file_name,
                original_file_name=legacy_doc.file_name,
                file_path=relative_path,
                file_size=file_size,
                mime_type=legacy_doc.mime_type,
                file_hash=fingerprint,
                expiry_date=legacy_doc.expiry_date,
                notes=legacy_doc.notes,
                doc_metadata={
                    "migrated_from": "legacy",
                    "original_id": legacy_doc.id,
                    "original_uploaded_at": (
                        legacy_doc.uploaded_at.isoformat() if legacy_doc.uploaded_at else None
                    ),
                },
                is_verified=legacy_doc.is_verified,
                verified_by=legacy_doc.verified_by if legacy_doc.is_verified else None,
                verified_at=legacy_doc.verified_at if legacy_doc.is_verified else None,
                is_active=True,
            )
            db.add(document)
            await db.flush()
            await AccessLogger.record_for(db, document.id, AccessType.UPLOAD, self.actor)
            await db.commit()
        except Exception as e:
            await db.rollback()
            if staged is not None:
                await self.storage.discard(staged)
            if isinstance(e, MigrationItemError):
                logger.error("Legacy document %s failed: %s", legacy_doc.id, e)
            else:
                logger.exception("Error migrating legacy document %s", legacy_doc.id)
            result.failures[legacy_doc.id] = str(e)
            return ItemOutcome.FAILED

        try:
            await self.storage.promote(staged, relative_path)
        except StorageError as e:
            logger.error("Legacy document %s: %s; removing its row so a re-run retries", legacy_doc.id, e)
            await db.delete(document)
            await db.commit()
            await self.storage.discard(staged)
            result.failures[legacy_doc.id] = str(e)
            return ItemOutcome.FAILED

        logger.info("Migrated legacy document %s -> %s", legacy_doc.id, document.id)
        return ItemOutcome.MIGRATED

    @staticmethod
    async def _already_migrated(
        db: AsyncSession,
        entity_id: uuid.UUID,
        document_type_id: uuid.UUID,
        file_name: str,
    ) -> bool:
        result = await db.execute(
            select(Document.id)
            .where(
                Document.entity_id == entity_id,
                Document.document_type_id == document_type_id,
                Document.file_name == file_name,
                Document.is_active.is_(True),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def verify(self) -> MigrationVerification:
        """Compare counts and check that every migrated file is on disk."""
        legacy_count = await self.legacy.count_active_documents()

        migrated_ids = select(AccessLogEntry.document_id).where(
            AccessLogEntry.access_type == AccessType.UPLOAD,
            AccessLogEntry.accessed_by == self.actor.user_id,
        )
        async with self.session_factory() as db:
            rows = (await db.execute(
                select(Document.file_path).where(
                    Document.is_active.is_(True),
                    Document.id.in_(migrated_ids),
                )
            )).scalars().all()

        missing = [path for path in rows if not await self.storage.exists(path)]
        for path in missing:
            logger.error("Missing file: %s", self.storage.resolve(path))

        verification = MigrationVerification(
            legacy_count=legacy_count,
            migrated_count=len(rows),
            missing_files=missing,
        )
        if verification.migrated_count != legacy_count:
            logger.warning(
                "Legacy has %d active documents, %d migrated",
                legacy_count,
                verification.migrated_count,
            )
        logger.info(
            "Migration verification: %d migrated, %d missing files, ok=%s",
            verification.migrated_count,
            len(missing),
            verification.ok,
        )
        return verification
