"""DocumentStore: upload, read, update and delete of stored documents.

Upload flow:
1. Policy checks against the document type (exists, size, MIME type)
2. Entity upsert and content-hash dedup within (entity, type)
3. Bytes staged to a temp file
4. Document row + access log + audit entry committed in one transaction
5. Staged file renamed into ``<entity_type>/<external_id>/<file_name>``

A policy failure leaves no row and no file; a failed transaction removes
the staged file.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.audit_trail.service import AccessLogger, Actor, AuditLogger
from docvault.config import Settings
from docvault.document_catalog.service import DocumentTypeCatalog
from docvault.document_store.storage import (
    FileStorage,
    generate_file_name,
    hash_bytes,
    partitioned_path,
)
from docvault.entity_registry.service import EntityRegistry
from docvault.exceptions import (
    DocumentNotFoundError,
    DocumentTypeNotFoundError,
    DuplicateContentError,
    FileTooLargeError,
    InvalidDocumentTypeError,
    StorageError,
    UnsupportedMimeTypeError,
    ValidationError,
)
from docvault.models.audit import AccessType, AuditOperation
from docvault.models.base import utcnow
from docvault.models.document import Document
from docvault.models.document_type import DocumentType
from docvault.models.entity import Entity
from docvault.schemas.document import DocumentUpdate, UploadedFile

logger = logging.getLogger("docvault.documents")

READ_PURPOSES = (AccessType.VIEW, AccessType.DOWNLOAD)


@dataclass(frozen=True)
class StoredFile:
    """A readable document file resolved for view or download."""

    document: Document
    path: Path


class DocumentStore:
    """Document lifecycle with policy enforcement and content dedup."""

    def __init__(self, settings: Settings, storage: FileStorage | None = None):
        self.settings = settings
        self.storage = storage or FileStorage(settings.upload_dir)

    async def upload(
        self,
        db: AsyncSession,
        *,
        entity_type: str,
        external_entity_id: int,
        type_name: str,
        file: UploadedFile,
        actor: Actor,
        entity_name: str | None = None,
        document_number: str | None = None,
        expiry_date: date | None = None,
        notes: str | None = None,
        metadata: dict | None = None,
    ) -> Document:
        """Store a new document. Returns it joined with type and entity fields.

        Any failure before the file is placed rolls back ``db``, which expires
        documents previously loaded through the same session.
        """
        try:
            document_type = await DocumentTypeCatalog.get_by_name(db, type_name)
        except DocumentTypeNotFoundError as e:
            raise InvalidDocumentTypeError(type_name) from e

        if file.size > document_type.max_file_size:
            raise FileTooLargeError(file.size, document_type.max_file_size)

        if not document_type.allows_mime_type(file.mime_type):
            raise UnsupportedMimeTypeError(file.mime_type, list(document_type.allowed_mime_types))

        file_name = generate_file_name(file.name, document_type.type_name)
        relative_path = partitioned_path(entity_type, external_entity_id, file_name)
        self.storage.resolve(relative_path)

        staged: Path | None = None
        try:
            entity = await EntityRegistry.upsert(db, entity_type, external_entity_id, entity_name)
            fingerprint = await hash_bytes(file.content)

            duplicate_id = await self._find_duplicate(db, entity.id, document_type.id, fingerprint)
            if duplicate_id is not None:
                raise DuplicateContentError(duplicate_id, fingerprint)

            staged = await self.storage.stage(file.content)

            document = Document(
                id=uuid.uuid4(),
                entity=entity,
                document_type=document_type,
                document_number=document_number,
                file_name=file_name,
                original_file_name=file.name,
                file_path=relative_path,
                file_size=file.size,
                mime_type=file.mime_type,
                file_hash=fingerprint,
                expiry_date=expiry_date,
                notes=notes,
                doc_metadata=metadata,
                is_verified=False,
                is_active=True,
            )
            db.add(document)
            await db.flush()

            await AccessLogger.record_for(db, document.id, AccessType.UPLOAD, actor)
            await AuditLogger.record_for(
                db,
                document.id,
                AuditOperation.CREATE,
                actor,
                new_values=document.snapshot(),
                reason="Document uploaded",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            if staged is not None:
                await self.storage.discard(staged)
            raise

        try:
            await self.storage.promote(staged, relative_path)
        except StorageError:
            logger.error(
                "Document %s committed but its file could not be placed at %s",
                document.id,
                relative_path,
            )
            await self.storage.discard(staged)
            raise

        logger.info(
            "Uploaded document %s (%s) for %s:%s, %d bytes",
            document.id,
            type_name,
            entity_type,
            external_entity_id,
            file.size,
        )
        return await self.get(db, document.id)

    async def get(self, db: AsyncSession, document_id: uuid.UUID) -> Document:
        """Active document joined with type and entity, or DocumentNotFoundError."""
        result = await db.execute(
            select(Document).where(Document.id == document_id, Document.is_active.is_(True))
        )
        document = result.scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def list_by_entity(
        self,
        db: AsyncSession,
        entity_type: str,
        external_entity_id: int,
        type_name: str | None = None,
    ) -> list[Document]:
        """Active documents of one entity, newest first."""
        query = (
            select(Document)
            .join(Entity, Document.entity_id == Entity.id)
            .where(
                Entity.entity_type == entity_type,
                Entity.external_entity_id == external_entity_id,
                Document.is_active.is_(True),
            )
        )
        if type_name:
            query = query.join(DocumentType, Document.document_type_id == DocumentType.id).where(
                DocumentType.type_name == type_name
            )
        result = await db.execute(query.order_by(Document.uploaded_at.desc()))
        return list(result.scalars().all())

    async def update(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        changes: DocumentUpdate,
        actor: Actor,
    ) -> Document:
        """Apply a partial update and record the diff.

        Supplying is_verified tags the audit entry VERIFY or UNVERIFY; a change
        of state stamps (or clears) verified_by and verified_at.
        """
        supplied = set(changes.model_fields_set)
        if not supplied:
            raise DocumentNotFoundError(
                document_id, message=f"Document '{document_id}' not found or no changes supplied"
            )

        document = await self.get(db, document_id)
        before = document.snapshot()

        if "document_number" in supplied:
            document.document_number = changes.document_number
        if "notes" in supplied:
            document.notes = changes.notes
        if "metadata" in supplied:
            document.doc_metadata = changes.metadata
        if "verified_by" in supplied:
            document.verified_by = changes.verified_by

        operation = AuditOperation.UPDATE
        if "is_verified" in supplied and changes.is_verified is not None:
            operation = AuditOperation.VERIFY if changes.is_verified else AuditOperation.UNVERIFY
            if changes.is_verified != document.is_verified:
                document.is_verified = changes.is_verified
                if changes.is_verified:
                    document.verified_by = changes.verified_by or actor.user_id
                    document.verified_at = utcnow()
                else:
                    document.verified_by = None
                    document.verified_at = None

        try:
            await db.flush()
            after = document.snapshot()
            changed_fields = [field for field in after if after[field] != before[field]]

            await AccessLogger.record_for(db, document.id, AccessType.UPDATE, actor)
            await AuditLogger.record_for(
                db,
                document.id,
                operation,
                actor,
                old_values=before,
                new_values={field: after[field] for field in changed_fields},
                changed_fields=changed_fields,
                reason=f"Document {_OPERATION_REASONS[operation]}",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Document %s %s by %s: %s", document.id, operation.value, actor.user_id, changed_fields)
        return document

    async def delete(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        actor: Actor,
        hard: bool = False,
    ) -> None:
        """Soft delete (default) or hard delete a document.

        Hard delete removes the row and then the file; a failure to remove the
        file is logged and does not undo the delete.
        """
        document = await self.get(db, document_id)
        before = document.snapshot()
        relative_path = document.file_path

        try:
            if hard:
                await db.delete(document)
            else:
                document.is_active = False
            await db.flush()

            await AccessLogger.record_for(db, document_id, AccessType.DELETE, actor)
            await AuditLogger.record_for(
                db,
                document_id,
                AuditOperation.DELETE,
                actor,
                old_values=before,
                new_values=None if hard else {"is_active": False},
                changed_fields=None if hard else ["is_active"],
                reason="Document hard-deleted" if hard else "Document soft-deleted",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if hard:
            try:
                removed = await self.storage.remove(relative_path)
                if not removed:
                    logger.warning("Hard-deleted document %s had no file at %s", document_id, relative_path)
            except StorageError:
                logger.warning("Could not remove file for hard-deleted document %s", document_id, exc_info=True)

        logger.info("Document %s %s-deleted by %s", document_id, "hard" if hard else "soft", actor.user_id)

    async def restore(self, db: AsyncSession, document_id: uuid.UUID, actor: Actor) -> Document:
        """Reactivate a soft-deleted document, unless its content is now a duplicate."""
        result = await db.execute(
            select(Document).where(Document.id == document_id, Document.is_active.is_(False))
        )
        document = result.scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(document_id)

        if document.file_hash:
            duplicate_id = await self._find_duplicate(
                db, document.entity_id, document.document_type_id, document.file_hash
            )
            if duplicate_id is not None:
                raise DuplicateContentError(duplicate_id, document.file_hash)

        try:
            document.is_active = True
            await db.flush()
            await AuditLogger.record_for(
                db,
                document.id,
                AuditOperation.RESTORE,
                actor,
                old_values={"is_active": False},
                new_values={"is_active": True},
                changed_fields=["is_active"],
                reason="Document restored",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        return document

    async def fetch_for_read(
        self,
        db: AsyncSession,
        document_id: uuid.UUID,
        actor: Actor,
        purpose: AccessType = AccessType.VIEW,
    ) -> StoredFile:
        """Resolve a document's file for view or download and log the access.

        A row whose file is missing gets a failed access entry and a warning
        for operators; the row itself is left alone.
        """
        if purpose not in READ_PURPOSES:
            raise ValidationError(f"Invalid read purpose: {purpose}")

        document = await self.get(db, document_id)
        path = self.storage.resolve(document.file_path)

        if not await self.storage.exists(document.file_path):
            await AccessLogger.record_for(
                db, document.id, purpose, actor, success=False, error_message="File not found"
            )
            await db.commit()
            logger.warning(
                "File missing for document %s at %s (%s by %s)",
                document.id,
                document.file_path,
                purpose.value,
                actor.user_id,
            )
            raise DocumentNotFoundError(
                document_id, message=f"File for document '{document_id}' not found"
            )

        await AccessLogger.record_for(db, document.id, purpose, actor)
        await db.commit()
        return StoredFile(document=document, path=path)

    @staticmethod
    async def _find_duplicate(
        db: AsyncSession,
        entity_id: uuid.UUID,
        document_type_id: uuid.UUID,
        fingerprint: str,
    ) -> uuid.UUID | None:
        result = await db.execute(
            select(Document.id)
            .where(
                Document.entity_id == entity_id,
                Document.document_type_id == document_type_id,
                Document.file_hash == fingerprint,
                Document.is_active.is_(True),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()


_OPERATION_REASONS = {
    AuditOperation.UPDATE: "updated",
    AuditOperation.VERIFY: "verified",
    AuditOperation.UNVERIFY: "unverified",
}
