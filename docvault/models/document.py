import uuid
from datetime import date, datetime

from sqlalchemy import JSON, BigInteger, Boolean, Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docvault.models.base import Base, utcnow
from docvault.models.document_type import DocumentType
from docvault.models.entity import Entity

# Columns captured in audit snapshots; relationship fields are excluded.
SNAPSHOT_FIELDS = (
    "entity_id",
    "document_type_id",
    "document_number",
    "file_name",
    "original_file_name",
    "file_path",
    "file_size",
    "mime_type",
    "file_hash",
    "expiry_date",
    "notes",
    "metadata",
    "is_verified",
    "verified_by",
    "verified_at",
    "is_active",
)


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_entity_type_hash", "entity_id", "document_type_id", "file_hash"),
        Index("ix_documents_expiry_date", "expiry_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("entities.id"), nullable=False, index=True
    )
    document_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("document_types.id"), nullable=False
    )
    document_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    original_file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    file_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    doc_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    entity: Mapped[Entity] = relationship(lazy="joined", innerjoin=True)
    document_type: Mapped[DocumentType] = relationship(lazy="joined", innerjoin=True)

    # Display fields joined in from the type and entity rows

    @property
    def type_name(self) -> str:
        return self.document_type.type_name

    @property
    def type_display_name(self) -> str:
        return self.document_type.display_name

    @property
    def category(self) -> str:
        return self.document_type.category

    @property
    def entity_type(self) -> str:
        return self.entity.entity_type

    @property
    def external_entity_id(self) -> int:
        return self.entity.external_entity_id

    @property
    def entity_name(self) -> str | None:
        return self.entity.entity_name

    def snapshot(self) -> dict:
        """JSON-safe copy of the mutable and identifying columns."""
        data = {}
        for field in SNAPSHOT_FIELDS:
            value = self.doc_metadata if field == "metadata" else getattr(self, field)
            if isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            data[field] = value
        return data
