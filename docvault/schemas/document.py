from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class UploadedFile:
    """Raw upload payload as received at the boundary."""

    name: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)


class DocumentTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type_name: str
    display_name: str
    category: str
    allowed_mime_types: list[str]
    max_file_size: int
    is_active: bool


class DocumentDetail(BaseModel):
    """Active document joined with its type and entity display fields."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_id: UUID
    document_type_id: UUID
    document_number: str | None = None
    file_name: str
    original_file_name: str
    file_path: str
    file_size: int
    mime_type: str
    file_hash: str | None = None
    expiry_date: date | None = None
    notes: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="doc_metadata")
    is_verified: bool
    verified_by: str | None = None
    verified_at: datetime | None = None
    is_active: bool
    uploaded_at: datetime
    updated_at: datetime

    type_name: str
    type_display_name: str
    category: str
    entity_type: str
    external_entity_id: int
    entity_name: str | None = None


class DocumentUpdate(BaseModel):
    """Partial update; only fields explicitly supplied are applied."""

    model_config = ConfigDict(extra="forbid")

    document_number: str | None = None
    is_verified: bool | None = None
    verified_by: str | None = None
    notes: str | None = None
    metadata: dict | None = None


class DeleteResponse(BaseModel):
    message: str
    id: UUID
    hard: bool


class SearchFilters(BaseModel):
    """All-optional conjunctive filter; an absent field is unconstrained."""

    entity_type: str | None = None
    external_entity_id: int | None = None
    type_name: str | None = None
    is_verified: bool | None = None
    expiring_before: date | None = None
    limit: int | None = None
    offset: int | None = None


class DocumentTypeStats(BaseModel):
    type_name: str
    category: str
    display_name: str
    count: int = 0
    total_size: int = 0
    verified_count: int = 0


class DocumentSearchResponse(BaseModel):
    documents: list[DocumentDetail]
    total: int
    limit: int | None = None
    offset: int | None = None
