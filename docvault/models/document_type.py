import uuid

from sqlalchemy import JSON, BigInteger, Boolean, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from docvault.models.base import Base


class DocumentType(Base):
    """Upload policy for one kind of document. Seeded once, read-only afterwards."""

    __tablename__ = "document_types"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    type_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    allowed_mime_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    max_file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def allows_mime_type(self, mime_type: str) -> bool:
        return mime_type in set(self.allowed_mime_types or [])
