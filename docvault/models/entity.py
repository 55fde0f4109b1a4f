import uuid

from sqlalchemy import BigInteger, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from docvault.models.base import Base, TimestampMixin


class Entity(Base, TimestampMixin):
    """Local handle for an external business object (client, shop, ...)."""

    __tablename__ = "entities"
    __table_args__ = (
        UniqueConstraint("entity_type", "external_entity_id", name="uq_entities_type_external_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    external_entity_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    entity_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
