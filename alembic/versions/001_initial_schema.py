"""Entities, document types, documents, access log and audit trail

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACCESS_TYPES = ("view", "download", "upload", "update", "delete")
AUDIT_OPERATIONS = ("CREATE", "UPDATE", "DELETE", "RESTORE", "VERIFY", "UNVERIFY")


def upgrade() -> None:
    op.create_table(
        "entities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("external_entity_id", sa.BigInteger, nullable=False),
        sa.Column("entity_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("entity_type", "external_entity_id", name="uq_entities_type_external_id"),
    )

    op.create_table(
        "document_types",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("type_name", sa.String(100), nullable=False, unique=True),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("allowed_mime_types", sa.JSON, nullable=False),
        sa.Column("max_file_size", sa.BigInteger, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False),
    )

    op.create_table(
        "documents",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("entity_id", UUID(as_uuid=True), sa.ForeignKey("entities.id"), nullable=False),
        sa.Column(
            "document_type_id", UUID(as_uuid=True), sa.ForeignKey("document_types.id"), nullable=False
        ),
        sa.Column("document_number", sa.String(100), nullable=True),
        sa.Column("file_name", sa.String(512), nullable=False),
        sa.Column("original_file_name", sa.String(512), nullable=False),
        sa.Column("file_path", sa.String(1024), nullable=False),
        sa.Column("file_size", sa.BigInteger, nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("file_hash", sa.String(64), nullable=True),
        sa.Column("expiry_date", sa.Date, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("is_verified", sa.Boolean, nullable=False),
        sa.Column("verified_by", sa.String(200), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_documents_entity_id", "documents", ["entity_id"])
    op.create_index(
        "ix_documents_entity_type_hash", "documents", ["entity_id", "document_type_id", "file_hash"]
    )
    op.create_index("ix_documents_expiry_date", "documents", ["expiry_date"])

    # Log tables carry no foreign key so entries outlive hard-deleted documents
    op.create_table(
        "document_access_log",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("document_id", UUID(as_uuid=True), nullable=False),
        sa.Column("access_type", sa.Enum(*ACCESS_TYPES, name="access_type"), nullable=False),
        sa.Column("accessed_by", sa.String(200), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("success", sa.Boolean, nullable=False),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_document_access_log_document_id", "document_access_log", ["document_id"])
    op.create_index("ix_document_access_log_timestamp", "document_access_log", ["timestamp"])

    op.create_table(
        "document_audit",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("document_id", UUID(as_uuid=True), nullable=False),
        sa.Column("operation", sa.Enum(*AUDIT_OPERATIONS, name="audit_operation"), nullable=False),
        sa.Column("table_name", sa.String(100), nullable=False),
        sa.Column("record_id", UUID(as_uuid=True), nullable=False),
        sa.Column("old_values", sa.JSON, nullable=True),
        sa.Column("new_values", sa.JSON, nullable=True),
        sa.Column("changed_fields", sa.JSON, nullable=True),
        sa.Column("user_id", sa.String(200), nullable=True),
        sa.Column("user_role", sa.String(50), nullable=True),
        sa.Column("session_id", sa.String(100), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_document_audit_document_id", "document_audit", ["document_id"])
    op.create_index("ix_document_audit_user_id", "document_audit", ["user_id"])
    op.create_index("ix_document_audit_timestamp", "document_audit", ["timestamp"])


def downgrade() -> None:
    op.drop_table("document_audit")
    op.drop_table("document_access_log")
    op.drop_table("documents")
    op.drop_table("document_types")
    op.drop_table("entities")
    op.execute("DROP TYPE IF EXISTS audit_operation")
    op.execute("DROP TYPE IF EXISTS access_type")
