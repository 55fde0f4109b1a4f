from pathlib import Path

import pytest
from sqlalchemy import select, text

from docvault.database import build_engine
from docvault.migration_tool.legacy_source import LegacyDocumentSource
from docvault.migration_tool.service import MigrationStatus, MigrationTool
from docvault.models.audit import AccessLogEntry, AccessType
from docvault.models.document import Document

LEGACY_SCHEMA = [
    """
    CREATE TABLE documents (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      entityType TEXT NOT NULL,
      entityId INTEGER NOT NULL,
      documentType TEXT NOT NULL,
      documentNumber TEXT,
      fileName TEXT NOT NULL,
      filePath TEXT NOT NULL,
      fileSize INTEGER NOT NULL,
      mimeType TEXT NOT NULL,
      uploadedAt DATETIME DEFAULT CURRENT_TIMESTAMP,
      expiryDate DATE,
      isVerified INTEGER DEFAULT 0,
      isActive INTEGER DEFAULT 1,
      verifiedBy TEXT,
      verifiedAt DATETIME,
      notes TEXT
    )
    """,
    "CREATE TABLE clients (id INTEGER PRIMARY KEY, firstName TEXT, middleName TEXT, lastName TEXT)",
    "CREATE TABLE shops (id INTEGER PRIMARY KEY, shopName TEXT)",
]

INSERT_DOCUMENT = """
    INSERT INTO documents (
      id, entityType, entityId, documentType, documentNumber, fileName, filePath,
      fileSize, mimeType, uploadedAt, expiryDate, isVerified, isActive, verifiedBy, verifiedAt, notes
    ) VALUES (
      :id, :entityType, :entityId, :documentType, :documentNumber, :fileName, :filePath,
      :fileSize, :mimeType, :uploadedAt, :expiryDate, :isVerified, :isActive, :verifiedBy, :verifiedAt, :notes
    )
"""


def legacy_row(doc_id: int, entity_type: str, entity_id: int, document_type: str, **overrides) -> dict:
    file_name = f"{document_type}_{doc_id}.pdf"
    row = {
        "id": doc_id,
        "entityType": entity_type,
        "entityId": entity_id,
        "documentType": document_type,
        "documentNumber": None,
        "fileName": file_name,
        "filePath": f"{entity_type}/{entity_id}/{file_name}",
        "fileSize": 0,
        "mimeType": "application/pdf",
        "uploadedAt": "2024-01-15 09:30:00",
        "expiryDate": None,
        "isVerified": 0,
        "isActive": 1,
        "verifiedBy": None,
        "verifiedAt": None,
        "notes": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def legacy_dir(tmp_path) -> Path:
    path = tmp_path / "legacy"
    (path / "uploads").mkdir(parents=True)
    return path


@pytest.fixture
def build_legacy(legacy_dir):
    """Create the legacy database and its files; returns an open LegacyDocumentSource."""

    async def _build(rows, clients=(), shops=(), missing_files=()):
        url = f"sqlite+aiosqlite:///{legacy_dir / 'admin_ui.db'}"
        engine = build_engine(url)
        async with engine.begin() as conn:
            for statement in LEGACY_SCHEMA:
                await conn.execute(text(statement))
            for row in rows:
                content = f"legacy document {row['id']}".encode()
                row["fileSize"] = len(content)
                await conn.execute(text(INSERT_DOCUMENT), row)
                if row["id"] not in missing_files:
                    path = legacy_dir / "uploads" / row["filePath"]
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_bytes(content)
            for client in clients:
                await conn.execute(
                    text("INSERT INTO clients VALUES (:id, :firstName, :middleName, :lastName)"), client
                )
            for shop in shops:
                await conn.execute(text("INSERT INTO shops VALUES (:id, :shopName)"), shop)
        await engine.dispose()

        return LegacyDocumentSource(url, legacy_dir / "uploads")

    return _build


@pytest.fixture
def make_tool(test_settings, session_factory):
    def _make(legacy: LegacyDocumentSource) -> MigrationTool:
        return MigrationTool(test_settings, legacy, session_factory)

    return _make


async def migrated_documents(session_factory) -> list[Document]:
    async with session_factory() as db:
        result = await db.execute(select(Document).order_by(Document.file_name))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_migrates_active_documents(build_legacy, make_tool, session_factory, test_settings):
    legacy = await build_legacy(
        [
            legacy_row(1, "client", 1, "pan_card", documentNumber="ABCDE1234F"),
            legacy_row(
                2,
                "client",
                1,
                "passport",
                expiryDate="2031-06-30",
                isVerified=1,
                verifiedBy="kyc-desk",
                verifiedAt="2024-03-01 10:00:00",
            ),
            legacy_row(3, "client", 1, "voter_id", isActive=0),
        ],
        clients=[{"id": 1, "firstName": "Asha", "middleName": None, "lastName": "Rao"}],
    )
    tool = make_tool(legacy)

    result = await tool.migrate()
    await legacy.close()

    assert result.status == MigrationStatus.COMPLETED
    assert (result.success, result.failed, result.skipped) == (2, 0, 0)
    assert tool.status == MigrationStatus.COMPLETED

    pan, passport = await migrated_documents(session_factory)
    assert pan.file_name == "pan_card_1.pdf"
    assert pan.file_path == "client/1/pan_card_1.pdf"
    assert pan.document_number == "ABCDE1234F"
    assert pan.entity_name == "Asha Rao"
    assert pan.file_hash is not None
    assert pan.doc_metadata == {
        "migrated_from": "legacy",
        "original_id": 1,
        "original_uploaded_at": "2024-01-15T09:30:00",
    }
    assert (Path(test_settings.upload_dir) / pan.file_path).read_bytes() == b"legacy document 1"

    assert passport.is_verified is True
    assert passport.verified_by == "kyc-desk"
    assert passport.expiry_date.isoformat() == "2031-06-30"


@pytest.mark.asyncio
async def test_migration_logs_upload_as_migration_actor(build_legacy, make_tool, session_factory):
    legacy = await build_legacy([legacy_row(1, "client", 1, "pan_card")])
    await make_tool(legacy).migrate()
    await legacy.close()

    async with session_factory() as db:
        entries = (await db.execute(select(AccessLogEntry))).scalars().all()
    assert len(entries) == 1
    assert entries[0].access_type == AccessType.UPLOAD
    assert entries[0].accessed_by == "migration-script"


@pytest.mark.asyncio
async def test_rerun_skips_already_migrated(build_legacy, make_tool):
    legacy = await build_legacy(
        [legacy_row(1, "client", 1, "pan_card"), legacy_row(2, "shop", 7, "statement")],
        shops=[{"id": 7, "shopName": "Rao Stores"}],
    )
    first = await make_tool(legacy).migrate()
    second = await make_tool(legacy).migrate()
    await legacy.close()

    assert (first.success, first.skipped) == (2, 0)
    assert (second.success, second.failed, second.skipped) == (0, 0, 2)
    assert second.status == MigrationStatus.COMPLETED


@pytest.mark.asyncio
async def test_failing_items_do_not_stop_the_batch(build_legacy, make_tool, session_factory):
    legacy = await build_legacy(
        [
            legacy_row(1, "client", 1, "pan_card"),
            legacy_row(2, "client", 1, "statement"),
            legacy_row(3, "client", 2, "birth_certificate"),
        ],
        missing_files=(2,),
    )
    result = await make_tool(legacy).migrate()
    await legacy.close()

    assert result.status == MigrationStatus.COMPLETED_WITH_ERRORS
    assert (result.success, result.failed, result.skipped) == (1, 2, 0)
    assert result.total == 3
    assert "Source file not found" in result.failures[2]
    assert "Unknown document type" in result.failures[3]

    documents = await migrated_documents(session_factory)
    assert [d.file_name for d in documents] == ["pan_card_1.pdf"]


@pytest.mark.asyncio
async def test_same_file_name_for_two_types_does_not_overwrite(build_legacy, make_tool, session_factory, test_settings):
    legacy = await build_legacy(
        [
            legacy_row(1, "client", 1, "pan_card", fileName="scan.pdf", filePath="client/1/pan/scan.pdf"),
            legacy_row(2, "client", 1, "aadhar_card", fileName="scan.pdf", filePath="client/1/aadhar/scan.pdf"),
        ]
    )
    result = await make_tool(legacy).migrate()
    await legacy.close()

    assert (result.success, result.failed) == (1, 1)
    assert "Destination already exists" in result.failures[2]

    (document,) = await migrated_documents(session_factory)
    assert document.type_name == "pan_card"
    assert (Path(test_settings.upload_dir) / "client/1/scan.pdf").read_bytes() == b"legacy document 1"


@pytest.mark.asyncio
async def test_unknown_directory_falls_back_to_generated_name(build_legacy, make_tool, session_factory):
    legacy = await build_legacy([legacy_row(1, "account", 5, "passbook_page")])
    await make_tool(legacy).migrate()
    await legacy.close()

    (document,) = await migrated_documents(session_factory)
    assert document.entity_name == "Account 5"


@pytest.mark.asyncio
async def test_verify_after_clean_run(build_legacy, make_tool):
    legacy = await build_legacy([legacy_row(1, "client", 1, "pan_card"), legacy_row(2, "client", 1, "statement")])
    tool = make_tool(legacy)
    await tool.migrate()

    verification = await tool.verify()
    await legacy.close()

    assert verification.legacy_count == 2
    assert verification.migrated_count == 2
    assert verification.missing_files == []
    assert verification.ok


@pytest.mark.asyncio
async def test_verify_reports_missing_files(build_legacy, make_tool, session_factory, test_settings):
    legacy = await build_legacy([legacy_row(1, "client", 1, "pan_card")])
    tool = make_tool(legacy)
    await tool.migrate()

    (document,) = await migrated_documents(session_factory)
    (Path(test_settings.upload_dir) / document.file_path).unlink()

    verification = await tool.verify()
    await legacy.close()

    assert verification.missing_files == [document.file_path]
    assert not verification.ok


@pytest.mark.asyncio
async def test_empty_legacy_store(build_legacy, make_tool):
    legacy = await build_legacy([])
    tool = make_tool(legacy)

    result = await tool.migrate()
    verification = await tool.verify()
    await legacy.close()

    assert (result.success, result.failed, result.skipped) == (0, 0, 0)
    assert result.status == MigrationStatus.COMPLETED
    assert verification.migrated_count == 0
    assert not verification.ok


@pytest.mark.asyncio
async def test_refuses_to_run_twice_at_once(build_legacy, make_tool):
    legacy = await build_legacy([])
    tool = make_tool(legacy)
    tool.status = MigrationStatus.RUNNING

    with pytest.raises(RuntimeError):
        await tool.migrate()
    await legacy.close()
