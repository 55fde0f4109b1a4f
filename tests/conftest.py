from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

from docvault.audit_trail.service import Actor
from docvault.config import Settings
from docvault.database import build_engine, build_session_factory, init_db
from docvault.document_store.service import DocumentStore
from docvault.schemas.document import UploadedFile
from docvault.search_index.service import SearchIndex

PDF_BYTES = b"%PDF-1.4 fake test content\nPAN ABCDE1234F"


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def test_engine(tmp_path):
    # One SQLite file per test so state never leaks between tests
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'vault.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    return Settings(_env_file=None, upload_dir=str(upload_dir))


@pytest.fixture
def store(test_settings) -> DocumentStore:
    return DocumentStore(test_settings)


@pytest.fixture
def index(test_settings) -> SearchIndex:
    return SearchIndex(test_settings)


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id="officer-7", user_role="branch_officer", ip_address="10.0.0.5")


@pytest.fixture
def upload(store, db_session, actor):
    """Upload helper with sensible defaults for service-level tests."""

    async def _upload(
        content: bytes = PDF_BYTES,
        *,
        entity_type: str = "client",
        external_entity_id: int = 42,
        type_name: str = "pan_card",
        name: str = "pan.pdf",
        mime_type: str = "application/pdf",
        expiry_date: date | None = None,
        **kwargs,
    ):
        return await store.upload(
            db_session,
            entity_type=entity_type,
            external_entity_id=external_entity_id,
            type_name=type_name,
            file=UploadedFile(name=name, content=content, mime_type=mime_type),
            actor=actor,
            expiry_date=expiry_date,
            **kwargs,
        )

    return _upload


@pytest.fixture
async def client(db_session, test_settings):
    from docvault.config import settings
    from docvault.database import get_db
    from docvault.main import app

    # Override upload dir to temp
    original_upload_dir = settings.upload_dir
    settings.upload_dir = test_settings.upload_dir

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    settings.upload_dir = original_upload_dir
