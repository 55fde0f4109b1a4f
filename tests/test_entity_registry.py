import pytest

from docvault.entity_registry.service import EntityRegistry
from docvault.exceptions import EntityNotFoundError


@pytest.mark.asyncio
async def test_upsert_creates_entity(db_session):
    entity = await EntityRegistry.upsert(db_session, "client", 42, "Asha Rao")
    assert entity.id is not None
    assert entity.entity_type == "client"
    assert entity.external_entity_id == 42
    assert entity.entity_name == "Asha Rao"


@pytest.mark.asyncio
async def test_upsert_is_idempotent_and_refreshes_name(db_session):
    first = await EntityRegistry.upsert(db_session, "client", 42, "Asha Rao")
    second = await EntityRegistry.upsert(db_session, "client", 42, "Asha K Rao")
    assert second.id == first.id
    assert second.entity_name == "Asha K Rao"
    assert second.updated_at >= second.created_at


@pytest.mark.asyncio
async def test_upsert_without_name_keeps_cached_name(db_session):
    await EntityRegistry.upsert(db_session, "shop", 7, "Rao Stores")
    entity = await EntityRegistry.upsert(db_session, "shop", 7)
    assert entity.entity_name == "Rao Stores"


@pytest.mark.asyncio
async def test_same_external_id_different_type_is_a_different_entity(db_session):
    client_entity = await EntityRegistry.upsert(db_session, "client", 7)
    shop_entity = await EntityRegistry.upsert(db_session, "shop", 7)
    assert client_entity.id != shop_entity.id


@pytest.mark.asyncio
async def test_lookup(db_session):
    created = await EntityRegistry.upsert(db_session, "client", 1)
    found = await EntityRegistry.lookup(db_session, "client", 1)
    assert found.id == created.id

    with pytest.raises(EntityNotFoundError):
        await EntityRegistry.lookup(db_session, "client", 999)
