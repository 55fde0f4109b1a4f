from datetime import date, timedelta

import pytest

from docvault.audit_trail.service import Actor
from docvault.config import Settings
from docvault.exceptions import InvalidFilterError
from docvault.schemas.document import DocumentUpdate, SearchFilters
from docvault.search_index.service import SearchIndex, build_predicates, expiring_cutoff


@pytest.fixture
async def corpus(upload, store, db_session):
    """Five documents across two clients and a shop; one verified, one soft-deleted."""
    today = date.today()
    docs = {
        "pan_42": await upload(b"pan 42", expiry_date=today + timedelta(days=10)),
        "statement_42": await upload(b"statement 42", type_name="statement"),
        "passport_43": await upload(
            b"passport 43",
            type_name="passport",
            external_entity_id=43,
            expiry_date=today + timedelta(days=90),
        ),
        "license_shop": await upload(
            b"license shop",
            type_name="trade_license",
            entity_type="shop",
            external_entity_id=7,
            expiry_date=today - timedelta(days=5),
        ),
        "deleted": await upload(b"deleted", type_name="voter_id", expiry_date=today),
    }
    actor = Actor(user_id="officer-7")
    await store.update(db_session, docs["pan_42"].id, DocumentUpdate(is_verified=True), actor)
    await store.delete(db_session, docs["deleted"].id, actor)
    return docs


def test_build_predicates_only_active_when_unfiltered():
    assert len(build_predicates(SearchFilters())) == 1


def test_build_predicates_expiring_before_adds_two():
    predicates = build_predicates(SearchFilters(expiring_before=date(2030, 1, 1)))
    assert len(predicates) == 3


def test_expiring_cutoff():
    assert expiring_cutoff(30, today=date(2026, 1, 1)) == date(2026, 1, 31)
    assert expiring_cutoff(0, today=date(2026, 1, 1)) == date(2026, 1, 1)


@pytest.mark.asyncio
async def test_search_without_filters_returns_active_documents(index, db_session, corpus):
    results = await index.search(db_session, SearchFilters())
    ids = {d.id for d in results}
    assert corpus["deleted"].id not in ids
    assert len(ids) == 4
    assert await index.count(db_session, SearchFilters()) == 4


@pytest.mark.asyncio
async def test_search_newest_first(index, db_session, corpus):
    results = await index.search(db_session, SearchFilters())
    uploaded = [d.uploaded_at for d in results]
    assert uploaded == sorted(uploaded, reverse=True)


@pytest.mark.asyncio
async def test_adding_a_filter_narrows_results(index, db_session, corpus):
    by_type = {d.id for d in await index.search(db_session, SearchFilters(entity_type="client"))}
    by_type_and_id = {
        d.id
        for d in await index.search(db_session, SearchFilters(entity_type="client", external_entity_id=42))
    }
    assert by_type_and_id <= by_type
    assert by_type_and_id == {corpus["pan_42"].id, corpus["statement_42"].id}


@pytest.mark.asyncio
async def test_search_by_type_and_verification(index, db_session, corpus):
    passports = await index.search(db_session, SearchFilters(type_name="passport"))
    assert [d.id for d in passports] == [corpus["passport_43"].id]

    verified = await index.search(db_session, SearchFilters(is_verified=True))
    assert [d.id for d in verified] == [corpus["pan_42"].id]

    unverified = await index.search(db_session, SearchFilters(is_verified=False))
    assert corpus["pan_42"].id not in {d.id for d in unverified}
    assert len(unverified) == 3


@pytest.mark.asyncio
async def test_search_expiring_before(index, db_session, corpus):
    results = await index.search(
        db_session, SearchFilters(expiring_before=date.today() + timedelta(days=30))
    )
    assert {d.id for d in results} == {corpus["pan_42"].id, corpus["license_shop"].id}


@pytest.mark.asyncio
async def test_search_pagination(index, db_session, corpus):
    everything = await index.search(db_session, SearchFilters())
    first_page = await index.search(db_session, SearchFilters(limit=2))
    second_page = await index.search(db_session, SearchFilters(limit=2, offset=2))

    assert [d.id for d in first_page] == [d.id for d in everything[:2]]
    assert [d.id for d in second_page] == [d.id for d in everything[2:4]]


@pytest.mark.asyncio
async def test_offset_without_limit_is_ignored(index, db_session, corpus):
    results = await index.search(db_session, SearchFilters(offset=2))
    assert len(results) == 4


@pytest.mark.asyncio
async def test_negative_pagination_rejected(index, db_session):
    with pytest.raises(InvalidFilterError):
        await index.search(db_session, SearchFilters(limit=-1))
    with pytest.raises(InvalidFilterError):
        await index.search(db_session, SearchFilters(limit=5, offset=-1))


@pytest.mark.asyncio
async def test_search_with_no_matches(index, db_session, corpus):
    assert await index.search(db_session, SearchFilters(entity_type="vendor")) == []
    assert await index.count(db_session, SearchFilters(entity_type="vendor")) == 0


@pytest.mark.asyncio
async def test_expiring_includes_already_expired(index, db_session, corpus):
    results = await index.expiring(db_session, 30)
    assert {d.id for d in results} == {corpus["pan_42"].id, corpus["license_shop"].id}

    wider = await index.expiring(db_session, 120)
    assert corpus["passport_43"].id in {d.id for d in wider}


@pytest.mark.asyncio
async def test_expiring_rejects_negative_window(index, db_session):
    with pytest.raises(InvalidFilterError):
        await index.expiring(db_session, -1)


@pytest.mark.asyncio
async def test_expiring_uses_configured_default_window(db_session, corpus, test_settings):
    default_index = SearchIndex(test_settings)
    assert {d.id for d in await default_index.expiring(db_session)} == {
        corpus["pan_42"].id,
        corpus["license_shop"].id,
    }

    wide = SearchIndex(Settings(_env_file=None, upload_dir=test_settings.upload_dir, expiring_default_days=120))
    assert corpus["passport_43"].id in {d.id for d in await wide.expiring(db_session)}


@pytest.mark.asyncio
async def test_expiring_is_capped(db_session, corpus, test_settings):
    capped = SearchIndex(Settings(_env_file=None, upload_dir=test_settings.upload_dir, expiring_results_cap=1))
    results = await capped.expiring(db_session, 120)
    assert len(results) == 1


@pytest.mark.asyncio
async def test_stats_lists_every_active_type(index, db_session, corpus):
    stats = {s.type_name: s for s in await index.stats(db_session)}

    assert stats["pan_card"].count == 1
    assert stats["pan_card"].verified_count == 1
    assert stats["pan_card"].total_size == len(b"pan 42")
    assert stats["statement"].count == 1
    # Soft-deleted documents are not counted
    assert stats["voter_id"].count == 0
    assert stats["gst_certificate"].count == 0
    assert stats["gst_certificate"].total_size == 0
    assert stats["gst_certificate"].verified_count == 0


@pytest.mark.asyncio
async def test_stats_filtered_by_entity_type(index, db_session, corpus):
    stats = {s.type_name: s for s in await index.stats(db_session, entity_type="shop")}
    assert stats["trade_license"].count == 1
    assert stats["pan_card"].count == 0
    assert stats["passport"].count == 0


@pytest.mark.asyncio
async def test_stats_ordered_by_category_then_display_name(index, db_session):
    stats = await index.stats(db_session)
    keys = [(s.category, s.display_name) for s in stats]
    assert keys == sorted(keys)
