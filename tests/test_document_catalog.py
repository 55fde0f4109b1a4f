import pytest

from docvault.document_catalog.seed import DEFAULT_DOCUMENT_TYPES
from docvault.document_catalog.service import DocumentTypeCatalog
from docvault.exceptions import DocumentTypeNotFoundError


@pytest.mark.asyncio
async def test_catalog_is_seeded(db_session):
    types = await DocumentTypeCatalog.list_types(db_session)
    assert len(types) == len(DEFAULT_DOCUMENT_TYPES)
    names = {t.type_name for t in types}
    assert {"pan_card", "aadhar_card", "statement", "shop_photo"} <= names


@pytest.mark.asyncio
async def test_seed_is_idempotent(db_session):
    assert await DocumentTypeCatalog.seed(db_session) == 0


@pytest.mark.asyncio
async def test_list_types_by_category_sorted_by_display_name(db_session):
    types = await DocumentTypeCatalog.list_types(db_session, category="identity")
    assert types
    assert all(t.category == "identity" for t in types)
    display_names = [t.display_name for t in types]
    assert display_names == sorted(display_names)


@pytest.mark.asyncio
async def test_get_by_name(db_session):
    pan = await DocumentTypeCatalog.get_by_name(db_session, "pan_card")
    assert pan.display_name == "PAN Card"
    assert pan.allows_mime_type("application/pdf")

    with pytest.raises(DocumentTypeNotFoundError):
        await DocumentTypeCatalog.get_by_name(db_session, "birth_certificate")


@pytest.mark.asyncio
async def test_shop_photo_accepts_images_only(db_session):
    shop_photo = await DocumentTypeCatalog.get_by_name(db_session, "shop_photo")
    assert shop_photo.allows_mime_type("image/png")
    assert not shop_photo.allows_mime_type("application/pdf")
    assert shop_photo.max_file_size == 10 * 1024 * 1024


@pytest.mark.asyncio
async def test_seed_custom_rows(db_session):
    inserted = await DocumentTypeCatalog.seed(
        db_session,
        rows=[{
            "type_name": "rent_agreement",
            "display_name": "Rent Agreement",
            "category": "business",
            "allowed_mime_types": ["application/pdf"],
            "max_file_size": 1024,
            "is_active": True,
        }],
    )
    assert inserted == 1
    agreement = await DocumentTypeCatalog.get_by_name(db_session, "rent_agreement")
    assert agreement.max_file_size == 1024
