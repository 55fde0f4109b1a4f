import json
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.audit_trail.service import Actor
from docvault.config import settings
from docvault.dependencies import get_actor, get_db, get_document_store, get_reader, get_search_index
from docvault.document_catalog.service import DocumentTypeCatalog
from docvault.document_store.service import DocumentStore
from docvault.models.audit import AccessType
from docvault.schemas.document import (
    DeleteResponse,
    DocumentDetail,
    DocumentSearchResponse,
    DocumentTypeResponse,
    DocumentTypeStats,
    DocumentUpdate,
    SearchFilters,
    UploadedFile,
)
from docvault.search_index.service import SearchIndex

router = APIRouter()

# Static paths are registered before /{document_id} so they are not captured by it.


@router.get("/types", response_model=list[DocumentTypeResponse])
async def list_document_types(
    category: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[DocumentTypeResponse]:
    types = await DocumentTypeCatalog.list_types(db, category)
    return [DocumentTypeResponse.model_validate(t) for t in types]


@router.post("/upload", response_model=DocumentDetail, status_code=201)
async def upload_document(
    file: UploadFile,
    entity_type: str = Form(...),
    external_entity_id: int = Form(...),
    document_type: str = Form(...),
    entity_name: str | None = Form(None),
    document_number: str | None = Form(None),
    expiry_date: date | None = Form(None),
    notes: str | None = Form(None),
    metadata: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    actor: Actor = Depends(get_actor),
) -> DocumentDetail:
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    mime_type = file.content_type or "application/octet-stream"
    if mime_type not in settings.allowed_upload_mime_types:
        raise HTTPException(status_code=400, detail=f"Invalid file type: {mime_type}")

    content = await file.read()
    if len(content) > settings.max_upload_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {settings.max_upload_size_mb}MB",
        )

    parsed_metadata = None
    if metadata:
        try:
            parsed_metadata = json.loads(metadata)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="metadata must be valid JSON")
        if not isinstance(parsed_metadata, dict):
            raise HTTPException(status_code=400, detail="metadata must be a JSON object")

    document = await store.upload(
        db,
        entity_type=entity_type,
        external_entity_id=external_entity_id,
        entity_name=entity_name,
        type_name=document_type,
        document_number=document_number,
        file=UploadedFile(name=file.filename, content=content, mime_type=mime_type),
        expiry_date=expiry_date,
        notes=notes,
        metadata=parsed_metadata,
        actor=actor,
    )
    return DocumentDetail.model_validate(document)


@router.get("/entity/{entity_type}/{external_entity_id}", response_model=list[DocumentDetail])
async def list_entity_documents(
    entity_type: str,
    external_entity_id: int,
    document_type: str | None = None,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
) -> list[DocumentDetail]:
    documents = await store.list_by_entity(db, entity_type, external_entity_id, document_type)
    return [DocumentDetail.model_validate(d) for d in documents]


@router.get("/search", response_model=DocumentSearchResponse)
async def search_documents(
    entity_type: str | None = None,
    external_entity_id: int | None = None,
    document_type: str | None = None,
    is_verified: bool | None = None,
    expiring_before: date | None = None,
    limit: int | None = None,
    offset: int | None = None,
    db: AsyncSession = Depends(get_db),
    index: SearchIndex = Depends(get_search_index),
) -> DocumentSearchResponse:
    filters = SearchFilters(
        entity_type=entity_type,
        external_entity_id=external_entity_id,
        type_name=document_type,
        is_verified=is_verified,
        expiring_before=expiring_before,
        limit=limit,
        offset=offset,
    )
    documents = await index.search(db, filters)
    total = await index.count(db, filters)
    return DocumentSearchResponse(
        documents=[DocumentDetail.model_validate(d) for d in documents],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/expiring", response_model=list[DocumentDetail])
@router.get("/expiring/{days}", response_model=list[DocumentDetail])
async def expiring_documents(
    days: int | None = None,
    db: AsyncSession = Depends(get_db),
    index: SearchIndex = Depends(get_search_index),
) -> list[DocumentDetail]:
    documents = await index.expiring(db, days)
    return [DocumentDetail.model_validate(d) for d in documents]


@router.get("/stats", response_model=list[DocumentTypeStats])
async def document_stats(
    entity_type: str | None = None,
    db: AsyncSession = Depends(get_db),
    index: SearchIndex = Depends(get_search_index),
) -> list[DocumentTypeStats]:
    return await index.stats(db, entity_type)


@router.get("/{document_id}", response_model=DocumentDetail)
async def get_document(
    document_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
) -> DocumentDetail:
    document = await store.get(db, document_id)
    return DocumentDetail.model_validate(document)


@router.put("/{document_id}", response_model=DocumentDetail)
async def update_document(
    document_id: uuid.UUID,
    changes: DocumentUpdate,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    actor: Actor = Depends(get_actor),
) -> DocumentDetail:
    document = await store.update(db, document_id, changes, actor)
    return DocumentDetail.model_validate(document)


@router.delete("/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: uuid.UUID,
    hard: bool = False,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    actor: Actor = Depends(get_actor),
) -> DeleteResponse:
    await store.delete(db, document_id, actor, hard=hard)
    return DeleteResponse(message="Document deleted successfully", id=document_id, hard=hard)


@router.post("/{document_id}/restore", response_model=DocumentDetail)
async def restore_document(
    document_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    actor: Actor = Depends(get_actor),
) -> DocumentDetail:
    document = await store.restore(db, document_id, actor)
    return DocumentDetail.model_validate(document)


@router.get("/{document_id}/view")
async def view_document(
    document_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    reader: Actor = Depends(get_reader),
) -> FileResponse:
    stored = await store.fetch_for_read(db, document_id, reader, AccessType.VIEW)
    return FileResponse(
        stored.path,
        media_type=stored.document.mime_type,
        filename=stored.document.original_file_name,
        content_disposition_type="inline",
        headers={"Cache-Control": "no-cache"},
    )


@router.get("/{document_id}/download")
async def download_document(
    document_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    reader: Actor = Depends(get_reader),
) -> FileResponse:
    stored = await store.fetch_for_read(db, document_id, reader, AccessType.DOWNLOAD)
    return FileResponse(
        stored.path,
        media_type=stored.document.mime_type,
        filename=stored.document.original_file_name,
        content_disposition_type="attachment",
        headers={"Cache-Control": "no-cache"},
    )
