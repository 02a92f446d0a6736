from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auth.domain.entities import User
from auth.infrastructure.user_repository import DbUserRepository
from autosave.application.services import save_document
from autosave.domain.entities import SaveRequest
from documents.application.services import (
    create_document,
    delete_document,
    list_documents,
    load_document,
    set_archived,
    toggle_visibility,
)
from documents.infrastructure.document_repository import DbDocumentRepository
from documents.interfaces.schemas import (
    ArchiveRequest,
    DocumentDetailResponse,
    DocumentListItem,
    DocumentResponse,
    SaveDocumentRequest,
    SaveDocumentResponse,
)
from shared.dependencies import get_current_user, get_db, get_version_retry_queue
from sharing.infrastructure.share_repository import DbShareRepository
from versions.infrastructure.retry_queue import VersionRetryQueue
from versions.infrastructure.version_repository import DbVersionRepository

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post("/", response_model=DocumentResponse, status_code=201)
async def create(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await create_document(DbDocumentRepository(db), author_id=current_user.id)


@router.get("/", response_model=list[DocumentListItem])
async def list_all(
    include_archived: bool = Query(default=False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entries = await list_documents(
        DbDocumentRepository(db),
        DbShareRepository(db),
        current_user.id,
        include_archived=include_archived,
    )
    return [DocumentListItem(**asdict(doc), permission=level) for doc, level in entries]


@router.get("/{document_id}", response_model=DocumentDetailResponse)
async def get_one(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    view = await load_document(
        DbDocumentRepository(db),
        DbShareRepository(db),
        DbUserRepository(db),
        document_id,
        current_user.id,
    )
    return DocumentDetailResponse(
        **asdict(view.document),
        author=asdict(view.author),
        permission=view.permission,
    )


@router.put("/{document_id}/content", response_model=SaveDocumentResponse)
async def save(
    document_id: UUID,
    body: SaveDocumentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    retry_queue: VersionRetryQueue = Depends(get_version_retry_queue),
):
    result = await save_document(
        DbDocumentRepository(db),
        DbShareRepository(db),
        DbVersionRepository(db),
        retry_queue,
        SaveRequest(
            document_id=document_id,
            user_id=current_user.id,
            title=body.title,
            content=body.content,
            expected_updated_at=body.expected_updated_at,
        ),
    )
    return SaveDocumentResponse(
        document=asdict(result.document),
        version_number=result.version.version_number if result.version else None,
        version_pending=result.version_pending,
        changed_elsewhere=result.changed_elsewhere,
    )


@router.post("/{document_id}/visibility", response_model=DocumentResponse)
async def toggle(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await toggle_visibility(
        DbDocumentRepository(db), DbShareRepository(db), document_id, current_user.id
    )


@router.post("/{document_id}/archive", response_model=DocumentResponse)
async def archive(
    document_id: UUID,
    body: ArchiveRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await set_archived(
        DbDocumentRepository(db),
        DbShareRepository(db),
        document_id,
        current_user.id,
        archived=body.archived,
    )


@router.delete("/{document_id}", status_code=204)
async def delete(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await delete_document(
        DbDocumentRepository(db), DbShareRepository(db), document_id, current_user.id
    )
