from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.domain.entities import User
from auth.infrastructure.user_repository import DbUserRepository
from documents.infrastructure.document_repository import DbDocumentRepository
from documents.interfaces.schemas import DocumentResponse
from shared.dependencies import get_current_user, get_db, get_version_retry_queue
from sharing.infrastructure.share_repository import DbShareRepository
from versions.application.services import get_version, list_versions, preview, restore_version
from versions.infrastructure.retry_queue import VersionRetryQueue
from versions.infrastructure.version_repository import DbVersionRepository
from versions.interfaces.schemas import VersionResponse, VersionSummaryResponse

router = APIRouter(prefix="/api/documents", tags=["versions"])


@router.get("/{document_id}/versions", response_model=list[VersionSummaryResponse])
async def list_all(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    history = await list_versions(
        DbDocumentRepository(db),
        DbShareRepository(db),
        DbVersionRepository(db),
        DbUserRepository(db),
        document_id,
        current_user.id,
    )
    return [
        VersionSummaryResponse(
            id=version.id,
            document_id=version.document_id,
            version_number=version.version_number,
            title=version.title,
            preview=preview(version),
            created_by=version.created_by,
            creator=asdict(creator),
            created_at=version.created_at,
        )
        for version, creator in history
    ]


@router.get("/{document_id}/versions/{version_number}", response_model=VersionResponse)
async def get_one(
    document_id: UUID,
    version_number: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    version = await get_version(
        DbDocumentRepository(db),
        DbShareRepository(db),
        DbVersionRepository(db),
        document_id,
        version_number,
        current_user.id,
    )
    return VersionResponse(
        id=version.id,
        document_id=version.document_id,
        version_number=version.version_number,
        title=version.title,
        content=version.content,
        preview=preview(version),
        created_by=version.created_by,
        created_at=version.created_at,
    )


@router.post(
    "/{document_id}/versions/{version_number}/restore", response_model=DocumentResponse
)
async def restore(
    document_id: UUID,
    version_number: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    retry_queue: VersionRetryQueue = Depends(get_version_retry_queue),
):
    return await restore_version(
        DbDocumentRepository(db),
        DbShareRepository(db),
        DbVersionRepository(db),
        retry_queue,
        document_id,
        version_number,
        current_user.id,
    )
