from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.domain.entities import User
from auth.infrastructure.user_repository import DbUserRepository
from documents.infrastructure.document_repository import DbDocumentRepository
from shared.dependencies import get_current_user, get_db
from sharing.application.services import (
    list_shares,
    revoke_share,
    share_document,
    update_share_permission,
)
from sharing.infrastructure.share_repository import DbShareRepository
from sharing.interfaces.schemas import (
    ShareRequest,
    ShareResponse,
    ShareWithProfileResponse,
    UpdateShareRequest,
)

router = APIRouter(prefix="/api", tags=["sharing"])


@router.get("/documents/{document_id}/shares", response_model=list[ShareWithProfileResponse])
async def list_all(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    entries = await list_shares(
        DbDocumentRepository(db),
        DbShareRepository(db),
        DbUserRepository(db),
        document_id,
        current_user.id,
    )
    return [
        ShareWithProfileResponse(**asdict(share), profile=asdict(profile))
        for share, profile in entries
    ]


@router.post("/documents/{document_id}/shares", response_model=ShareResponse, status_code=201)
async def create(
    document_id: UUID,
    body: ShareRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await share_document(
        DbDocumentRepository(db),
        DbShareRepository(db),
        DbUserRepository(db),
        document_id,
        grantor_id=current_user.id,
        target_identifier=body.identifier,
        permission=body.permission,
    )


@router.patch("/shares/{share_id}", response_model=ShareResponse)
async def update(
    share_id: UUID,
    body: UpdateShareRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await update_share_permission(
        DbDocumentRepository(db),
        DbShareRepository(db),
        share_id,
        body.permission,
        actor_id=current_user.id,
    )


@router.delete("/shares/{share_id}", status_code=204)
async def revoke(
    share_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await revoke_share(
        DbDocumentRepository(db), DbShareRepository(db), share_id, actor_id=current_user.id
    )
