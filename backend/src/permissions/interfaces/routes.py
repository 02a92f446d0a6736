from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth.domain.entities import User
from documents.infrastructure.document_repository import DbDocumentRepository
from permissions.application.services import resolve_permission
from permissions.interfaces.schemas import PermissionResponse
from shared.dependencies import get_current_user, get_db
from sharing.infrastructure.share_repository import DbShareRepository

router = APIRouter(prefix="/api/documents", tags=["permissions"])


@router.get("/{document_id}/permission", response_model=PermissionResponse)
async def get_permission(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _, level = await resolve_permission(
        DbDocumentRepository(db), DbShareRepository(db), current_user.id, document_id
    )
    return PermissionResponse(document_id=document_id, user_id=current_user.id, permission=level)
