from uuid import UUID

from documents.domain.entities import Document
from documents.domain.repository import DocumentRepository
from permissions.domain.entities import PermissionLevel
from permissions.domain.resolver import resolve
from sharing.domain.repository import ShareRepository
from shared.exceptions import AuthorizationError, NotFoundError

_DENIED_MESSAGES = {
    PermissionLevel.READ: "You do not have permission to access this document",
    PermissionLevel.WRITE: "You do not have permission to edit this document",
    PermissionLevel.ADMIN: "Only the document author can do this",
}


async def resolve_permission(
    documents: DocumentRepository,
    shares: ShareRepository,
    user_id: UUID | None,
    document_id: UUID,
) -> tuple[Document, PermissionLevel]:
    """Load the document and the caller's share afresh and resolve the level."""
    document = await documents.get_by_id(document_id)
    if not document:
        raise NotFoundError("Document", str(document_id))

    share = None
    if user_id is not None and user_id != document.author_id:
        share = await shares.get_for_user(document_id, user_id)
    return document, resolve(user_id, document, share)


async def require_permission(
    documents: DocumentRepository,
    shares: ShareRepository,
    user_id: UUID | None,
    document_id: UUID,
    minimum: PermissionLevel,
) -> tuple[Document, PermissionLevel]:
    document, level = await resolve_permission(documents, shares, user_id, document_id)
    if level < minimum:
        raise AuthorizationError(_DENIED_MESSAGES.get(minimum, "Permission denied"))
    return document, level
