from dataclasses import dataclass
from uuid import UUID

from auth.application.services import lookup_profiles
from auth.domain.entities import Profile
from auth.domain.repository import ProfileRepository
from documents.domain.content import empty_content
from documents.domain.entities import DEFAULT_TITLE, Document
from documents.domain.repository import DocumentRepository
from permissions.application.services import require_permission
from permissions.domain.entities import PermissionLevel
from permissions.domain.resolver import resolve
from sharing.domain.repository import ShareRepository
from shared.exceptions import NotFoundError


@dataclass
class DocumentView:
    document: Document
    author: Profile
    permission: PermissionLevel


async def create_document(repo: DocumentRepository, author_id: UUID) -> Document:
    doc = Document(author_id=author_id, title=DEFAULT_TITLE, content=empty_content())
    return await repo.create(doc)


async def load_document(
    documents: DocumentRepository,
    shares: ShareRepository,
    profiles: ProfileRepository,
    document_id: UUID,
    user_id: UUID | None,
) -> DocumentView:
    document, level = await require_permission(
        documents, shares, user_id, document_id, PermissionLevel.READ
    )
    authors = await lookup_profiles(profiles, [document.author_id])
    return DocumentView(document=document, author=authors[document.author_id], permission=level)


async def list_documents(
    documents: DocumentRepository,
    shares: ShareRepository,
    user_id: UUID,
    include_archived: bool = False,
) -> list[tuple[Document, PermissionLevel]]:
    """Documents the user authored or was given access to, latest edit first."""
    docs = await documents.list_for_user(user_id, include_archived=include_archived)
    grants = {share.document_id: share for share in await shares.list_for_user(user_id)}
    return [(doc, resolve(user_id, doc, grants.get(doc.id))) for doc in docs]


async def toggle_visibility(
    documents: DocumentRepository,
    shares: ShareRepository,
    document_id: UUID,
    user_id: UUID,
) -> Document:
    document, _ = await require_permission(
        documents, shares, user_id, document_id, PermissionLevel.ADMIN
    )
    return await documents.set_visibility(document_id, not document.is_public)


async def set_archived(
    documents: DocumentRepository,
    shares: ShareRepository,
    document_id: UUID,
    user_id: UUID,
    archived: bool,
) -> Document:
    await require_permission(documents, shares, user_id, document_id, PermissionLevel.ADMIN)
    return await documents.set_archived(document_id, archived)


async def delete_document(
    documents: DocumentRepository,
    shares: ShareRepository,
    document_id: UUID,
    user_id: UUID,
) -> None:
    await require_permission(documents, shares, user_id, document_id, PermissionLevel.ADMIN)
    if not await documents.delete(document_id):
        raise NotFoundError("Document", str(document_id))
