from uuid import UUID

from auth.application.services import lookup_profiles
from auth.domain.entities import Profile
from auth.domain.repository import ProfileRepository
from documents.domain.repository import DocumentRepository
from permissions.application.services import require_permission
from permissions.domain.entities import PermissionLevel
from sharing.domain.entities import DocumentShare, SharePermission
from sharing.domain.repository import ShareRepository
from shared.exceptions import ConflictError, NotFoundError, ValidationError
from shared.infrastructure.locks import KeyedLock

# Share mutations are serialized per document; documents never block each other.
share_locks = KeyedLock()


def parse_share_permission(permission: str | SharePermission) -> SharePermission:
    try:
        return SharePermission(permission)
    except ValueError:
        raise ValidationError("Share permission must be 'read' or 'write'")


async def share_document(
    documents: DocumentRepository,
    shares: ShareRepository,
    profiles: ProfileRepository,
    document_id: UUID,
    grantor_id: UUID,
    target_identifier: str,
    permission: str | SharePermission,
) -> DocumentShare:
    target_identifier = (target_identifier or "").strip()
    if not target_identifier:
        raise ValidationError("A username or email is required to share a document")
    permission = parse_share_permission(permission)

    async with share_locks(document_id):
        document, _ = await require_permission(
            documents, shares, grantor_id, document_id, PermissionLevel.ADMIN
        )

        target = await profiles.find_by_identifier(target_identifier)
        if not target:
            raise NotFoundError("User", target_identifier)
        if target.user_id == document.author_id:
            raise ValidationError("The author already has full access to this document")

        if await shares.get_for_user(document_id, target.user_id):
            raise ConflictError("Document already shared with this user")

        return await shares.create(
            DocumentShare(
                document_id=document_id,
                user_id=target.user_id,
                permission=permission,
                shared_by=grantor_id,
            )
        )


async def update_share_permission(
    documents: DocumentRepository,
    shares: ShareRepository,
    share_id: UUID,
    permission: str | SharePermission,
    actor_id: UUID,
) -> DocumentShare:
    permission = parse_share_permission(permission)
    share = await _get_share(shares, share_id)

    async with share_locks(share.document_id):
        await require_permission(
            documents, shares, actor_id, share.document_id, PermissionLevel.ADMIN
        )
        updated = await shares.update_permission(share_id, permission)
        if not updated:
            raise NotFoundError("Share", str(share_id))
        return updated


async def revoke_share(
    documents: DocumentRepository,
    shares: ShareRepository,
    share_id: UUID,
    actor_id: UUID,
) -> None:
    share = await _get_share(shares, share_id)

    async with share_locks(share.document_id):
        await require_permission(
            documents, shares, actor_id, share.document_id, PermissionLevel.ADMIN
        )
        if not await shares.delete(share_id):
            raise NotFoundError("Share", str(share_id))


async def list_shares(
    documents: DocumentRepository,
    shares: ShareRepository,
    profiles: ProfileRepository,
    document_id: UUID,
    user_id: UUID,
) -> list[tuple[DocumentShare, Profile]]:
    await require_permission(documents, shares, user_id, document_id, PermissionLevel.WRITE)
    records = await shares.list_for_document(document_id)
    by_user = await lookup_profiles(profiles, (share.user_id for share in records))
    return [(share, by_user[share.user_id]) for share in records]


async def _get_share(shares: ShareRepository, share_id: UUID) -> DocumentShare:
    share = await shares.get_by_id(share_id)
    if not share:
        raise NotFoundError("Share", str(share_id))
    return share
