from uuid import UUID

from documents.domain.entities import Document
from permissions.domain.entities import PermissionLevel
from sharing.domain.entities import DocumentShare


def resolve(
    user_id: UUID | None,
    document: Document,
    share: DocumentShare | None = None,
) -> PermissionLevel:
    """Permission of ``user_id`` on ``document``, highest rule first.

    1. the author is always admin (never stored as a share);
    2. an explicit share grants its own permission;
    3. a public document is readable by anyone;
    4. otherwise no access.
    """
    if user_id is not None and user_id == document.author_id:
        return PermissionLevel.ADMIN
    if (
        user_id is not None
        and share is not None
        and share.user_id == user_id
        and share.document_id == document.id
    ):
        return PermissionLevel(share.permission.value)
    if document.is_public:
        return PermissionLevel.READ
    return PermissionLevel.NONE
