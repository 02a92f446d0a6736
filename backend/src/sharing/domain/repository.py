from typing import Protocol
from uuid import UUID

from sharing.domain.entities import DocumentShare, SharePermission


class ShareRepository(Protocol):
    async def get_by_id(self, share_id: UUID) -> DocumentShare | None: ...

    async def get_for_user(self, document_id: UUID, user_id: UUID) -> DocumentShare | None: ...

    async def list_for_document(self, document_id: UUID) -> list[DocumentShare]: ...

    async def list_for_user(self, user_id: UUID) -> list[DocumentShare]: ...

    async def create(self, share: DocumentShare) -> DocumentShare: ...

    async def update_permission(
        self, share_id: UUID, permission: SharePermission
    ) -> DocumentShare | None: ...

    async def delete(self, share_id: UUID) -> bool: ...
