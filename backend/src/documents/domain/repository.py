from typing import Any, Protocol
from uuid import UUID

from documents.domain.entities import Document


class DocumentRepository(Protocol):
    async def get_by_id(self, document_id: UUID) -> Document | None: ...

    async def create(self, document: Document) -> Document: ...

    async def update_content(
        self,
        document_id: UUID,
        title: str,
        content: dict[str, Any],
        edited_by: UUID,
    ) -> Document: ...

    async def set_visibility(self, document_id: UUID, is_public: bool) -> Document: ...

    async def set_archived(self, document_id: UUID, is_archived: bool) -> Document: ...

    async def list_for_user(
        self, user_id: UUID, include_archived: bool = False
    ) -> list[Document]: ...

    async def delete(self, document_id: UUID) -> bool: ...
