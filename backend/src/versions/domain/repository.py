from typing import Protocol
from uuid import UUID

from versions.domain.entities import DocumentVersion


class VersionRepository(Protocol):
    async def insert_next(self, version: DocumentVersion) -> DocumentVersion:
        """Insert ``version`` as max(version_number) + 1.

        Raises VersionRaceError when another writer took that number first.
        """
        ...

    async def get_by_commit_id(self, commit_id: UUID) -> DocumentVersion | None: ...

    async def get_by_number(
        self, document_id: UUID, version_number: int
    ) -> DocumentVersion | None: ...

    async def list_for_document(self, document_id: UUID) -> list[DocumentVersion]: ...
