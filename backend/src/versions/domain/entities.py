from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class DocumentVersion:
    """Immutable snapshot of a document's title and content."""

    document_id: UUID
    title: str
    content: dict[str, Any]
    created_by: UUID
    version_number: int = 0
    commit_id: UUID | None = None
    id: UUID | None = field(default=None)
    created_at: datetime | None = field(default=None)


@dataclass
class PendingVersion:
    """A version whose content is already saved but whose append failed."""

    document_id: UUID
    title: str
    content: dict[str, Any]
    created_by: UUID
    commit_id: UUID
    attempts: int = 0
