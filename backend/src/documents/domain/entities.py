from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from documents.domain.content import empty_content

DEFAULT_TITLE = "Untitled Document"


@dataclass
class Document:
    author_id: UUID
    title: str = DEFAULT_TITLE
    content: dict[str, Any] = field(default_factory=empty_content)
    is_public: bool = False
    is_archived: bool = False
    last_edited_by: UUID | None = None
    summary: str | None = None
    id: UUID | None = field(default=None)
    created_at: datetime | None = field(default=None)
    updated_at: datetime | None = field(default=None)
