from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class SharePermission(StrEnum):
    READ = "read"
    WRITE = "write"


@dataclass
class DocumentShare:
    document_id: UUID
    user_id: UUID
    permission: SharePermission
    shared_by: UUID
    id: UUID | None = field(default=None)
    created_at: datetime | None = field(default=None)
