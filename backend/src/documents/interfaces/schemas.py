from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from auth.interfaces.schemas import ProfileResponse
from permissions.domain.entities import PermissionLevel


class SaveDocumentRequest(BaseModel):
    title: str
    content: dict[str, Any]
    expected_updated_at: datetime | None = None


class ArchiveRequest(BaseModel):
    archived: bool = True


class DocumentResponse(BaseModel):
    id: UUID
    title: str
    content: dict[str, Any]
    author_id: UUID
    is_public: bool
    is_archived: bool
    last_edited_by: UUID | None = None
    summary: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DocumentDetailResponse(DocumentResponse):
    author: ProfileResponse
    permission: PermissionLevel


class DocumentListItem(DocumentResponse):
    permission: PermissionLevel


class SaveDocumentResponse(BaseModel):
    document: DocumentResponse
    version_number: int | None = None
    version_pending: bool = False
    changed_elsewhere: bool = False
