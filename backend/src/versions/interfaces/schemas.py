from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from auth.interfaces.schemas import ProfileResponse


class VersionSummaryResponse(BaseModel):
    id: UUID
    document_id: UUID
    version_number: int
    title: str
    preview: str
    created_by: UUID
    creator: ProfileResponse
    created_at: datetime | None = None


class VersionResponse(BaseModel):
    id: UUID
    document_id: UUID
    version_number: int
    title: str
    content: dict[str, Any]
    preview: str
    created_by: UUID
    created_at: datetime | None = None
