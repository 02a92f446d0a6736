from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from auth.interfaces.schemas import ProfileResponse
from sharing.domain.entities import SharePermission


class ShareRequest(BaseModel):
    identifier: str = Field(min_length=1, description="Username or email of the user to share with")
    permission: SharePermission = SharePermission.READ


class UpdateShareRequest(BaseModel):
    permission: SharePermission


class ShareResponse(BaseModel):
    id: UUID
    document_id: UUID
    user_id: UUID
    permission: SharePermission
    shared_by: UUID
    created_at: datetime | None = None


class ShareWithProfileResponse(ShareResponse):
    profile: ProfileResponse
