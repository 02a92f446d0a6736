from uuid import UUID

from pydantic import BaseModel

from permissions.domain.entities import PermissionLevel


class PermissionResponse(BaseModel):
    document_id: UUID
    user_id: UUID
    permission: PermissionLevel
