from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sharing.domain.entities import DocumentShare, SharePermission
from sharing.infrastructure.models import DocumentShareModel
from shared.exceptions import ConflictError
from shared.infrastructure.storage import storage_call


class DbShareRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @storage_call("Load share", read=True)
    async def get_by_id(self, share_id: UUID) -> DocumentShare | None:
        result = await self.session.execute(
            select(DocumentShareModel).where(DocumentShareModel.id == share_id)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    @storage_call("Load share", read=True)
    async def get_for_user(self, document_id: UUID, user_id: UUID) -> DocumentShare | None:
        result = await self.session.execute(
            select(DocumentShareModel).where(
                DocumentShareModel.document_id == document_id,
                DocumentShareModel.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    @storage_call("List shares", read=True)
    async def list_for_document(self, document_id: UUID) -> list[DocumentShare]:
        result = await self.session.execute(
            select(DocumentShareModel)
            .where(DocumentShareModel.document_id == document_id)
            .order_by(DocumentShareModel.created_at.asc())
        )
        return [_to_entity(m) for m in result.scalars().all()]

    @storage_call("List shares", read=True)
    async def list_for_user(self, user_id: UUID) -> list[DocumentShare]:
        result = await self.session.execute(
            select(DocumentShareModel).where(DocumentShareModel.user_id == user_id)
        )
        return [_to_entity(m) for m in result.scalars().all()]

    @storage_call("Create share")
    async def create(self, share: DocumentShare) -> DocumentShare:
        model = DocumentShareModel(
            document_id=share.document_id,
            user_id=share.user_id,
            permission=share.permission.value,
            shared_by=share.shared_by,
        )
        self.session.add(model)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Document already shared with this user")
        await self.session.refresh(model)
        return _to_entity(model)

    @storage_call("Update share permission")
    async def update_permission(
        self, share_id: UUID, permission: SharePermission
    ) -> DocumentShare | None:
        result = await self.session.execute(
            update(DocumentShareModel)
            .where(DocumentShareModel.id == share_id)
            .values(permission=permission.value)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            return None
        await self.session.commit()

        refreshed = await self.session.execute(
            select(DocumentShareModel)
            .where(DocumentShareModel.id == share_id)
            .execution_options(populate_existing=True)
        )
        return _to_entity(refreshed.scalar_one())

    @storage_call("Revoke share")
    async def delete(self, share_id: UUID) -> bool:
        result = await self.session.execute(
            delete(DocumentShareModel).where(DocumentShareModel.id == share_id)
        )
        await self.session.commit()
        return result.rowcount > 0


def _to_entity(model: DocumentShareModel) -> DocumentShare:
    return DocumentShare(
        id=model.id,
        document_id=model.document_id,
        user_id=model.user_id,
        permission=SharePermission(model.permission),
        shared_by=model.shared_by,
        created_at=model.created_at,
    )
