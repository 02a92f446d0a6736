from typing import Any
from uuid import UUID

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from documents.domain.entities import Document
from documents.infrastructure.models import DocumentModel
from sharing.infrastructure.models import DocumentShareModel
from shared.exceptions import NotFoundError
from shared.infrastructure.database import utcnow
from shared.infrastructure.storage import storage_call
from versions.infrastructure.models import DocumentVersionModel


class DbDocumentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @storage_call("Load document", read=True)
    async def get_by_id(self, document_id: UUID) -> Document | None:
        result = await self.session.execute(
            select(DocumentModel).where(DocumentModel.id == document_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    @storage_call("List documents", read=True)
    async def list_for_user(
        self, user_id: UUID, include_archived: bool = False
    ) -> list[Document]:
        shared_ids = select(DocumentShareModel.document_id).where(
            DocumentShareModel.user_id == user_id
        )
        query = select(DocumentModel).where(
            or_(DocumentModel.author_id == user_id, DocumentModel.id.in_(shared_ids))
        )
        if not include_archived:
            query = query.where(DocumentModel.is_archived.is_(False))
        result = await self.session.execute(
            query.order_by(DocumentModel.updated_at.desc())
        )
        return [_to_entity(m) for m in result.scalars().all()]

    @storage_call("Create document")
    async def create(self, document: Document) -> Document:
        now = utcnow()
        model = DocumentModel(
            title=document.title,
            content=document.content,
            author_id=document.author_id,
            is_public=document.is_public,
            is_archived=document.is_archived,
            summary=document.summary,
            created_at=now,
            updated_at=now,
        )
        self.session.add(model)
        await self.session.commit()
        await self.session.refresh(model)
        return _to_entity(model)

    @storage_call("Save document")
    async def update_content(
        self,
        document_id: UUID,
        title: str,
        content: dict[str, Any],
        edited_by: UUID,
    ) -> Document:
        return await self._update(
            document_id,
            title=title,
            content=content,
            last_edited_by=edited_by,
            updated_at=utcnow(),
        )

    @storage_call("Update document visibility")
    async def set_visibility(self, document_id: UUID, is_public: bool) -> Document:
        return await self._update(document_id, is_public=is_public)

    @storage_call("Archive document")
    async def set_archived(self, document_id: UUID, is_archived: bool) -> Document:
        return await self._update(document_id, is_archived=is_archived)

    @storage_call("Delete document")
    async def delete(self, document_id: UUID) -> bool:
        """Remove the document together with its versions and shares."""
        await self.session.execute(
            delete(DocumentVersionModel).where(DocumentVersionModel.document_id == document_id)
        )
        await self.session.execute(
            delete(DocumentShareModel).where(DocumentShareModel.document_id == document_id)
        )
        result = await self.session.execute(
            delete(DocumentModel).where(DocumentModel.id == document_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def _update(self, document_id: UUID, **values: Any) -> Document:
        result = await self.session.execute(
            update(DocumentModel).where(DocumentModel.id == document_id).values(**values)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError("Document", str(document_id))

        await self.session.commit()

        refreshed = await self.session.execute(
            select(DocumentModel)
            .where(DocumentModel.id == document_id)
            .execution_options(populate_existing=True)
        )
        return _to_entity(refreshed.scalar_one())


def _to_entity(model: DocumentModel) -> Document:
    return Document(
        id=model.id,
        title=model.title,
        content=model.content,
        author_id=model.author_id,
        is_public=model.is_public,
        is_archived=model.is_archived,
        last_edited_by=model.last_edited_by,
        summary=model.summary,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
