from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.exceptions import VersionRaceError
from shared.infrastructure.storage import storage_call
from versions.domain.entities import DocumentVersion
from versions.infrastructure.models import DocumentVersionModel


class DbVersionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @storage_call("Append version")
    async def insert_next(self, version: DocumentVersion) -> DocumentVersion:
        result = await self.session.execute(
            select(func.coalesce(func.max(DocumentVersionModel.version_number), 0))
            .where(DocumentVersionModel.document_id == version.document_id)
        )
        next_number = result.scalar_one() + 1

        model = DocumentVersionModel(
            document_id=version.document_id,
            version_number=next_number,
            title=version.title,
            content=version.content,
            created_by=version.created_by,
            commit_id=version.commit_id,
        )
        self.session.add(model)
        try:
            await self.session.commit()
        except IntegrityError:
            # Unique (document_id, version_number) or commit_id: someone else won.
            await self.session.rollback()
            raise VersionRaceError(str(version.document_id), next_number)
        await self.session.refresh(model)
        return _to_entity(model)

    @storage_call("Load version", read=True)
    async def get_by_commit_id(self, commit_id: UUID) -> DocumentVersion | None:
        result = await self.session.execute(
            select(DocumentVersionModel).where(DocumentVersionModel.commit_id == commit_id)
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    @storage_call("Load version", read=True)
    async def get_by_number(
        self, document_id: UUID, version_number: int
    ) -> DocumentVersion | None:
        result = await self.session.execute(
            select(DocumentVersionModel).where(
                DocumentVersionModel.document_id == document_id,
                DocumentVersionModel.version_number == version_number,
            )
        )
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    @storage_call("List versions", read=True)
    async def list_for_document(self, document_id: UUID) -> list[DocumentVersion]:
        result = await self.session.execute(
            select(DocumentVersionModel)
            .where(DocumentVersionModel.document_id == document_id)
            .order_by(DocumentVersionModel.version_number.desc())
        )
        return [_to_entity(m) for m in result.scalars().all()]


def _to_entity(model: DocumentVersionModel) -> DocumentVersion:
    return DocumentVersion(
        id=model.id,
        document_id=model.document_id,
        version_number=model.version_number,
        title=model.title,
        content=model.content,
        created_by=model.created_by,
        commit_id=model.commit_id,
        created_at=model.created_at,
    )
