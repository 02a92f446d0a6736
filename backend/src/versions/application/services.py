import asyncio
import logging
import random
from typing import Any, Protocol
from uuid import UUID, uuid4

from auth.application.services import lookup_profiles
from auth.domain.entities import Profile
from auth.domain.repository import ProfileRepository
from documents.domain.entities import Document
from documents.domain.repository import DocumentRepository
from permissions.application.services import require_permission
from permissions.domain.entities import PermissionLevel
from sharing.domain.repository import ShareRepository
from shared.config import settings
from shared.exceptions import NotFoundError, StorageError, ValidationError, VersionRaceError
from shared.infrastructure.locks import KeyedLock
from versions.domain.entities import DocumentVersion, PendingVersion
from versions.domain.preview import content_preview
from versions.domain.repository import VersionRepository

logger = logging.getLogger(__name__)

# Number allocation is read-max-then-insert; it must not interleave per document.
version_locks = KeyedLock()


class PendingVersionQueue(Protocol):
    def enqueue(self, pending: PendingVersion) -> None: ...


async def append_version(
    versions: VersionRepository,
    document_id: UUID,
    title: str,
    content: dict[str, Any],
    author_id: UUID,
    commit_id: UUID | None = None,
) -> DocumentVersion:
    """Append the next version of a document.

    Allocation is serialized per document inside this process; the unique
    (document_id, version_number) constraint catches writers in other
    processes, and those collisions are retried here. A ``commit_id`` that
    already produced a version returns that version instead of a new one.
    """
    async with version_locks(document_id):
        for attempt in range(1, settings.VERSION_APPEND_ATTEMPTS + 1):
            if commit_id is not None:
                existing = await versions.get_by_commit_id(commit_id)
                if existing:
                    return existing
            try:
                return await versions.insert_next(
                    DocumentVersion(
                        document_id=document_id,
                        title=title,
                        content=content,
                        created_by=author_id,
                        commit_id=commit_id,
                    )
                )
            except VersionRaceError as exc:
                logger.info("%s (attempt %d), retrying", exc.message, attempt)
                await asyncio.sleep(
                    random.uniform(0, settings.STORAGE_RETRY_BACKOFF_SECONDS * attempt)
                )

    raise StorageError(f"Could not allocate a version number for document {document_id}")


async def record_version(
    versions: VersionRepository,
    retry_queue: PendingVersionQueue,
    document_id: UUID,
    title: str,
    content: dict[str, Any],
    author_id: UUID,
    commit_id: UUID,
) -> DocumentVersion | None:
    """Append a version for content that is already saved.

    A storage failure does not undo the saved content: the append is handed
    to ``retry_queue`` and None is returned.
    """
    try:
        return await append_version(versions, document_id, title, content, author_id, commit_id)
    except StorageError as exc:
        logger.warning(
            "Version append for document %s failed, queued for retry: %s",
            document_id, exc.message,
        )
        retry_queue.enqueue(
            PendingVersion(
                document_id=document_id,
                title=title,
                content=content,
                created_by=author_id,
                commit_id=commit_id,
            )
        )
        return None


async def list_versions(
    documents: DocumentRepository,
    shares: ShareRepository,
    versions: VersionRepository,
    profiles: ProfileRepository,
    document_id: UUID,
    user_id: UUID,
) -> list[tuple[DocumentVersion, Profile]]:
    await require_permission(documents, shares, user_id, document_id, PermissionLevel.READ)
    history = await versions.list_for_document(document_id)
    creators = await lookup_profiles(profiles, (v.created_by for v in history))
    return [(version, creators[version.created_by]) for version in history]


async def get_version(
    documents: DocumentRepository,
    shares: ShareRepository,
    versions: VersionRepository,
    document_id: UUID,
    version_number: int,
    user_id: UUID,
) -> DocumentVersion:
    await require_permission(documents, shares, user_id, document_id, PermissionLevel.READ)
    return await _get_version(versions, document_id, version_number)


async def restore_version(
    documents: DocumentRepository,
    shares: ShareRepository,
    versions: VersionRepository,
    retry_queue: PendingVersionQueue,
    document_id: UUID,
    version_number: int,
    user_id: UUID,
) -> Document:
    """Make an earlier version current again, recording the restore as a new version."""
    await require_permission(documents, shares, user_id, document_id, PermissionLevel.WRITE)
    target = await _get_version(versions, document_id, version_number)

    document = await documents.update_content(
        document_id, target.title, target.content, user_id
    )
    await record_version(
        versions,
        retry_queue,
        document_id,
        target.title,
        target.content,
        user_id,
        commit_id=uuid4(),
    )
    return document


def preview(version: DocumentVersion) -> str:
    return content_preview(version.content, settings.CONTENT_PREVIEW_LENGTH)


async def _get_version(
    versions: VersionRepository, document_id: UUID, version_number: int
) -> DocumentVersion:
    if version_number < 1:
        raise ValidationError("Version numbers start at 1")
    version = await versions.get_by_number(document_id, version_number)
    if not version:
        raise NotFoundError("Version", f"{document_id} v{version_number}")
    return version
