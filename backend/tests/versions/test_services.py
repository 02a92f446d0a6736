import asyncio
from uuid import uuid4

import pytest

from auth.infrastructure.user_repository import DbUserRepository
from conftest import paragraph_doc
from documents.application.services import create_document, toggle_visibility
from documents.infrastructure.document_repository import DbDocumentRepository
from sharing.domain.entities import DocumentShare, SharePermission
from sharing.infrastructure.share_repository import DbShareRepository
from shared.config import settings
from shared.exceptions import (
    AuthorizationError,
    NotFoundError,
    StorageError,
    ValidationError,
    VersionRaceError,
)
from versions.application.services import (
    append_version,
    get_version,
    list_versions,
    preview,
    restore_version,
)
from versions.domain.entities import DocumentVersion
from versions.infrastructure.version_repository import DbVersionRepository


@pytest.fixture
def documents(db):
    return DbDocumentRepository(db)


@pytest.fixture
def shares(db):
    return DbShareRepository(db)


@pytest.fixture
def versions(db):
    return DbVersionRepository(db)


@pytest.fixture
async def doc(documents, alice):
    return await create_document(documents, alice.id)


class RacingVersionRepository:
    """Loses the number allocation race a fixed number of times."""

    def __init__(self, inner, losses):
        self.inner = inner
        self.losses = losses
        self.attempts = 0

    async def insert_next(self, version):
        self.attempts += 1
        if self.attempts <= self.losses:
            raise VersionRaceError(str(version.document_id), self.attempts)
        return await self.inner.insert_next(version)

    async def get_by_commit_id(self, commit_id):
        return await self.inner.get_by_commit_id(commit_id)


async def test_append_starts_at_one(versions, doc, alice):
    version = await append_version(versions, doc.id, "Plan", paragraph_doc("a"), alice.id)
    assert version.version_number == 1
    assert version.title == "Plan"
    assert version.content == paragraph_doc("a")
    assert version.created_by == alice.id
    assert version.created_at is not None


async def test_numbers_are_per_document(versions, documents, doc, alice):
    other = await create_document(documents, alice.id)
    await append_version(versions, doc.id, "a", paragraph_doc("a"), alice.id)
    await append_version(versions, doc.id, "b", paragraph_doc("b"), alice.id)
    first_other = await append_version(versions, other.id, "c", paragraph_doc("c"), alice.id)
    assert first_other.version_number == 1


async def test_concurrent_appends_are_contiguous(session_factory, doc, alice):
    async def append(i):
        async with session_factory() as session:
            return await append_version(
                DbVersionRepository(session), doc.id, f"v{i}", paragraph_doc(str(i)), alice.id
            )

    results = await asyncio.gather(*(append(i) for i in range(10)))

    assert sorted(v.version_number for v in results) == list(range(1, 11))


async def test_allocation_race_is_retried(versions, doc, alice, monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_RETRY_BACKOFF_SECONDS", 0.001)
    racing = RacingVersionRepository(versions, losses=2)

    version = await append_version(racing, doc.id, "Plan", paragraph_doc("a"), alice.id)

    assert version.version_number == 1
    assert racing.attempts == 3


async def test_allocation_race_never_surfaces(versions, doc, alice, monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_RETRY_BACKOFF_SECONDS", 0.001)
    monkeypatch.setattr(settings, "VERSION_APPEND_ATTEMPTS", 3)
    racing = RacingVersionRepository(versions, losses=10)

    with pytest.raises(StorageError):
        await append_version(racing, doc.id, "Plan", paragraph_doc("a"), alice.id)


async def test_duplicate_commit_id_is_a_race_in_storage(versions, doc, alice):
    commit_id = uuid4()
    version = DocumentVersion(
        document_id=doc.id,
        title="Plan",
        content=paragraph_doc("a"),
        created_by=alice.id,
        commit_id=commit_id,
    )
    await versions.insert_next(version)
    with pytest.raises(VersionRaceError):
        await versions.insert_next(version)


async def test_append_is_idempotent_per_commit(versions, doc, alice):
    commit_id = uuid4()
    first = await append_version(versions, doc.id, "Plan", paragraph_doc("a"), alice.id, commit_id)
    again = await append_version(versions, doc.id, "Plan", paragraph_doc("a"), alice.id, commit_id)

    assert again.id == first.id
    assert len(await versions.list_for_document(doc.id)) == 1


async def test_list_versions_newest_first(db, documents, shares, versions, doc, alice):
    for text in ("one", "two", "three"):
        await append_version(versions, doc.id, text, paragraph_doc(text), alice.id)

    history = await list_versions(
        documents, shares, versions, DbUserRepository(db), doc.id, alice.id
    )

    assert [v.version_number for v, _ in history] == [3, 2, 1]
    assert {creator.full_name for _, creator in history} == {"Alice Smith"}
    assert preview(history[0][0]) == "three"


async def test_list_versions_requires_read(db, documents, shares, versions, doc, alice, bob):
    with pytest.raises(AuthorizationError):
        await list_versions(documents, shares, versions, DbUserRepository(db), doc.id, bob.id)

    await toggle_visibility(documents, shares, doc.id, alice.id)
    history = await list_versions(
        documents, shares, versions, DbUserRepository(db), doc.id, bob.id
    )
    assert history == []


async def test_get_version(documents, shares, versions, doc, alice):
    await append_version(versions, doc.id, "Plan", paragraph_doc("a"), alice.id)

    version = await get_version(documents, shares, versions, doc.id, 1, alice.id)
    assert version.title == "Plan"

    with pytest.raises(NotFoundError):
        await get_version(documents, shares, versions, doc.id, 2, alice.id)
    with pytest.raises(ValidationError):
        await get_version(documents, shares, versions, doc.id, 0, alice.id)


async def test_restore_appends_new_head(
    documents, shares, versions, retry_queue, doc, alice
):
    for i in range(1, 8):
        await append_version(versions, doc.id, f"Title {i}", paragraph_doc(f"body {i}"), alice.id)
    before = await versions.list_for_document(doc.id)

    restored = await restore_version(
        documents, shares, versions, retry_queue, doc.id, 3, alice.id
    )

    after = await versions.list_for_document(doc.id)
    assert len(after) == len(before) + 1
    head = after[0]
    assert head.version_number == 8
    assert (head.title, head.content) == ("Title 3", paragraph_doc("body 3"))
    assert after[1:] == before
    assert restored.title == "Title 3"
    assert restored.content == paragraph_doc("body 3")
    assert restored.last_edited_by == alice.id


async def test_restore_requires_write(documents, shares, versions, retry_queue, doc, alice, bob):
    await append_version(versions, doc.id, "Plan", paragraph_doc("a"), alice.id)
    await shares.create(
        DocumentShare(
            document_id=doc.id, user_id=bob.id, permission=SharePermission.READ, shared_by=alice.id
        )
    )
    with pytest.raises(AuthorizationError):
        await restore_version(documents, shares, versions, retry_queue, doc.id, 1, bob.id)


async def test_restore_missing_version(documents, shares, versions, retry_queue, doc, alice):
    with pytest.raises(NotFoundError):
        await restore_version(documents, shares, versions, retry_queue, doc.id, 5, alice.id)
