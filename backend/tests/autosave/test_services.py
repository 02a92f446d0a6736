import asyncio
from uuid import uuid4

import pytest

from autosave.application.scheduler import AutosaveScheduler
from autosave.application.services import save_document
from autosave.domain.entities import AutosaveState, EditingSession, SaveRequest
from conftest import paragraph_doc
from documents.application.services import create_document
from documents.domain.entities import DEFAULT_TITLE
from documents.infrastructure.document_repository import DbDocumentRepository
from sharing.domain.entities import DocumentShare, SharePermission
from sharing.infrastructure.share_repository import DbShareRepository
from shared.exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError
from versions.infrastructure.version_repository import DbVersionRepository


class BrokenVersionRepository:
    async def insert_next(self, version):
        raise StorageError("Append version timed out after 10s")

    async def get_by_commit_id(self, commit_id):
        return None


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


async def share_with(shares, doc, owner, user, permission):
    await shares.create(
        DocumentShare(document_id=doc.id, user_id=user.id, permission=permission, shared_by=owner.id)
    )


def request_for(doc, user, *texts, title="Plan", **kwargs):
    return SaveRequest(
        document_id=doc.id, user_id=user.id, title=title, content=paragraph_doc(*texts), **kwargs
    )


async def test_save_writes_document_and_version(documents, shares, versions, retry_queue, doc, alice):
    result = await save_document(
        documents, shares, versions, retry_queue, request_for(doc, alice, "hello")
    )

    assert result.version.version_number == 1
    assert not result.version_pending
    assert not result.changed_elsewhere
    stored = await documents.get_by_id(doc.id)
    assert stored.content == paragraph_doc("hello")
    assert stored.title == "Plan"
    assert stored.last_edited_by == alice.id


async def test_blank_title_becomes_default(documents, shares, versions, retry_queue, doc, alice):
    result = await save_document(
        documents, shares, versions, retry_queue, request_for(doc, alice, "x", title="   ")
    )
    assert result.document.title == DEFAULT_TITLE


async def test_writer_share_can_save(documents, shares, versions, retry_queue, doc, alice, bob):
    await share_with(shares, doc, alice, bob, SharePermission.WRITE)

    result = await save_document(
        documents, shares, versions, retry_queue, request_for(doc, bob, "from bob")
    )

    assert result.document.last_edited_by == bob.id
    assert result.version.created_by == bob.id


async def test_reader_cannot_save(documents, shares, versions, retry_queue, doc, alice, bob):
    await share_with(shares, doc, alice, bob, SharePermission.READ)

    with pytest.raises(AuthorizationError):
        await save_document(
            documents, shares, versions, retry_queue, request_for(doc, bob, "nope")
        )

    stored = await documents.get_by_id(doc.id)
    assert stored.content == paragraph_doc()
    assert await versions.list_for_document(doc.id) == []


async def test_missing_document(documents, shares, versions, retry_queue, doc, alice):
    request = SaveRequest(
        document_id=uuid4(), user_id=alice.id, title="Plan", content=paragraph_doc("x")
    )
    with pytest.raises(NotFoundError):
        await save_document(documents, shares, versions, retry_queue, request)


async def test_malformed_content_rejected(documents, shares, versions, retry_queue, doc, alice):
    request = SaveRequest(
        document_id=doc.id, user_id=alice.id, title="Plan", content={"type": "paragraph"}
    )
    with pytest.raises(ValidationError):
        await save_document(documents, shares, versions, retry_queue, request)


async def test_changed_elsewhere_is_advisory(
    documents, shares, versions, retry_queue, doc, alice, bob
):
    await share_with(shares, doc, alice, bob, SharePermission.WRITE)
    first = await save_document(
        documents, shares, versions, retry_queue, request_for(doc, alice, "alice 1")
    )
    seen = first.document.updated_at
    await asyncio.sleep(0.01)
    await save_document(documents, shares, versions, retry_queue, request_for(doc, bob, "bob"))

    result = await save_document(
        documents, shares, versions, retry_queue,
        request_for(doc, alice, "alice 2", expected_updated_at=seen),
    )

    assert result.changed_elsewhere
    assert result.document.content == paragraph_doc("alice 2")
    assert result.version.version_number == 3


async def test_unchanged_timestamp_is_not_flagged(
    documents, shares, versions, retry_queue, doc, alice
):
    first = await save_document(
        documents, shares, versions, retry_queue, request_for(doc, alice, "one")
    )
    result = await save_document(
        documents, shares, versions, retry_queue,
        request_for(doc, alice, "two", expected_updated_at=first.document.updated_at),
    )
    assert not result.changed_elsewhere


async def test_version_failure_keeps_content(documents, shares, retry_queue, db, doc, alice):
    result = await save_document(
        documents, shares, BrokenVersionRepository(), retry_queue, request_for(doc, alice, "kept")
    )

    assert result.version_pending
    assert (await documents.get_by_id(doc.id)).content == paragraph_doc("kept")
    assert len(retry_queue) == 1

    recorded = await retry_queue.drain()
    assert [v.version_number for v in recorded] == [1]
    assert await retry_queue.drain() == []
    history = await DbVersionRepository(db).list_for_document(doc.id)
    assert len(history) == 1
    assert history[0].content == paragraph_doc("kept")


async def test_scheduler_end_to_end(session_factory, retry_queue, doc, alice):
    async def commit(request):
        async with session_factory() as session:
            return await save_document(
                DbDocumentRepository(session),
                DbShareRepository(session),
                DbVersionRepository(session),
                retry_queue,
                request,
            )

    session = EditingSession(
        document_id=doc.id, user_id=alice.id, title=doc.title, content=doc.content,
        last_known_updated_at=doc.updated_at,
    )
    scheduler = AutosaveScheduler(session, commit, debounce_seconds=0.05)
    for i in range(5):
        scheduler.edit("Plan", paragraph_doc(f"typing {i}"))
    await asyncio.sleep(0.1)
    await scheduler.wait_idle()

    assert scheduler.state is AutosaveState.IDLE
    async with session_factory() as check:
        history = await DbVersionRepository(check).list_for_document(doc.id)
        stored = await DbDocumentRepository(check).get_by_id(doc.id)
    assert len(history) == 1
    assert history[0].content == paragraph_doc("typing 4")
    assert stored.content == paragraph_doc("typing 4")


async def test_scheduler_reader_ends_in_error(session_factory, retry_queue, shares, doc, alice, bob):
    await share_with(shares, doc, alice, bob, SharePermission.READ)

    async def commit(request):
        async with session_factory() as session:
            return await save_document(
                DbDocumentRepository(session),
                DbShareRepository(session),
                DbVersionRepository(session),
                retry_queue,
                request,
            )

    session = EditingSession(document_id=doc.id, user_id=bob.id, title=doc.title, content=doc.content)
    scheduler = AutosaveScheduler(session, commit, debounce_seconds=0.05)
    scheduler.edit("Plan", paragraph_doc("sneaky"))
    await asyncio.sleep(0.1)
    await scheduler.wait_idle()

    assert scheduler.state is AutosaveState.ERROR
    assert scheduler.session.has_unsaved_changes
    async with session_factory() as check:
        stored = await DbDocumentRepository(check).get_by_id(doc.id)
    assert stored.content == paragraph_doc()
