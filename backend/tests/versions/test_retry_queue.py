import asyncio
from uuid import uuid4

import pytest

from conftest import paragraph_doc
from documents.application.services import create_document
from documents.infrastructure.document_repository import DbDocumentRepository
from shared.exceptions import StorageError
from versions.application.services import append_version, record_version
from versions.domain.entities import PendingVersion
from versions.infrastructure.retry_queue import VersionRetryQueue
from versions.infrastructure.version_repository import DbVersionRepository


class BrokenVersionRepository:
    async def insert_next(self, version):
        raise StorageError("Append version failed")

    async def get_by_commit_id(self, commit_id):
        return None


@pytest.fixture
async def doc(db, alice):
    return await create_document(DbDocumentRepository(db), alice.id)


def pending(doc, alice, commit_id=None, text="saved"):
    return PendingVersion(
        document_id=doc.id,
        title="Plan",
        content=paragraph_doc(text),
        created_by=alice.id,
        commit_id=commit_id or uuid4(),
    )


async def test_failed_append_is_queued(retry_queue, doc, alice):
    commit_id = uuid4()

    version = await record_version(
        BrokenVersionRepository(), retry_queue, doc.id, "Plan",
        paragraph_doc("saved"), alice.id, commit_id,
    )

    assert version is None
    assert len(retry_queue) == 1


async def test_drain_records_once(db, retry_queue, doc, alice):
    retry_queue.enqueue(pending(doc, alice))

    recorded = await retry_queue.drain()

    assert [v.version_number for v in recorded] == [1]
    assert recorded[0].content == paragraph_doc("saved")
    assert len(retry_queue) == 0
    assert await retry_queue.drain() == []
    assert len(await DbVersionRepository(db).list_for_document(doc.id)) == 1


async def test_duplicate_commits_yield_one_version(db, retry_queue, doc, alice):
    commit_id = uuid4()
    retry_queue.enqueue(pending(doc, alice, commit_id))
    retry_queue.enqueue(pending(doc, alice, commit_id))

    await retry_queue.drain()

    history = await DbVersionRepository(db).list_for_document(doc.id)
    assert len(history) == 1
    assert history[0].commit_id == commit_id


async def test_late_retry_after_success_is_noop(db, retry_queue, doc, alice):
    commit_id = uuid4()
    versions = DbVersionRepository(db)
    first = await append_version(
        versions, doc.id, "Plan", paragraph_doc("saved"), alice.id, commit_id
    )
    retry_queue.enqueue(pending(doc, alice, commit_id))

    recorded = await retry_queue.drain()

    assert [v.id for v in recorded] == [first.id]
    assert len(await versions.list_for_document(doc.id)) == 1


async def test_gives_up_after_max_attempts(retry_queue, doc, alice, monkeypatch):
    async def failing_append(*args, **kwargs):
        raise StorageError("Append version failed")

    monkeypatch.setattr(
        "versions.infrastructure.retry_queue.append_version", failing_append
    )
    retry_queue.enqueue(pending(doc, alice))

    for _ in range(3):
        assert await retry_queue.drain() == []

    assert len(retry_queue) == 0


async def test_background_worker_drains(db, session_factory, doc, alice):
    queue = VersionRetryQueue(session_factory, interval=0.01, max_attempts=3)
    versions = DbVersionRepository(db)
    queue.start()
    try:
        queue.enqueue(pending(doc, alice))
        for _ in range(200):
            if await versions.list_for_document(doc.id):
                break
            await asyncio.sleep(0.01)
    finally:
        await queue.stop()

    assert len(queue) == 0
    assert len(await versions.list_for_document(doc.id)) == 1
