import asyncio
import contextlib
import logging
from collections import deque

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.config import settings
from shared.exceptions import StorageError
from versions.application.services import append_version
from versions.domain.entities import DocumentVersion, PendingVersion
from versions.infrastructure.version_repository import DbVersionRepository

logger = logging.getLogger(__name__)


class VersionRetryQueue:
    """Retries version appends whose document content was already saved.

    Each entry carries the commit id of its save, so a retry that races a
    late success still yields a single version row.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        interval: float | None = None,
        max_attempts: int | None = None,
    ):
        self._session_factory = session_factory
        self._interval = interval if interval is not None else settings.VERSION_RETRY_INTERVAL_SECONDS
        self._max_attempts = max_attempts or settings.VERSION_RETRY_MAX_ATTEMPTS
        self._items: deque[PendingVersion] = deque()
        self._wakeup = asyncio.Event()
        self._task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._items)

    def enqueue(self, pending: PendingVersion) -> None:
        self._items.append(pending)
        self._wakeup.set()

    async def drain(self) -> list[DocumentVersion]:
        """Attempt every queued append once; failures go back on the queue."""
        recorded = []
        for _ in range(len(self._items)):
            version = await self._attempt(self._items.popleft())
            if version:
                recorded.append(version)
        return recorded

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        if self._items:
            logger.warning("Stopping with %d version appends still pending", len(self._items))

    async def _run(self) -> None:
        while True:
            await self._wakeup.wait()
            self._wakeup.clear()
            while self._items:
                fewest = min(item.attempts for item in self._items)
                await asyncio.sleep(self._interval * 2 ** min(max(fewest - 1, 0), 6))
                await self.drain()

    async def _attempt(self, pending: PendingVersion) -> DocumentVersion | None:
        pending.attempts += 1
        try:
            async with self._session_factory() as session:
                version = await append_version(
                    DbVersionRepository(session),
                    pending.document_id,
                    pending.title,
                    pending.content,
                    pending.created_by,
                    commit_id=pending.commit_id,
                )
        except StorageError as exc:
            if pending.attempts >= self._max_attempts:
                logger.error(
                    "Giving up on version for document %s (commit %s) after %d attempts: %s",
                    pending.document_id, pending.commit_id, pending.attempts, exc.message,
                )
                return None
            logger.warning(
                "Version retry %d for document %s failed: %s",
                pending.attempts, pending.document_id, exc.message,
            )
            self._items.append(pending)
            return None

        logger.info(
            "Recorded version %d of document %s from retry queue",
            version.version_number, pending.document_id,
        )
        return version
