import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from autosave.domain.entities import (
    AutosaveNotice,
    AutosaveState,
    EditingSession,
    NoticeKind,
    SaveRequest,
    SaveResult,
)
from shared.config import settings
from shared.exceptions import AppError

logger = logging.getLogger(__name__)

Commit = Callable[[SaveRequest], Awaitable[SaveResult]]
Notify = Callable[[AutosaveNotice], Awaitable[None]]


class AutosaveScheduler:
    """Debounced autosave for one editing session.

    Every edit cancels and re-arms a single timer; when the quiet period
    elapses the latest title/content is committed. Closing the scheduler
    cancels the timer without flushing; use ``save_before_close`` to flush.
    """

    def __init__(
        self,
        session: EditingSession,
        commit: Commit,
        notify: Notify | None = None,
        debounce_seconds: float | None = None,
    ):
        self.session = session
        self._commit = commit
        self._notify = notify
        self._debounce = (
            debounce_seconds if debounce_seconds is not None else settings.AUTOSAVE_DEBOUNCE_SECONDS
        )
        self._timer: asyncio.TimerHandle | None = None
        self._inflight: asyncio.Task | None = None
        self._closed = False

    @property
    def state(self) -> AutosaveState:
        return self.session.state

    @property
    def closed(self) -> bool:
        return self._closed

    def edit(self, title: str, content: dict[str, Any]) -> None:
        if self._closed:
            raise RuntimeError("Editing session is closed")
        self.session.record_edit(title, content)
        if self.session.state is AutosaveState.DIRTY:
            self._schedule()

    def request_save(self) -> bool:
        """Start a manual save now, bypassing the timer.

        Ignored while a save is running or when there is nothing to retry.
        """
        if self._closed or self.session.state is AutosaveState.SAVING:
            return False
        if self.session.state is AutosaveState.IDLE and not self.session.has_unsaved_changes:
            return False
        self._cancel_timer()
        self._start_commit()
        return True

    async def save_now(self) -> SaveResult | None:
        if not self.request_save():
            return None
        return await self._inflight

    async def save_before_close(self) -> SaveResult | None:
        """Flush unsaved edits synchronously, then close the session."""
        self._cancel_timer()
        await self.wait_idle()
        result = None
        if not self._closed and self.session.has_unsaved_changes:
            self._start_commit()
            result = await self._inflight
        self.close()
        return result

    def close(self) -> None:
        # An in-flight commit is left to finish on its own.
        self._closed = True
        self._cancel_timer()

    async def wait_idle(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            await asyncio.wait([self._inflight])

    def _schedule(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce, self._on_quiet_period)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_quiet_period(self) -> None:
        self._timer = None
        if self._closed or self.session.state is not AutosaveState.DIRTY:
            return
        self._start_commit()

    def _start_commit(self) -> None:
        self._inflight = asyncio.get_running_loop().create_task(self._run_commit())

    async def _run_commit(self) -> SaveResult | None:
        request = self.session.begin_save()
        try:
            result = await self._commit(request)
        except AppError as exc:
            return await self._fail(exc.message)
        except Exception:
            logger.exception("Unexpected autosave failure for document %s", request.document_id)
            return await self._fail("Unexpected error while saving")

        self.session.complete_save(result)
        if result.version_pending:
            await self._emit(
                NoticeKind.VERSION_PENDING,
                "Saved; version history will catch up shortly",
            )
        else:
            await self._emit(NoticeKind.SAVED, "Saved", result.version.version_number)
        if result.changed_elsewhere:
            await self._emit(
                NoticeKind.CHANGED_ELSEWHERE,
                "This document was changed elsewhere; your save replaced those changes",
            )

        if self.session.state is AutosaveState.DIRTY and not self._closed:
            self._schedule()
        return result

    async def _fail(self, message: str) -> None:
        self.session.fail_save(message)
        logger.warning("Autosave of document %s failed: %s", self.session.document_id, message)
        await self._emit(NoticeKind.SAVE_FAILED, message)
        return None

    async def _emit(
        self, kind: NoticeKind, message: str, version_number: int | None = None
    ) -> None:
        if self._notify is None:
            return
        notice = AutosaveNotice(
            kind=kind,
            document_id=self.session.document_id,
            message=message,
            version_number=version_number,
        )
        try:
            await self._notify(notice)
        except Exception:
            logger.exception("Autosave notification %s could not be delivered", kind)
