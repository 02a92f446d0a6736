import asyncio
import logging
from uuid import UUID, uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from auth.application.services import decode_token
from auth.infrastructure.user_repository import DbUserRepository
from autosave.application.scheduler import AutosaveScheduler
from autosave.application.services import save_document
from autosave.domain.entities import (
    AutosaveNotice,
    EditingSession,
    NoticeKind,
    SaveRequest,
    SaveResult,
)
from autosave.infrastructure.redis_pubsub import publish_event, subscribe
from documents.application.services import load_document
from documents.infrastructure.document_repository import DbDocumentRepository
from shared.dependencies import version_retry_queue
from shared.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from shared.infrastructure.database import async_session
from shared.infrastructure.redis import get_redis_pool
from sharing.infrastructure.share_repository import DbShareRepository
from versions.infrastructure.version_repository import DbVersionRepository

logger = logging.getLogger(__name__)

router = APIRouter()


async def _commit(request: SaveRequest) -> SaveResult:
    async with async_session() as db:
        return await save_document(
            DbDocumentRepository(db),
            DbShareRepository(db),
            DbVersionRepository(db),
            version_retry_queue,
            request,
        )


@router.websocket("/ws/documents/{document_id}")
async def editing_session_endpoint(websocket: WebSocket, document_id: UUID):
    # Authenticate via query param: ?token=xxx
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001, reason="Missing token")
        return
    try:
        user_id = decode_token(token)
    except AuthenticationError:
        await websocket.close(code=4001, reason="Invalid token")
        return

    try:
        async with async_session() as db:
            view = await load_document(
                DbDocumentRepository(db),
                DbShareRepository(db),
                DbUserRepository(db),
                document_id,
                user_id,
            )
    except NotFoundError as exc:
        await websocket.close(code=4004, reason=exc.message)
        return
    except AuthorizationError as exc:
        await websocket.close(code=4003, reason=exc.message)
        return

    await websocket.accept()

    session_id = uuid4().hex
    redis = get_redis_pool()
    session = EditingSession(
        document_id=document_id,
        user_id=user_id,
        title=view.document.title,
        content=view.document.content,
        last_known_updated_at=view.document.updated_at,
    )

    async def notify(notice: AutosaveNotice):
        await websocket.send_json(
            {
                "type": notice.kind.value,
                "message": notice.message,
                "version_number": notice.version_number,
                "state": session.state.value,
            }
        )
        if notice.kind in (NoticeKind.SAVED, NoticeKind.VERSION_PENDING):
            await publish_event(
                redis,
                document_id,
                {
                    "type": "document_saved",
                    "session_id": session_id,
                    "user_id": str(user_id),
                    "updated_at": session.last_known_updated_at,
                },
            )

    scheduler = AutosaveScheduler(session, commit=_commit, notify=notify)

    async def on_document_event(event: dict):
        """Tell this client when another session saved the same document."""
        if event.get("session_id") == session_id:
            return
        try:
            await websocket.send_json(
                {
                    "type": NoticeKind.CHANGED_ELSEWHERE.value,
                    "message": "This document was changed elsewhere",
                    "user_id": event.get("user_id"),
                }
            )
        except (RuntimeError, WebSocketDisconnect):
            logger.debug("Dropped event for closed session %s", session_id)

    sub_task = await subscribe(redis, document_id, on_document_event)

    try:
        await websocket.send_json(
            {
                "type": "loaded",
                "title": view.document.title,
                "content": view.document.content,
                "permission": view.permission.value,
                "updated_at": str(view.document.updated_at),
            }
        )

        while True:
            message = await websocket.receive_json()
            kind = message.get("type")
            if kind == "edit":
                scheduler.edit(
                    message.get("title", session.title),
                    message.get("content", session.content),
                )
            elif kind == "save":
                scheduler.request_save()
            elif kind == "close":
                await scheduler.save_before_close()
                await websocket.close()
                break
            else:
                await websocket.send_json(
                    {"type": "error", "message": f"Unknown message type: {kind}"}
                )

    except WebSocketDisconnect:
        pass
    finally:
        scheduler.close()
        sub_task.cancel()
        try:
            await sub_task
        except asyncio.CancelledError:
            pass
