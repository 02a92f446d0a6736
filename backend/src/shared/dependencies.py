from collections.abc import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth.application.services import verify_token
from auth.infrastructure.user_repository import DbUserRepository
from shared.infrastructure.database import async_session
from versions.infrastructure.retry_queue import VersionRetryQueue

security = HTTPBearer()

version_retry_queue = VersionRetryQueue(async_session)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session


def get_version_retry_queue() -> VersionRetryQueue:
    return version_retry_queue


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
):
    repo = DbUserRepository(db)
    return await verify_token(repo, credentials.credentials)
