"""Timeouts, error translation and read retries for repository methods."""

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from shared.config import settings
from shared.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def storage_call(
    operation: str, *, read: bool = False
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Bound a repository method by the storage timeout and map failures to StorageError.

    Reads are retried with exponential backoff; writes are attempted once so a
    lost acknowledgement never turns into a duplicate row.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            attempts = 1 + settings.STORAGE_READ_RETRIES if read else 1
            delay = settings.STORAGE_RETRY_BACKOFF_SECONDS
            for attempt in range(1, attempts + 1):
                try:
                    return await asyncio.wait_for(
                        func(self, *args, **kwargs), settings.STORAGE_TIMEOUT_SECONDS
                    )
                except (asyncio.TimeoutError, SQLAlchemyError) as exc:
                    await _rollback(self)
                    if attempt == attempts:
                        raise StorageError(_describe(operation, exc)) from exc
                    logger.warning(
                        "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                        operation, attempt, attempts, delay, exc,
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
            raise AssertionError("unreachable")

        return wrapper

    return decorator


async def _rollback(repo: Any) -> None:
    session = getattr(repo, "session", None)
    if session is None:
        return
    try:
        await session.rollback()
    except SQLAlchemyError:
        logger.exception("Rollback after storage failure also failed")


def _describe(operation: str, exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"{operation} timed out after {settings.STORAGE_TIMEOUT_SECONDS:g}s"
    return f"{operation} failed"
