from redis.asyncio import ConnectionPool, Redis

from shared.config import settings

_pool: ConnectionPool | None = None


def get_redis_pool() -> Redis:
    """Client on the process-wide connection pool, created on first use."""
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(settings.REDIS_URL, decode_responses=True)
    return Redis(connection_pool=_pool)


async def close_redis_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None
