"""Process-wide Redis client for rate limit counters and level-up broadcasts.

Redis is optional: with ``JINSEI_REDIS_URL`` empty the client stays unset,
rate limiting is skipped and level-ups are only logged.
"""

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> None:
    """Create the shared client. Connections are opened lazily on first command."""
    global _client  # noqa: PLW0603
    if not url:
        logger.info("redis_disabled")
        return
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )
    logger.info("redis_configured", max_connections=max_connections)


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the shared client; RuntimeError when Redis is not configured."""
    if _client is None:
        msg = "Redis client is not configured"
        raise RuntimeError(msg)
    return _client


def get_optional_redis() -> redis.Redis | None:
    """FastAPI dependency for best-effort Redis users."""
    return _client
