import logging
import redis.asyncio as redis
from app.core.config import REDIS_URL

logger = logging.getLogger(__name__)


async def create_redis(url: str | None = REDIS_URL) -> redis.Redis | None:
    """
    Shared client for the audit stream and the redis notifier backend.
    Returns None when no URL is configured; both features then degrade to no-ops.
    """
    if not url:
        logger.warning("REDIS_URL not set - auditing and redis notifications disabled")
        return None
    client = redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        health_check_interval=30,
        retry_on_timeout=True,
        socket_connect_timeout=10,
        socket_keepalive=True
    )
    try:
        await client.ping()
    except redis.RedisError:
        # keep the client: redis-py reconnects on the next command
        logger.warning("Redis at %s is unreachable at startup", url.rsplit("@", 1)[-1], exc_info=True)
    return client
