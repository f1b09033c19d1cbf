"""Redis client and cache for exchange-rate tables.

Product data is never cached; only the rate table fetched from a remote
exchange-rate API is kept here, so repeated price conversions do not hit
the upstream service.

Uses the asyncio client so cache calls never block the event loop. If
Redis is unreachable the catalog keeps working without a cache.
"""
import json
from datetime import timedelta
from typing import Any, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from app.core.logging import get_logger
from app.core.config import settings

logger = get_logger(__name__)

# Redis connection pool (lazy initialization)
_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None


def get_redis_client(
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: Optional[int] = None,
    password: Optional[str] = None,
) -> Redis:
    """Get or create the shared Redis client.

    Uses settings from environment variables if not explicitly provided.
    Creating the client does no I/O; connections are opened on first use,
    so an unreachable server shows up as errors from the cache calls.

    Returns:
        Async Redis client instance
    """
    global _redis_pool, _redis_client

    if _redis_client is None:
        host = host or settings.redis_host
        port = port or settings.redis_port
        logger.info(f"Initializing Redis connection pool: {host}:{port}")

        _redis_pool = ConnectionPool(
            host=host,
            port=port,
            db=db if db is not None else settings.redis_db,
            password=password or settings.redis_password,
            decode_responses=True,
            max_connections=20,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        _redis_client = Redis(connection_pool=_redis_pool)

    return _redis_client


async def redis_health_check() -> bool:
    """Ping Redis.

    Returns:
        True if the server answered
    """
    try:
        return bool(await get_redis_client().ping())
    except RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False


async def close_redis_client() -> None:
    global _redis_pool, _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        _redis_pool = None
        logger.info("Redis client closed")


class CacheManager:
    """JSON value cache with TTL on top of Redis.

    Cache failures are logged and treated as misses; they never fail the
    request that triggered them.

    Example:
        >>> cache = CacheManager(redis_client, ttl_hours=6)
        >>> await cache.set("exchange_rates:USD", {"EUR": "0.92"})
        >>> await cache.get("exchange_rates:USD")
        {'EUR': '0.92'}
    """

    def __init__(
        self,
        redis_client: Redis,
        ttl_hours: int = 6,
        key_prefix: str = "catalog:"
    ):
        self.redis = redis_client
        self.ttl = timedelta(hours=ttl_hours)
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss or cache error."""
        try:
            data = await self.redis.get(self._make_key(key))
        except RedisError as e:
            logger.error(f"Error retrieving cache {key}: {e}", exc_info=True)
            return None

        if data is None:
            logger.debug(f"Cache miss: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        try:
            return json.loads(data)
        except ValueError:
            logger.warning(f"Discarding undecodable cache entry: {key}")
            return None

    async def set(self, key: str, value: Any, ttl_hours: Optional[int] = None) -> bool:
        """Store a JSON-serializable value with TTL.

        Returns:
            True if successful
        """
        ttl = timedelta(hours=ttl_hours) if ttl_hours else self.ttl
        try:
            await self.redis.setex(self._make_key(key), ttl, json.dumps(value, default=str))
        except RedisError as e:
            logger.error(f"Error setting cache {key}: {e}", exc_info=True)
            return False

        logger.debug(f"Cache set: {key} (TTL: {ttl})")
        return True
