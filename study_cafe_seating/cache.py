"""
Redis connection handling and distributed locks for seat mutations.
"""

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Optional
from uuid import uuid4
import asyncio

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError
from redis.exceptions import ConnectionError as RedisConnectionError

from .config import get_settings
from .utils.exceptions import ConcurrencyError, ServiceUnavailableError

logger = logging.getLogger(__name__)


class CacheKeyBuilder:
    """Helper class for building consistent lock keys."""

    @staticmethod
    def seat_lock(seat_id: str) -> str:
        """Build key for per-seat mutation locks."""
        return f"lock:study-cafe:seat:{seat_id}"

    @staticmethod
    def student_lock(center_id: str, student_id: str) -> str:
        """Build key for per-student reservation locks."""
        return f"lock:study-cafe:student:{center_id}:{student_id}"


class RedisCache:
    """Redis connection manager."""

    def __init__(self):
        self.client: Optional[Redis] = None
        self.pool: Optional[redis.ConnectionPool] = None

    async def initialize(self) -> None:
        """Initialize Redis connection pool and client."""
        settings = get_settings()

        try:
            self.pool = redis.ConnectionPool.from_url(
                settings.redis_url,
                max_connections=settings.redis_max_connections,
                retry_on_timeout=True,
                socket_keepalive=True,
                health_check_interval=30
            )
            self.client = Redis(connection_pool=self.pool)

            # Test connection
            await self.client.ping()
            logger.info("Redis initialized successfully")

        except RedisConnectionError as e:
            logger.error("Failed to connect to Redis: %s", e)
            raise

    async def close(self) -> None:
        """Close Redis connections."""
        if self.client:
            await self.client.close()
            self.client = None
        if self.pool:
            await self.pool.disconnect()
            self.pool = None
        logger.info("Redis connections closed")


class DistributedLock:
    """A Redis lock owned by one holder, released only by that holder."""

    # Delete the key only while it still carries our token
    RELEASE_SCRIPT = """
    if redis.call("GET", KEYS[1]) == ARGV[1] then
        return redis.call("DEL", KEYS[1])
    end
    return 0
    """

    def __init__(self, cache: RedisCache, key: str, timeout: int = 30, wait: Optional[float] = None):
        """
        Initialize distributed lock.

        Args:
            cache: Redis cache instance
            key: Lock key
            timeout: Lock expiry in seconds
            wait: Maximum time to wait for the lock (seconds), None waits forever
        """
        self.cache = cache
        self.key = key
        self.timeout = timeout
        self.wait = wait
        self.token = uuid4().hex

    async def acquire(self, blocking: bool = True, wait: Optional[float] = None) -> bool:
        """
        Acquire the distributed lock.

        Args:
            blocking: Whether to poll until the lock is free
            wait: Maximum time to poll (seconds)

        Returns:
            True if lock acquired, False if it is held elsewhere

        Raises:
            ServiceUnavailableError: If Redis is not connected or fails
        """
        if not self.cache.client:
            raise ServiceUnavailableError("redis", "Redis is not connected", retry_after=5)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + wait if wait else None

        while True:
            try:
                # Expiring key so a crashed holder cannot keep the seat forever
                if await self.cache.client.set(self.key, self.token, nx=True, ex=self.timeout):
                    return True
            except RedisError as e:
                logger.warning("Failed to acquire lock %s: %s", self.key, e)
                raise ServiceUnavailableError("redis", "Could not reach the lock store", retry_after=5) from e

            if not blocking or (deadline is not None and loop.time() >= deadline):
                return False
            await asyncio.sleep(0.05)

    async def release(self) -> bool:
        """
        Release the distributed lock.

        Returns:
            True if this holder still owned the lock
        """
        if not self.cache.client:
            return False

        try:
            released = await self.cache.client.eval(self.RELEASE_SCRIPT, 1, self.key, self.token)
            return bool(released)
        except RedisError as e:
            logger.warning("Failed to release lock %s: %s", self.key, e)
            return False

    async def __aenter__(self):
        if not await self.acquire(wait=self.wait):
            raise ConcurrencyError(f"Could not acquire lock {self.key}, please retry")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()


# Global cache instance
cache = RedisCache()


async def init_cache() -> None:
    """Initialize the global cache instance."""
    await cache.initialize()


async def close_cache() -> None:
    """Close the global cache instance."""
    await cache.close()


def get_cache() -> RedisCache:
    """Get the global cache instance."""
    return cache


@asynccontextmanager
async def distributed_lock(*keys: str):
    """
    Hold distributed locks on every key for the duration of the block.

    Keys are acquired in sorted order so two callers locking the same pair
    of keys cannot deadlock. When distributed locks are disabled the block
    runs unguarded and the database constraints alone serialize writers.

    Usage:
        async with distributed_lock(CacheKeyBuilder.seat_lock(seat_id)):
            # Critical section
            pass
    """
    settings = get_settings()
    if not settings.enable_distributed_locks:
        yield None
        return

    async with AsyncExitStack() as stack:
        locks = []
        for key in sorted(set(keys)):
            lock = DistributedLock(
                cache,
                key,
                timeout=settings.lock_timeout_seconds,
                wait=settings.lock_wait_seconds,
            )
            locks.append(await stack.enter_async_context(lock))
        yield locks
