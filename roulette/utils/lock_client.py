"""Lock client abstraction - Redis or in-memory fallback."""
import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
from redis.exceptions import LockError

from roulette.utils.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class LockClient:
    """Named async locks - uses Redis if configured, else in-memory.

    Redis locks are shared by every server instance pointing at the same
    Redis. In-memory locks only serialize coroutines inside this process.
    """

    def __init__(self, redis_url: Optional[str] = None):
        self.backend = "memory"
        self.redis = None
        # Entries disappear once no coroutine holds or awaits the lock.
        self._memory_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

        if redis_url:
            self.redis = aioredis.from_url(redis_url)
            self.backend = "redis"
            logger.info("Using Redis for locks")
        else:
            logger.info("Using in-memory locks (Redis URL not provided)")

    async def close(self) -> None:
        """Close the Redis connection pool, if any."""
        if self.redis is not None:
            await self.redis.aclose()
            logger.info("Closed Redis lock connection")

    @asynccontextmanager
    async def lock(self, name: str, timeout: float = 10) -> AsyncIterator[None]:
        """Hold the named lock for the duration of the block.

        Raises:
            LockTimeoutError: If the lock is not acquired within ``timeout`` seconds
        """
        if self.backend == "redis":
            redis_lock = self.redis.lock(f"lock:{name}", timeout=timeout, blocking_timeout=timeout)
            if not await redis_lock.acquire():
                logger.warning(f"Timed out acquiring redis lock {name}")
                raise LockTimeoutError()
            try:
                yield
            finally:
                try:
                    await redis_lock.release()
                except LockError:
                    logger.warning(f"Redis lock {name} expired before release")
            return

        memory_lock = self._memory_locks.get(name)
        if memory_lock is None:
            memory_lock = asyncio.Lock()
            self._memory_locks[name] = memory_lock

        try:
            await asyncio.wait_for(memory_lock.acquire(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.warning(f"Timed out acquiring lock {name}")
            raise LockTimeoutError() from exc
        try:
            yield
        finally:
            memory_lock.release()
