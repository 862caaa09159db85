"""
Redis run lock
Keeps monitor runs from overlapping across processes (ARQ workers, standalone
scheduler). Without Redis the lock degrades to always-acquired and callers
rely on their in-process guard.
"""

import logging
from typing import Optional

import redis
from redis.lock import Lock

from .config import AUTO_COMPLETE_LOCK_KEY, AUTO_COMPLETE_LOCK_TTL_SECONDS, REDIS_URL

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """Get or create the Redis client; None when REDIS_URL is not configured"""
    global redis_client

    if redis_client is None and REDIS_URL:
        logger.info("🔄 Initializing Redis connection for run locking...")
        redis_client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
        )

    return redis_client


class RunLock:
    """
    Non-blocking redis-py Lock with a TTL.

    Release is the library's token-checked script, so a holder whose TTL ran
    out cannot delete a lock another process has since taken.
    """

    def __init__(
        self,
        key: str = AUTO_COMPLETE_LOCK_KEY,
        ttl_seconds: int = AUTO_COMPLETE_LOCK_TTL_SECONDS,
        client: Optional[redis.Redis] = None,
    ):
        self.key = key
        self.ttl_seconds = ttl_seconds
        self.client = client
        self._lock: Optional[Lock] = None

    def _get_client(self) -> Optional[redis.Redis]:
        if self.client is None:
            try:
                self.client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Redis unavailable for run lock: {e}")
                return None
        return self.client

    def acquire(self) -> bool:
        client = self._get_client()
        if not client:
            return True

        lock = client.lock(self.key, timeout=self.ttl_seconds, blocking=False)
        try:
            acquired = lock.acquire()
        except redis.RedisError as e:
            logger.warning(f"⚠️ Run lock check failed, continuing without it: {e}")
            return True

        if not acquired:
            logger.info(f"🔒 Run lock {self.key} is held by another process")
            return False

        self._lock = lock
        return True

    def release(self) -> None:
        if self._lock is None:
            return

        lock, self._lock = self._lock, None
        try:
            lock.release()
        except redis.RedisError as e:
            # LockNotOwnedError once the TTL expired; the key is already free or someone else's
            logger.warning(f"⚠️ Failed to release run lock {self.key}: {e}")
