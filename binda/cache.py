"""
Redis caching for dashboard listings.

Cache misses and Redis outages fall through to the database; the cache is never
the source of truth.
"""

import json
import logging
import time
from typing import Any, Optional

import redis

from .config import CACHE_RETRY_COOLDOWN
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


class Cache:
    """Redis cache wrapper with automatic serialization"""

    def __init__(self, retry_cooldown: int = CACHE_RETRY_COOLDOWN):
        self.redis_client = None
        self.retry_cooldown = retry_cooldown
        self._retry_at = 0.0

    def _get_client(self, force: bool = False):
        """
        Lazy load Redis client. After a failed connection reads and writes skip Redis
        until the cooldown ends; ``force`` ignores the cooldown.
        """
        if self.redis_client is None:
            if not force and time.monotonic() < self._retry_at:
                return None
            try:
                self.redis_client = get_redis_client()
            except redis.RedisError as e:
                logger.warning(f"⚠️ Redis cache unavailable for {self.retry_cooldown}s: {e}")
                self._mark_unavailable()
                return None
        return self.redis_client

    def _mark_unavailable(self):
        self.redis_client = None
        self._retry_at = time.monotonic() + self.retry_cooldown

    def _handle_error(self, action: str, key: str, error: redis.RedisError):
        logger.error(f"❌ Cache {action} error for {key}: {error}")
        if isinstance(error, (redis.ConnectionError, redis.TimeoutError)):
            self._mark_unavailable()

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
        except redis.RedisError as e:
            self._handle_error("get", key, e)
            return None

        if value:
            logger.debug(f"✅ Cache HIT: {key}")
            return json.loads(value)
        logger.debug(f"Cache MISS: {key}")
        return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except redis.RedisError as e:
            self._handle_error("set", key, e)
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'appointments:<tenant>:*')"""
        # Invalidation ignores the cooldown so entries cached before an outage do not outlive a write
        client = self._get_client(force=True)
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except redis.RedisError as e:
            self._handle_error("delete pattern", pattern, e)
            return 0


# Global cache instance
cache = Cache()


def build_appointment_list_key(
    tenant_id: str, status: Optional[str] = None, date: Optional[str] = None
) -> str:
    """Build cache key for a tenant's appointment listing"""
    return f"appointments:{tenant_id}:{status or 'all'}:{date or 'all'}"


def invalidate_appointments_cache(tenant_id: str) -> int:
    """Drop every cached appointment listing for a tenant after a write"""
    return cache.delete_pattern(f"appointments:{tenant_id}:*")
