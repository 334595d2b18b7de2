"""
Redis-backed fixed-window rate limiting.

Used on the public booking endpoints (slot locking, bookings) where anonymous
callers can otherwise hold slots hostage by locking them in a loop.
"""

import logging
import os
import time
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import SLOT_LOCK_RATE_LIMIT

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client.
    REDIS_URL wins over the individual REDIS_HOST / REDIS_PORT / ... settings.
    """
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")

        if redis_url:
            masked_url = f"{redis_url.split(':')[0]}:****@{redis_url.split('@')[-1]}" if "@" in redis_url else "****"
            logger.info(f"📡 Using Redis URL connection: {masked_url}")
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        else:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            redis_ssl = os.getenv("REDIS_SSL", "false").lower() == "true"
            logger.info(f"📡 Using Redis at {redis_host}:{redis_port} (SSL: {redis_ssl})")
            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=redis_ssl,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )

        try:
            client.ping()
        except redis.RedisError as e:
            logger.error(f"❌ Failed to connect to Redis: {e}")
            raise
        logger.info("Redis connected successfully")
        redis_client = client

    return redis_client


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """
    Count one request against ``key`` in the current window.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    pipe = client.pipeline()
    pipe.incr(key)
    pipe.ttl(key)
    count, ttl = pipe.execute()

    if ttl is None or ttl < 0:
        client.expire(key, window_seconds)
        ttl = window_seconds

    return count <= limit, count, ttl


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
):
    """
    FastAPI dependency for per-IP rate limiting.

    Fails closed: when Redis is unreachable the request is denied with 503.
    """
    key = f"{key_prefix}:{client_ip(request)}"

    try:
        is_allowed, current_count, ttl = check_rate_limit(
            key, limit, window_seconds, get_redis_client()
        )
    except redis.RedisError as e:
        logger.error(f"❌ Rate limiting error: {e}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
            headers={"Retry-After": str(ttl)},
        )

    request.state.rate_limit_remaining = limit - current_count
    request.state.rate_limit_reset = int(time.time()) + ttl


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        lock_rate_limit = create_rate_limiter(limit=30, window_seconds=60, key_prefix="slot_lock")

        @router.post("/slots/lock")
        async def lock_slot(data: LockRequest, _: None = Depends(lock_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter


# Shared limiters for the public booking flow
slot_lock_rate_limit = create_rate_limiter(
    limit=SLOT_LOCK_RATE_LIMIT, window_seconds=60, key_prefix="slot_lock"
)
booking_rate_limit = create_rate_limiter(limit=10, window_seconds=60, key_prefix="booking")
