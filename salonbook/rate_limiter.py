"""
Hybrid in-memory + Redis rate limiting for the public booking endpoints
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # seconds between Redis syncs
MEMORY_CACHE_CLEANUP_INTERVAL = 60
last_cleanup_time = 0


def get_redis_client() -> redis.Redis:
    """
    Get or create the shared Redis client.
    REDIS_URL wins over the individual REDIS_HOST/PORT/... settings.
    """
    global redis_client

    if redis_client is None:
        common = {
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "socket_timeout": 10,
            "retry_on_timeout": True,
            "health_check_interval": 30,
            "max_connections": 20,
        }
        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            client = redis.from_url(redis_url, **common)
            target = redis_url.split("@")[-1]
        else:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                **common,
            )
            target = f"{redis_host}:{redis_port}"

        try:
            client.ping()
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis at {target}: {e}")
            raise
        logger.info(f"Redis connected successfully ({target})")
        redis_client = client

    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)
        ]
        for k in expired_keys:
            del memory_cache[k]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """Count a request against `key` and report whether it is allowed.

    Counts are kept in memory and written through to Redis at most every
    MEMORY_CACHE_SYNC_INTERVAL seconds, so several workers converge on a
    shared count without a Redis round-trip per request.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())
    cleanup_expired_cache()

    with cache_lock:
        entry = memory_cache.get(key)
        if entry is None:
            entry = {"count": 0, "reset_time": current_time + window_seconds, "last_redis_sync": 0}
            try:
                redis_count = client.get(key)
                redis_ttl = client.ttl(key)
                if redis_count and redis_ttl > 0:
                    entry = {
                        "count": int(redis_count),
                        "reset_time": current_time + redis_ttl,
                        "last_redis_sync": current_time,
                    }
            except Exception as e:
                logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")
            memory_cache[key] = entry

        if current_time >= entry["reset_time"]:
            entry["count"] = 0
            entry["reset_time"] = current_time + window_seconds
            entry["last_redis_sync"] = 0

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        if current_time - entry["last_redis_sync"] >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, entry["count"], ex=window_seconds)
                entry["last_redis_sync"] = current_time
            except Exception as e:
                logger.warning(f"⚠️ Failed to sync to Redis: {e}")

        ttl = max(0, entry["reset_time"] - current_time)
        return is_allowed, entry["count"], ttl


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
):
    """Per-client-IP rate limit; fails closed when Redis is unreachable"""
    try:
        client = get_redis_client()

        client_ip = request.client.host if request.client else "unknown"
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            client_ip = forwarded.split(",")[0].strip()
        key = f"{key_prefix}:{client_ip}"

        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)
        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                },
                headers={"Retry-After": str(ttl)},
            )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Rate limiting error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        coupon_rate_limit = create_rate_limiter(limit=20, window_seconds=60, key_prefix="coupon_validate")

        @router.post("/validate")
        async def validate(data: CouponValidateRequest, _: None = Depends(coupon_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter
