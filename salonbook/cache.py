"""
Redis caching utilities for tenant work settings and booking drafts
"""
import json
import logging
from typing import Any, Optional

from .config import BOOKING_DRAFT_TTL_SECONDS, WORK_SETTINGS_CACHE_TTL
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


class Cache:
    """Redis cache wrapper with automatic serialization"""

    def __init__(self):
        self.redis_client = None

    def _get_client(self):
        """Lazy load Redis client"""
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(key)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False


# Global cache instance
cache = Cache()


def get_work_settings_cached(tenant_id: str) -> Optional[dict]:
    return cache.get(f"work_settings:{tenant_id}")


def set_work_settings_cached(tenant_id: str, settings: dict) -> bool:
    return cache.set(f"work_settings:{tenant_id}", settings, WORK_SETTINGS_CACHE_TTL)


def invalidate_work_settings_cache(tenant_id: str) -> bool:
    """Invalidate work settings cache when an admin updates them"""
    return cache.delete(f"work_settings:{tenant_id}")


def build_draft_key(tenant_id: str, user_id: str) -> str:
    return f"booking_draft:{tenant_id}:{user_id}"


def get_booking_draft(tenant_id: str, user_id: str) -> Optional[dict]:
    return cache.get(build_draft_key(tenant_id, user_id))


def save_booking_draft(tenant_id: str, user_id: str, draft: dict) -> bool:
    """Drafts expire after BOOKING_DRAFT_TTL_SECONDS (60 minutes by default)"""
    return cache.set(build_draft_key(tenant_id, user_id), draft, BOOKING_DRAFT_TTL_SECONDS)


def clear_booking_draft(tenant_id: str, user_id: str) -> bool:
    return cache.delete(build_draft_key(tenant_id, user_id))
