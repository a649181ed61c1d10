import logging

import redis

from learnsphere.core.config import settings

logger = logging.getLogger(__name__)

_redis_client = None


def get_redis_client():
    """Shared synchronous Redis client, or None when Redis is disabled."""
    global _redis_client
    if not settings.redis_enabled:
        return None
    if _redis_client is None:
        try:
            _redis_client = redis.Redis.from_url(
                settings.redis_url, decode_responses=True
            )
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis client unavailable: {e}. Using in-memory fallback.")
            return None
    return _redis_client
