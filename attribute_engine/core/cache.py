from typing import Any, Optional
import json
import logging
import redis
from attribute_engine.core.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    decode_responses=True
) if settings.CACHE_ENABLED else None

def set_cache(key: str, value: Any, expire: int = settings.CACHE_EXPIRE_SECONDS) -> bool:
    """
    Set a cache value with expiration time
    """
    if redis_client is None:
        return False
    try:
        redis_client.setex(key, expire, json.dumps(value))
        return True
    except (redis.RedisError, TypeError, ValueError) as e:
        logger.warning("Cache write failed for %s: %s", key, e)
        return False

def get_cache(key: str) -> Optional[Any]:
    """
    Get a cached value
    """
    if redis_client is None:
        return None
    try:
        data = redis_client.get(key)
        return json.loads(data) if data else None
    except (redis.RedisError, ValueError) as e:
        logger.warning("Cache read failed for %s: %s", key, e)
        return None

def clear_cache_pattern(pattern: str) -> bool:
    """
    Clear all cache keys matching a pattern
    """
    if redis_client is None:
        return False
    try:
        keys = redis_client.keys(pattern)
        if keys:
            redis_client.delete(*keys)
        return True
    except redis.RedisError as e:
        logger.warning("Cache clear failed for %s: %s", pattern, e)
        return False
