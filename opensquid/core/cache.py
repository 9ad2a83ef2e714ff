import json
import logging
from typing import Any, Optional

import redis

from opensquid.core.config import settings

logger = logging.getLogger(__name__)

LEADERBOARD_KEY = "opensquid:leaderboard"


class RedisCache:
    """JSON cache over Redis. Failures are logged and behave like misses."""

    def __init__(self, url: str, enabled: bool = True):
        self.enabled = enabled
        self.redis: Optional[redis.Redis] = None
        if enabled:
            self.redis = redis.Redis.from_url(
                url,
                decode_responses=True,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
            )

    def get(self, key: str, default: Any = None) -> Any:
        if not self.enabled:
            return default
        try:
            value = self.redis.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache get error: {e}")
            return default
        if value is None:
            return default
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return value

    def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        try:
            return bool(self.redis.set(key, json.dumps(value, default=str), ex=expire))
        except redis.RedisError as e:
            logger.warning(f"Cache set error: {e}")
            return False

    def delete(self, *keys: str) -> int:
        if not self.enabled:
            return 0
        try:
            return self.redis.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Cache delete error: {e}")
            return 0

    def ping(self) -> bool:
        if not self.enabled:
            return False
        try:
            return bool(self.redis.ping())
        except redis.RedisError:
            return False


cache = RedisCache(settings.REDIS_URL, enabled=settings.CACHE_ENABLED)


def invalidate_leaderboard() -> None:
    cache.delete(LEADERBOARD_KEY)
