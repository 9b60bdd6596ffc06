import json
import redis
import os
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)


class RedisClient:
    """Thin wrapper over redis-py. Every failure is logged and treated as a cache miss."""

    def __init__(
        self,
        host=None,
        port=None,
        password=None,
        db=0,
        decode_responses=True,
        socket_timeout=1.0,
    ):
        self.client = redis.Redis(
            host=host or os.getenv("REDIS_HOST", "localhost"),
            port=int(port or os.getenv("REDIS_PORT", 6379)),
            password=password or os.getenv("REDIS_PASSWORD"),
            db=db,
            decode_responses=decode_responses,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    @classmethod
    def from_env(cls) -> Optional["RedisClient"]:
        """ None when REDIS_HOST is not set, so callers skip the cache entirely. """
        if not os.getenv("REDIS_HOST"):
            logger.info(" REDIS_HOST not set, question count cache disabled")
            return None
        return cls()

    def set(self, key: str, value: Union[str, int, dict, list], ttl: int = 3600) -> None:
        try:
            if not isinstance(value, str):
                value = json.dumps(value)
            self.client.set(key, value, ex=ttl)
            logger.debug(f" Cached key {key} with TTL {ttl}")
        except (redis.RedisError, TypeError) as e:
            logger.error(f" Failed to cache key {key}: {e}")

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            logger.error(f" Failed to retrieve key {key}: {e}")
            return None

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as e:
            logger.warning(f" Failed to delete cache key {key}: {e}")
