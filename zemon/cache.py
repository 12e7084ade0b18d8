"""
Cache Module

Best-effort JSON cache in front of the database. Every operation swallows
Redis and decode failures: a broken cache only makes requests slower, it
never makes them fail.
"""
import json
import logging
from typing import Any, List, Optional, Sequence

import redis
from redis.exceptions import RedisError

from zemon.config import DEFAULT_CACHE_EXPIRATION

logger = logging.getLogger(__name__)


class CacheClient:
    """
    Thin wrapper over a Redis connection storing JSON-encoded values.
    """

    def __init__(self, redis_client: redis.Redis, default_ttl: int = DEFAULT_CACHE_EXPIRATION):
        self._redis = redis_client
        self.default_ttl = default_ttl

    @classmethod
    def from_url(cls, redis_url: str, default_ttl: int = DEFAULT_CACHE_EXPIRATION) -> "CacheClient":
        client = redis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        return cls(client, default_ttl=default_ttl)

    def ping(self) -> bool:
        try:
            return bool(self._redis.ping())
        except RedisError as e:
            logger.warning(f"Redis unavailable, serving from the database only: {e}")
            return False

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self._redis.get(key)
            if data is None:
                logger.info(f"Cache MISS: {key}")
                return None
            logger.info(f"Cache HIT: {key}")
            return json.loads(data)
        except (RedisError, ValueError) as e:
            logger.error(f"Redis get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = ttl or self.default_ttl
        try:
            self._redis.setex(key, ttl, json.dumps(value))
            logger.info(f"Cache SET: {key} (expires in {ttl}s)")
        except (RedisError, TypeError, ValueError) as e:
            logger.error(f"Redis set error for {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
            logger.info(f"Cache DELETE: {key}")
        except RedisError as e:
            logger.error(f"Redis delete error for {key}: {e}")

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern (e.g. 'events:all:*').

        Keys are enumerated with SCAN rather than KEYS so a large keyspace
        does not block the server, then removed in a single DEL.

        Returns:
            Number of keys removed
        """
        try:
            keys = list(self._redis.scan_iter(match=pattern, count=100))
            if not keys:
                return 0
            removed = self._redis.delete(*keys)
            logger.info(f"Cache CLEAR: {pattern} ({len(keys)} keys)")
            return removed
        except RedisError as e:
            logger.error(f"Redis clear error for {pattern}: {e}")
            return 0

    def get_many(self, keys: Sequence[str]) -> List[Optional[Any]]:
        """Batched get; misses and undecodable entries come back as None."""
        if not keys:
            return []
        try:
            pipe = self._redis.pipeline()
            for key in keys:
                pipe.get(key)
            raw_values = pipe.execute()
        except RedisError as e:
            logger.error(f"Redis multi get error: {e}")
            return [None] * len(keys)

        values = []
        for key, raw in zip(keys, raw_values):
            if raw is None:
                values.append(None)
                continue
            try:
                values.append(json.loads(raw))
            except ValueError:
                logger.error(f"Corrupt cache entry for {key}")
                values.append(None)
        hits = sum(1 for value in values if value is not None)
        logger.info(f"Cache MULTI GET: {len(keys)} keys ({hits} hits)")
        return values
