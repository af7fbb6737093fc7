"""Access Cache Implementations

Redis-backed decision cache and a pass-through variant for deployments
without Redis.
"""

import json
import logging
from typing import Any, Dict, Optional
from redis.asyncio import Redis
from redis.exceptions import RedisError
from src.app.services.access_cache import AccessCache

logger = logging.getLogger(__name__)


class RedisAccessCache(AccessCache):
    """
    Access decisions cached in Redis with SETEX

    Redis outages degrade to cache misses; the decision is then read from
    the database.
    """

    KEY_PREFIX = "entitlement:access:"

    def __init__(self, redis: Redis, ttl_seconds: int = 10):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, user_id: str) -> str:
        return f"{self.KEY_PREFIX}{user_id}"

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            cached = await self.redis.get(self._key(user_id))
        except RedisError as e:
            logger.warning(f"Access cache read failed for {user_id}: {e}")
            return None

        if cached is None:
            return None
        return json.loads(cached)

    async def set(self, user_id: str, decision: Dict[str, Any]) -> None:
        try:
            await self.redis.setex(self._key(user_id), self.ttl_seconds, json.dumps(decision, default=str))
        except RedisError as e:
            logger.warning(f"Access cache write failed for {user_id}: {e}")

    async def invalidate(self, user_id: str) -> None:
        try:
            await self.redis.delete(self._key(user_id))
        except RedisError as e:
            logger.warning(f"Access cache invalidation failed for {user_id}: {e}")


class NullAccessCache(AccessCache):
    """Never caches; every read goes to the database"""

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        return None

    async def set(self, user_id: str, decision: Dict[str, Any]) -> None:
        return None

    async def invalidate(self, user_id: str) -> None:
        return None
