# /search_gateway/services/cache_service.py

import json
import logging
from typing import Any, Optional
import redis.asyncio as redis

from search_gateway.config.settings import settings
from search_gateway.utils.circuit_breaker import CircuitBreaker
from search_gateway.utils.metrics import cache_operations

# Redis-backed key/value store used to persist canonical-query mappings.
# Failures are logged and counted, then re-raised to the caller.

logger = logging.getLogger(__name__)


class CacheService:
    def __init__(self, redis_url: str):
        self.redis_pool = redis.ConnectionPool.from_url(redis_url, max_connections=20)
        self.redis = redis.Redis(connection_pool=self.redis_pool)
        self.circuit_breaker = CircuitBreaker("redis")

    async def get(self, key: str) -> Optional[str]:
        try:
            result = await self.circuit_breaker.call(self.redis.get, key)
        except Exception as e:
            cache_operations.labels(operation="get", status="error").inc()
            logger.warning(f"Cache get failed for key {key}: {e}")
            raise
        cache_operations.labels(operation="get", status="hit" if result else "miss").inc()
        return result.decode("utf-8") if result else None

    async def set(self, key: str, value: str, ttl: int = 300):
        try:
            await self.circuit_breaker.call(self.redis.setex, key, ttl, value)
        except Exception as e:
            cache_operations.labels(operation="set", status="error").inc()
            logger.warning(f"Cache set failed for key {key}: {e}")
            raise
        cache_operations.labels(operation="set", status="success").inc()

    async def get_json(self, key: str) -> Optional[Any]:
        cached_value = await self.get(key)
        if cached_value is None:
            return None
        try:
            return json.loads(cached_value)
        except json.JSONDecodeError:
            logger.warning(f"Discarding non-JSON cache entry for key {key}")
            return None

    async def set_json(self, key: str, value: Any, ttl: int = 300):
        await self.set(key, json.dumps(value, default=str), ttl)

    async def close(self):
        await self.redis.aclose()
        await self.redis_pool.disconnect()


# Globally accessible instance
cache_service = CacheService(settings.redis_url)
