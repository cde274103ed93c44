"""Redis caching utilities for DesiCargo.

Booking listings are the hot read path of every dashboard page, so they are
cached per query shape (the effective branch id) and dropped wholesale
whenever a booking or a manifest changes.
"""

import functools
import hashlib
import json
import logging
from datetime import date, datetime
from typing import Callable, Optional

import redis.asyncio as redis

from desicargo.config import settings

logger = logging.getLogger(__name__)

# Global Redis connection pool
_redis_client: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get or create Redis client connection."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
        )
    return _redis_client


async def close_redis():
    """Close Redis connection (call on app shutdown)."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def cache_key(**kwargs) -> str:
    """Deterministic hash of the keyword arguments that shape a query."""
    if not kwargs:
        return "default"

    key_data = json.dumps(kwargs, sort_keys=True)
    return hashlib.md5(key_data.encode()).hexdigest()


def _serialize(result):
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json")
    if isinstance(result, list) and result and hasattr(result[0], "model_dump"):
        return [item.model_dump(mode="json") for item in result]
    return result


def cached(
    ttl: int = 300,
    prefix: str = "cache",
    key_builder: Optional[Callable] = None,
):
    """Decorator to cache async function results in Redis.

    Only keyword arguments of simple types (and dates) take part in the key;
    positional arguments are assumed to be injected dependencies such as the
    database session. Cached hits come back as plain JSON structures.

    Example:
        @cached(ttl=120, prefix="bookings")
        async def list_bookings(db: AsyncSession, *, branch_id: str | None = None):
            ...

    Cache keys: {prefix}:{function_name}:{kwargs_hash}
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if key_builder:
                key = f"{prefix}:{key_builder(*args, **kwargs)}"
            else:
                cache_kwargs = {}
                for k, v in kwargs.items():
                    if k.startswith("_"):
                        continue
                    if isinstance(v, (int, str, bool, float, type(None))):
                        cache_kwargs[k] = v
                    elif isinstance(v, (date, datetime)):
                        cache_kwargs[k] = v.isoformat()
                key = f"{prefix}:{func.__name__}:{cache_key(**cache_kwargs)}"

            try:
                redis_client = await get_redis()
                cached_value = await redis_client.get(key)
            except redis.RedisError as e:
                logger.warning(f"Redis error (falling back to uncached): {e}")
                return await func(*args, **kwargs)

            if cached_value:
                logger.debug(f"Cache HIT: {key}")
                return json.loads(cached_value)

            logger.debug(f"Cache MISS: {key}")
            result = await func(*args, **kwargs)

            try:
                await redis_client.setex(key, ttl, json.dumps(_serialize(result)))
            except redis.RedisError as e:
                logger.warning(f"Failed to store {key} in cache: {e}")

            return result

        return wrapper

    return decorator


async def invalidate_cache(pattern: str):
    """Invalidate cache keys matching a pattern.

    Example:
        await invalidate_cache("bookings:*")
    """
    try:
        redis_client = await get_redis()
        keys = []
        async for key in redis_client.scan_iter(match=pattern):
            keys.append(key)

        if keys:
            await redis_client.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching {pattern}")
    except redis.RedisError as e:
        logger.warning(f"Failed to invalidate cache: {e}")


# Session info key holding patterns to drop once the transaction commits
PENDING_INVALIDATIONS = "cache_invalidations"


def invalidate_on_commit(db, pattern: str) -> None:
    """Queue a pattern on the session; `get_db` drops it after a successful commit.

    Invalidating before the commit would let a concurrent read re-cache the
    pre-write rows.
    """
    db.info.setdefault(PENDING_INVALIDATIONS, set()).add(pattern)


async def flush_invalidations(db) -> None:
    for pattern in sorted(db.info.pop(PENDING_INVALIDATIONS, ())):
        await invalidate_cache(pattern)


def discard_invalidations(db) -> None:
    db.info.pop(PENDING_INVALIDATIONS, None)


async def clear_all_cache():
    """Clear ALL cache keys (use with caution)."""
    try:
        redis_client = await get_redis()
        await redis_client.flushdb()
        logger.info("Cleared all cache")
    except redis.RedisError as e:
        logger.warning(f"Failed to clear cache: {e}")
