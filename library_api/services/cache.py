"""
Redis Caching Service

This module provides caching utilities using Redis.

Features:
- Connection pooling to Redis
- Generic cache get/set functions
- Read-through helper (cache_remember)
- Versioned keys for O(1) invalidation
- Automatic JSON serialization/deserialization
- Graceful degradation when Redis is unavailable

Versioned Keys
==============
Every cache key embeds a version counter stored in Redis:

    authors:version        -> 3
    authors:v3:page=2:...  -> cached list page

    author:7:version       -> 2
    author:7:v2:fields=*   -> cached record

A write increments the counter with INCR (atomic on the server), so every
key built from the old number is simply never read again and expires by
TTL. Nothing has to be enumerated or deleted.

Cache Strategy:
- List pages: 5 minute TTL
- Single records and author book pages: 1 hour TTL
"""

import json
import logging
from collections.abc import Callable
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

from library_api.config import get_settings

logger = logging.getLogger(__name__)

# =============================================================================
# Redis Connection
# =============================================================================

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create a Redis client connection.

    Uses a module-level singleton to maintain a single connection pool.
    Returns None if Redis is unavailable, allowing graceful degradation.

    Returns:
        Redis client instance or None if connection fails
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    settings = get_settings()

    try:
        _redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=True,  # Return strings instead of bytes
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        _redis_client.ping()
        logger.info("Successfully connected to Redis")
        return _redis_client
    except RedisError as e:
        logger.warning(f"Failed to connect to Redis: {e}. Caching disabled.")
        _redis_client = None
        return None


def close_redis_connection() -> None:
    """Close the Redis connection on shutdown."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
        logger.info("Redis connection closed")


# =============================================================================
# Cache Key Generation
# =============================================================================

def make_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Generate a consistent cache key from prefix and arguments.

    Examples:
        make_cache_key("author", 1) -> "author:1"
        make_cache_key("authors", "v3", page=1, per_page=10) -> "authors:v3:page=1:per_page=10"

    Args:
        prefix: Cache key prefix (e.g., "author", "authors")
        *args: Positional arguments to include in key
        **kwargs: Keyword arguments to include in key (sorted for consistency)

    Returns:
        Cache key string
    """
    parts = [prefix]

    for arg in args:
        if arg is not None:
            parts.append(str(arg))

    # Sorted so the same parameters always give the same key
    for key in sorted(kwargs.keys()):
        value = kwargs[key]
        if value is not None:
            parts.append(f"{key}={value}")

    return ":".join(parts)


# =============================================================================
# Core Cache Operations
# =============================================================================

def cache_get(key: str) -> Optional[Any]:
    """
    Get a value from the cache.

    Returns:
        Cached value (deserialized from JSON) or None if not found/error
    """
    client = get_redis_client()
    if client is None:
        return None

    try:
        value = client.get(key)
        if value is not None:
            logger.debug(f"Cache HIT: {key}")
            return json.loads(value)
        logger.debug(f"Cache MISS: {key}")
        return None
    except RedisError as e:
        logger.warning(f"Cache get error for {key}: {e}")
        return None
    except json.JSONDecodeError as e:
        logger.warning(f"Cache JSON decode error for {key}: {e}")
        return None


def cache_set(key: str, value: Any, ttl: int) -> bool:
    """
    Set a value in the cache with a TTL.

    Args:
        key: Cache key
        value: Value to cache (will be JSON serialized)
        ttl: Time-to-live in seconds

    Returns:
        True if successfully cached, False otherwise
    """
    client = get_redis_client()
    if client is None:
        return False

    try:
        serialized = json.dumps(value, default=str)  # default=str handles dates
        client.setex(key, ttl, serialized)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return True
    except RedisError as e:
        logger.warning(f"Cache set error for {key}: {e}")
        return False
    except (TypeError, ValueError) as e:
        logger.warning(f"Cache serialization error for {key}: {e}")
        return False


def cache_remember(key: str, ttl: int, producer: Callable[[], Any]) -> Any:
    """
    Read-through lookup.

    Returns the cached value for key if present; otherwise calls producer,
    stores its result for ttl seconds and returns it. Exceptions raised by
    producer propagate and nothing is cached.

    Usage:
        page = cache_remember(key, 300, lambda: build_page(db, params))
    """
    cached = cache_get(key)
    if cached is not None:
        return cached

    value = producer()
    cache_set(key, value, ttl)
    return value


# =============================================================================
# Version Counters
# =============================================================================

def get_cache_version(*parts: Any) -> int:
    """
    Read the version counter for a resource or record.

    The counter is created with value 1 on first use. SET NX never
    overwrites an existing value, so a concurrent bump is not lost.

    Examples:
        get_cache_version("authors")   # list pages of all authors
        get_cache_version("author", 7)  # every projection of author 7

    Returns:
        Current version, or 1 when Redis is unavailable
    """
    client = get_redis_client()
    if client is None:
        return 1

    key = make_cache_key(*map(str, parts), "version")
    try:
        client.set(key, 1, nx=True)
        value = client.get(key)
        return int(value) if value is not None else 1
    except (RedisError, ValueError) as e:
        logger.warning(f"Cache version read error for {key}: {e}")
        return 1


def bump_cache_version(*parts: Any) -> Optional[int]:
    """
    Invalidate every key built from the current version by incrementing it.

    The counter is initialized before INCR so that a missing counter moves
    to 2, never back to 1 where old entries might still live.

    Returns:
        The new version, or None when Redis is unavailable
    """
    client = get_redis_client()
    if client is None:
        return None

    key = make_cache_key(*map(str, parts), "version")
    try:
        client.set(key, 1, nx=True)
        version = client.incr(key)
        logger.debug(f"Cache VERSION BUMP: {key} -> {version}")
        return version
    except RedisError as e:
        logger.warning(f"Cache version bump error for {key}: {e}")
        return None


# =============================================================================
# Cache Statistics (for monitoring)
# =============================================================================

def get_cache_stats() -> dict:
    """
    Get cache statistics for monitoring.

    Returns:
        Dictionary with cache statistics, or a status-only dict if unavailable
    """
    client = get_redis_client()
    if client is None:
        return {"status": "disconnected"}

    try:
        info = client.info("stats")
        return {
            "status": "connected",
            "hits": info.get("keyspace_hits", 0),
            "misses": info.get("keyspace_misses", 0),
            "keys": client.dbsize(),
        }
    except RedisError:
        return {"status": "error"}
