"""
Redis read-through cache helpers (graceful fallback if unavailable).
"""

import json
import logging

from config import Config

logger = logging.getLogger(__name__)

LEADERBOARD_KEY = "hof:leaderboard"

_redis_client = None


def get_redis():
    """Lazy-initialize and return the Redis client, or None if unavailable."""
    global _redis_client
    if _redis_client is not None:
        return _redis_client
    if not Config.REDIS_URL:
        return None
    try:
        import redis

        _redis_client = redis.Redis.from_url(Config.REDIS_URL, decode_responses=True)
        _redis_client.ping()
        logger.info("✓ Redis connected — caching is enabled")
        return _redis_client
    except Exception:
        logger.warning("⚠ Redis unavailable — running without cache")
        _redis_client = None
        return None


def cache_get(key: str):
    """Read a JSON value from Redis; returns None on miss or if Redis is down."""
    r = get_redis()
    if r is None:
        return None
    try:
        data = r.get(key)
        return json.loads(data) if data else None
    except Exception:
        return None


def cache_set(key: str, value, ttl: int = Config.LEADERBOARD_CACHE_TTL):
    """Write a JSON value to Redis with a TTL (seconds)."""
    r = get_redis()
    if r is None:
        return
    try:
        r.setex(key, ttl, json.dumps(value, default=str))
    except Exception:
        logger.debug("cache_set failed for %s", key)


def cache_invalidate(*keys: str):
    """Delete one or more cache keys."""
    r = get_redis()
    if r is None:
        return
    try:
        r.delete(*keys)
    except Exception:
        logger.debug("cache_invalidate failed for %s", keys)
