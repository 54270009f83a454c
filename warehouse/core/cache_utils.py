"""
Caching utilities for the aggregate stats queries
Uses Redis when configured; every helper degrades to the default cache backend
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
FOG_OF_WAR_CACHE_TTL = 30
ASIS_OVERVIEW_CACHE_TTL = 60
ITEM_COUNT_CACHE_TTL = 60
SCAN_COUNTS_CACHE_TTL = 30
DATA_QUALITY_CACHE_TTL = 300  # 5 minutes

STATS_VERSION_PREFIX = "stats_version"
STATS_KEY_PREFIX = "location_stats"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def get_stats_version(location_id):
    """Current stats version for a location (bumped on every invalidation)"""
    version_key = f"{STATS_VERSION_PREFIX}:{location_id}"
    version = cache.get(version_key)
    if version is None:
        version = 1
        cache.set(version_key, version, None)
    return version


def bump_stats_version(location_id):
    """Invalidate every cached stat for a location by moving its version"""
    version_key = f"{STATS_VERSION_PREFIX}:{location_id}"
    try:
        cache.incr(version_key)
    except ValueError:
        # Key missing or evicted
        cache.set(version_key, 2, None)
    logger.debug(f"Bumped stats version for location {location_id}")


def make_location_stats_key(name, location_id, *args):
    """Cache key for a per-location stat, tied to the location's stats version"""
    version = get_stats_version(location_id)
    return make_cache_key(f"{STATS_KEY_PREFIX}:{location_id}:{name}", version, *args)


def cached_location_stat(name, cache_ttl=60):
    """
    Decorator caching a per-location stats function

    The wrapped function must take the Location as its first argument.

    Usage:
        @cached_location_stat("fog_of_war", cache_ttl=30)
        def get_fog_of_war(location):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(location, *args, **kwargs):
            if location is None:
                return func(location, *args, **kwargs)

            cache_key = make_location_stats_key(name, location.id, *args, *sorted(kwargs.items()))
            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {name}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {name}: {cache_key}")
            result = func(location, *args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result

        wrapper.uncached = func
        return wrapper
    return decorator


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Note: This requires Redis with SCAN command support
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.debug(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def invalidate_location_stats(location_id):
    """Invalidate all cached stats for a location"""
    bump_stats_version(location_id)
    # Reclaim the stale keys right away when running on Redis
    invalidate_cache_pattern(f"{STATS_KEY_PREFIX}:{location_id}:")
    logger.info(f"Invalidated stats cache for location {location_id}")
