"""
Caching utilities for expensive aggregate queries
Uses Redis (django-redis) when configured, the local-memory cache otherwise
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
DASHBOARD_SUMMARY_CACHE_TTL = 300  # 5 minutes
ASSISTANT_CONTEXT_CACHE_TTL = 60  # 1 minute

DASHBOARD_SUMMARY_PREFIX = "dashboard_summary"
ASSISTANT_CONTEXT_PREFIX = "assistant_context"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=60, key_prefix="assistant_context")
        def build_context():
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def get_cached_dashboard_summary():
    """
    Get cached dashboard summary
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(DASHBOARD_SUMMARY_PREFIX)
    return cache.get(cache_key), cache_key


def cache_dashboard_summary(cache_key, data, ttl=DASHBOARD_SUMMARY_CACHE_TTL):
    """Cache dashboard summary data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard summary: {cache_key}")


def invalidate_dashboard_cache():
    """Invalidate the dashboard summary and the assistant context snapshot"""
    try:
        cache.delete_many([
            make_cache_key(DASHBOARD_SUMMARY_PREFIX),
            make_cache_key(ASSISTANT_CONTEXT_PREFIX),
        ])
        logger.debug("Invalidated dashboard cache")
    except Exception as e:
        logger.warning(f"Could not invalidate dashboard cache: {str(e)}")
