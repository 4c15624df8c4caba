"""
Caching utilities for expensive storefront and dashboard queries
Uses Redis (django-redis) when configured, the local-memory cache otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120  # 2 minutes
CATEGORIES_CACHE_TTL = 600  # 10 minutes
DASHBOARD_KPI_CACHE_TTL = 300  # 5 minutes

PRODUCTS_LIST_PREFIX = 'products_list'
CATEGORIES_PREFIX = 'categories_list'
DASHBOARD_PREFIX = 'dashboard_kpis'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.

    django-redis exposes ``delete_pattern``; other backends cannot enumerate
    keys, so the whole cache is cleared instead.
    """
    try:
        if hasattr(cache, 'delete_pattern'):
            deleted = cache.delete_pattern(f"*{pattern}*")
            logger.info(f"Invalidated {deleted} cache keys matching pattern: {pattern}")
        else:
            cache.clear()
            logger.info(f"Cleared cache for pattern: {pattern} (backend has no pattern support)")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def get_cached_products_list(filters_dict):
    """
    Get cached products list with filters
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(PRODUCTS_LIST_PREFIX, **filters_dict)
    return cache.get(cache_key), cache_key


def cache_products_list(cache_key, data, ttl=PRODUCTS_LIST_CACHE_TTL):
    """Cache products list data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached products list: {cache_key}")


def get_cached_categories():
    cache_key = make_cache_key(CATEGORIES_PREFIX)
    return cache.get(cache_key), cache_key


def cache_categories(cache_key, data, ttl=CATEGORIES_CACHE_TTL):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached categories: {cache_key}")


def get_cached_dashboard_kpis(day):
    """Get cached dashboard KPIs for a given day"""
    cache_key = make_cache_key(DASHBOARD_PREFIX, str(day))
    return cache.get(cache_key), cache_key


def cache_dashboard_kpis(cache_key, data, ttl=DASHBOARD_KPI_CACHE_TTL):
    """Cache dashboard KPIs data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard KPIs: {cache_key}")


def invalidate_products_cache():
    """Invalidate all products and categories related cache"""
    invalidate_cache_pattern(PRODUCTS_LIST_PREFIX)
    invalidate_cache_pattern(CATEGORIES_PREFIX)


def invalidate_dashboard_cache():
    """Invalidate dashboard KPIs cache"""
    invalidate_cache_pattern(DASHBOARD_PREFIX)
