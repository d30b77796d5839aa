"""
Caching utilities for expensive dashboard queries
Uses Redis (django-redis) when configured, local memory otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
DASHBOARD_KPI_CACHE_TTL = 300  # 5 minutes


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def dashboard_cache_key(company_id):
    return make_cache_key("dashboard_kpis", company_id)


def get_cached_dashboard_kpis(company_id):
    """Returns tuple: (cached_data, cache_key)"""
    cache_key = dashboard_cache_key(company_id)
    return cache.get(cache_key), cache_key


def cache_dashboard_kpis(cache_key, data, ttl=DASHBOARD_KPI_CACHE_TTL):
    """Cache dashboard KPIs data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard KPIs: {cache_key}")


def invalidate_dashboard_cache(company_id):
    """Invalidate the dashboard KPIs of one company"""
    if not company_id:
        return
    try:
        cache.delete(dashboard_cache_key(company_id))
        logger.debug(f"Invalidated dashboard cache for company {company_id}")
    except Exception as e:
        logger.warning(f"Could not invalidate dashboard cache for company {company_id}: {str(e)}")
