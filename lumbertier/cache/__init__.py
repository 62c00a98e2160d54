"""
Process-local freshness layer: TTL cache plus read-through resolution.
"""

from .ttl_cache import TTLCache
from .resolver import ReadThroughResolver, cache_key, normalize_search_term

__all__ = [
    'TTLCache',
    'ReadThroughResolver',
    'cache_key',
    'normalize_search_term',
]
