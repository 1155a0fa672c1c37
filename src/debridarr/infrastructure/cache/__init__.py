"""Cache Infrastructure - Backend-Implementations."""

from .cache_factory import CacheBackend, create_cache
from .diskcache_adapter import DiskcacheAdapter
from .memory_adapter import MemoryAdapter
from .redis_adapter import RedisAdapter
from .ttl_cache import TtlCache

__all__ = [
    "CacheBackend",
    "DiskcacheAdapter",
    "MemoryAdapter",
    "RedisAdapter",
    "TtlCache",
    "create_cache",
]
