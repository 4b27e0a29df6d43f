"""
Backend implementations for core interfaces.
"""

from faculty_authz.implementations.rate_store.memory import MemoryRateStore
from faculty_authz.implementations.rate_store.redis import RedisRateStore

__all__ = [
    "MemoryRateStore",
    "RedisRateStore",
]
