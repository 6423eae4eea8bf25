from .stores import MemoryKeyValueCache, RedisKeyValueCache

__all__ = ["MemoryKeyValueCache", "RedisKeyValueCache"]
