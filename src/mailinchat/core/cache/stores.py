from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Any, Callable

from mailinchat.core.errors import CacheError
from mailinchat.core.protocols import KeyValueCache

if TYPE_CHECKING:
    from redis.asyncio import Redis


class RedisKeyValueCache(KeyValueCache):
    """JSON values in Redis, expiry set with ``SET ... EX``."""

    def __init__(self, redis_client: Redis):
        self._redis = redis_client

    @classmethod
    def from_url(cls, url: str) -> RedisKeyValueCache:
        from redis.asyncio import Redis

        return cls(Redis.from_url(url))

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            raw = await self._redis.get(key)
        except Exception as exc:
            raise CacheError(f"Redis GET failed for {key}") from exc
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    async def set(self, key: str, value: dict[str, Any], expire_seconds: int) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        try:
            await self._redis.set(key, payload, ex=expire_seconds)
        except Exception as exc:
            raise CacheError(f"Redis SET failed for {key}") from exc

    async def close(self) -> None:
        await self._redis.aclose()


class MemoryKeyValueCache(KeyValueCache):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return json.loads(payload)

    async def set(self, key: str, value: dict[str, Any], expire_seconds: int) -> None:
        # kept serialized, every hit returns a fresh copy
        self._entries[key] = (self._clock() + expire_seconds, json.dumps(value))

    async def close(self) -> None:
        self._entries.clear()
