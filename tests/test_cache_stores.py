from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from mailinchat.core.cache import MemoryKeyValueCache, RedisKeyValueCache
from mailinchat.core.errors import CacheError


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_memory_cache_expires_entries() -> None:
    clock = FakeClock()
    cache = MemoryKeyValueCache(clock=clock)
    value = {"mimeType": "text/plain", "filename": "a.txt", "base64": "YQ=="}

    await cache.set("attachment:1", value, expire_seconds=60)
    clock.now += 59
    assert await cache.get("attachment:1") == value

    clock.now += 1
    assert await cache.get("attachment:1") is None


@pytest.mark.asyncio
async def test_memory_cache_returns_copies() -> None:
    cache = MemoryKeyValueCache()
    await cache.set("k", {"base64": "AAAA"}, expire_seconds=60)

    first = await cache.get("k")
    first["base64"] = "changed"

    assert await cache.get("k") == {"base64": "AAAA"}


@pytest.mark.asyncio
async def test_redis_cache_sets_json_with_expiry() -> None:
    redis_client = MagicMock()
    redis_client.set = AsyncMock(return_value=True)
    cache = RedisKeyValueCache(redis_client)
    value = {"mimeType": "image/png", "filename": "logo.png", "base64": "iVBORw0="}

    await cache.set("attachment:ATT-1", value, expire_seconds=604800)

    args, kwargs = redis_client.set.call_args
    assert args[0] == "attachment:ATT-1"
    assert json.loads(args[1]) == value
    assert kwargs == {"ex": 604800}


@pytest.mark.asyncio
async def test_redis_cache_get_hit_and_miss() -> None:
    redis_client = MagicMock()
    redis_client.get = AsyncMock(side_effect=[b'{"base64": "AAAA"}', None])
    cache = RedisKeyValueCache(redis_client)

    assert await cache.get("attachment:1") == {"base64": "AAAA"}
    assert await cache.get("attachment:2") is None


@pytest.mark.asyncio
async def test_redis_failures_are_wrapped() -> None:
    redis_client = MagicMock()
    redis_client.get = AsyncMock(side_effect=ConnectionError("refused"))
    cache = RedisKeyValueCache(redis_client)

    with pytest.raises(CacheError):
        await cache.get("attachment:1")
