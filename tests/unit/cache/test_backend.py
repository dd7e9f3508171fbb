"""Unit tests for cache backends."""

import pytest

from socratic_resilience.cache import InMemoryCacheBackend


class TestInMemoryCacheBackend:

    @pytest.mark.asyncio
    async def test_set_get_delete(self):
        backend = InMemoryCacheBackend()
        await backend.set("k", {"answer": 42})

        assert await backend.get("k") == {"answer": 42}
        assert await backend.size() == 1
        assert await backend.delete("k")
        assert not await backend.delete("k")
        assert await backend.get("k") is None

    @pytest.mark.asyncio
    async def test_expired_keys_are_dropped(self):
        backend = InMemoryCacheBackend()
        await backend.set("k", "v", ttl=-1)

        assert await backend.get("k") is None
        assert await backend.size() == 0

    @pytest.mark.asyncio
    async def test_clear(self):
        backend = InMemoryCacheBackend()
        await backend.set("a", 1, ttl=60)
        await backend.set("b", 2)
        await backend.clear()
        assert await backend.size() == 0
