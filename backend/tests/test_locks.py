"""
Tests for per-seller mutation locks.
"""

import asyncio

import pytest

from inventory.locks import is_locked, tenant_lock

SELLER_ID = "00000000-0000-0000-0000-000000000001"
OTHER_SELLER_ID = "00000000-0000-0000-0000-000000000002"


@pytest.mark.asyncio
class TestTenantLock:
    async def test_same_seller_is_serialized(self):
        order: list[str] = []

        async def worker(name: str):
            async with tenant_lock(SELLER_ID):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-start", "a-end", "b-start", "b-end"]

    async def test_other_sellers_not_blocked(self):
        async with tenant_lock(SELLER_ID):
            assert is_locked(SELLER_ID)
            assert not is_locked(OTHER_SELLER_ID)
            async with tenant_lock(OTHER_SELLER_ID):
                assert is_locked(OTHER_SELLER_ID)
        assert not is_locked(SELLER_ID)

    async def test_idle_locks_are_dropped(self):
        import gc

        from inventory import locks

        async with tenant_lock(SELLER_ID):
            assert SELLER_ID in locks._locks
        gc.collect()
        assert SELLER_ID not in locks._locks
