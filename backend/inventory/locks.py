"""
Per-tenant mutual exclusion for product mutations within one process.

Uploads, reconcile-now, manual edits and settings updates all run under
``tenant_lock(seller_id)`` so one seller's products are never mutated by two
coroutines at once. Different sellers proceed concurrently.
"""

import asyncio
import uuid
import weakref
from contextlib import asynccontextmanager

# Entries disappear once no coroutine holds or waits on the lock
_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _key(seller_id: uuid.UUID | str) -> str:
    return str(seller_id)


def _lock_for(seller_id: uuid.UUID | str) -> asyncio.Lock:
    key = _key(seller_id)
    lock = _locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _locks[key] = lock
    return lock


@asynccontextmanager
async def tenant_lock(seller_id: uuid.UUID | str):
    lock = _lock_for(seller_id)
    async with lock:
        yield


def is_locked(seller_id: uuid.UUID | str) -> bool:
    lock = _locks.get(_key(seller_id))
    return lock is not None and lock.locked()
