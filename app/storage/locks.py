"""Write serialisation for read-modify-write cycles"""
import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator, Dict


class RecordLocks:
    """
    Per-record write locks under a collection-wide gate.

    `record(*keys)` serialises writers of the same record while letting
    different records proceed together. Several keys are taken in sorted
    order, so a write that guards both a record and a unique value (such
    as an email) never deadlocks against another. `bulk()` waits for every
    record writer to finish and holds new ones back until the bulk write is
    done, so "replace the whole collection" never interleaves with
    single-record updates.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}
        self._gate = asyncio.Condition()
        self._active_records = 0
        self._bulk_active = False
        self._bulk_waiting = 0

    @asynccontextmanager
    async def record(self, *keys: str) -> AsyncIterator[None]:
        keys = sorted(set(keys))
        async with self._gate:
            await self._gate.wait_for(lambda: not self._bulk_active and self._bulk_waiting == 0)
            self._active_records += 1
        for key in keys:
            self._locks.setdefault(key, asyncio.Lock())
            self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with AsyncExitStack() as stack:
                for key in keys:
                    await stack.enter_async_context(self._locks[key])
                yield
        finally:
            for key in keys:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    del self._holders[key]
                    self._locks.pop(key, None)
            async with self._gate:
                self._active_records -= 1
                self._gate.notify_all()

    @asynccontextmanager
    async def bulk(self) -> AsyncIterator[None]:
        async with self._gate:
            self._bulk_waiting += 1
            try:
                await self._gate.wait_for(lambda: not self._bulk_active and self._active_records == 0)
            finally:
                self._bulk_waiting -= 1
            self._bulk_active = True
        try:
            yield
        finally:
            async with self._gate:
                self._bulk_active = False
                self._gate.notify_all()
