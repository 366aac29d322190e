"""Per-part mutual exclusion.

Inventory for a part is read once and then patched several times; two
interleaved read-modify-write sequences on the same part would hand out the
same container twice. Everything that rewrites a part's containers holds that
part's lock for the whole sequence.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class PartLockRegistry:
    """One asyncio.Lock per part number, created on first use."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock_for(self, part_number: str) -> asyncio.Lock:
        lock = self._locks.get(part_number)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[part_number] = lock
        return lock

    @asynccontextmanager
    async def hold(self, part_number: str) -> AsyncIterator[None]:
        async with self.lock_for(part_number):
            yield

    def is_locked(self, part_number: str) -> bool:
        lock = self._locks.get(part_number)
        return lock is not None and lock.locked()
