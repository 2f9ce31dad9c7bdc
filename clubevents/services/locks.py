"""Per-event serialization of check-then-act sequences inside one process."""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class EventLockRegistry:
    """Hands out one ``asyncio.Lock`` per event id.

    Locks are dropped once nobody holds a reference to them. Cross-process
    exclusion comes from the event row lock taken inside the transaction.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, event_id: int) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[event_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, event_id: int) -> AsyncIterator[None]:
        lock = self.lock_for(event_id)
        async with lock:
            yield
