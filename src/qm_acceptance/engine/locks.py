"""Per-request mutual exclusion shared by acceptance and expiry.

In-process asyncio locks serialize work on one request inside a worker;
across workers the request row lock (SELECT … FOR UPDATE) and the
compare-and-swap close give the same guarantee.

A request's lock exists only while someone holds or waits for it, so the
registry stays bounded by in-flight work rather than by requests ever seen.
"""
import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class RequestLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}  # holders + waiters per request

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def lock_for(self, request_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(request_id)
        if lock is None:
            lock = self._locks[request_id] = asyncio.Lock()
        self._holders[request_id] = self._holders.get(request_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[request_id] -= 1
            if self._holders[request_id] == 0:
                del self._holders[request_id]
                del self._locks[request_id]
