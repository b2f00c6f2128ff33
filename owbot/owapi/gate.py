"""Concurrency limits for requests against the OWAPI."""

import asyncio
import contextlib
from collections.abc import AsyncIterator


class AdmissionGate:
    """Limits the number of requests in flight against the API.

    A permit must be held while making a request, so that no more than
    ``size`` requests are sent at a time regardless of how many chat commands
    are waiting. The OWAPI is a free third-party service, so the default is
    a single request at a time. Waiters are admitted in FIFO order.
    """

    def __init__(self, size: int = 1):
        if size < 1:
            raise ValueError(f"gate size must be at least 1, got {size}")
        self.size = size
        self._semaphore = asyncio.Semaphore(size)
        self._holders = 0

    @property
    def in_use(self) -> int:
        """Number of permits currently held."""
        return self._holders

    @contextlib.asynccontextmanager
    async def permit(self) -> AsyncIterator[None]:
        """Hold a permit for the duration of the ``async with`` block.

        Waiting is cancellable; the permit is returned on every exit path.
        Must not be nested within the same task.
        """
        await self._semaphore.acquire()
        self._holders += 1
        try:
            yield
        finally:
            self._holders -= 1
            self._semaphore.release()


class KeyedLock:
    """One :class:`asyncio.Lock` per key, dropped once nobody uses it."""

    def __init__(self):
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextlib.asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)
