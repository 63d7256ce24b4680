"""Per-key asyncio lock registry."""

import asyncio
from collections.abc import AsyncIterator, Hashable, Iterable
from contextlib import AsyncExitStack, asynccontextmanager


class KeyedLock:
    """Serializes writers that target the same key.

    Locks are created on first use and dropped once no task holds or waits
    for them, so the registry does not grow with the number of keys ever
    seen. Multiple keys are always acquired in sorted order to avoid
    deadlocks between overlapping multi-key holders.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        """Hold the lock for one key."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @asynccontextmanager
    async def hold_many(self, keys: Iterable[Hashable]) -> AsyncIterator[None]:
        """Hold the locks for several keys (duplicates collapse)."""
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(self.hold(key))
            yield

    def is_locked(self, key: Hashable) -> bool:
        """Check whether some task currently holds the key."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()
