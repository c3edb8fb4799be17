"""Per-key async cache that coalesces concurrent loads.

The first caller for a key starts the load as a task; every caller, concurrent
or later, awaits that same task. A key is therefore loaded at most once for
the lifetime of the cache. Entries are never invalidated.
"""

import asyncio
from typing import Awaitable, Callable, Dict, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class CoalescingCache(Generic[K, V]):
    """Cache mapping keys to shared pending-or-resolved load tasks.

    Attributes:
        loader: Coroutine function producing the value for a key.
    """

    def __init__(self, loader: Callable[[K], Awaitable[V]]):
        self.loader = loader
        self._tasks: Dict[K, "asyncio.Task[V]"] = {}

    async def get(self, key: K) -> V:
        """Return the value for ``key``, loading it on first access."""
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(self.loader(key))
            self._tasks[key] = task
        # A cancelled waiter must not cancel the load other waiters share.
        return await asyncio.shield(task)
