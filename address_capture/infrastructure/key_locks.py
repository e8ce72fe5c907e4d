"""Per-Key Locks — serialize read-modify-write cycles on one storage key.

Invariants:
    - One asyncio.Lock per (event loop, key): concurrent writers to the same key queue up
    - Different keys never block each other
    - Locks are never shared across event loops (asyncio.Lock binds to the loop that waits on it)

Design Decisions:
    - WeakKeyDictionary keyed by loop: a closed loop's locks are dropped with it,
      so test suites that run one loop per test never see a foreign-loop lock
    - Process-local only: multi-worker deployments need the backend's own atomicity
"""

import asyncio
from weakref import WeakKeyDictionary


class KeyLocks:
    """Registry handing out the lock that guards a storage key."""

    def __init__(self):
        self._locks: WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[str, asyncio.Lock]
        ] = WeakKeyDictionary()

    def for_key(self, key: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        per_loop = self._locks.setdefault(loop, {})
        lock = per_loop.get(key)
        if lock is None:
            lock = per_loop[key] = asyncio.Lock()
        return lock


# Shared by every AddressStore in the process
key_locks = KeyLocks()
