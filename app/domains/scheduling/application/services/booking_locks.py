"""
Booking Lock Registry

Per (doctor, date) critical sections for the validate-then-commit path.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import date

logger = logging.getLogger(__name__)

LockKey = tuple[int, date]


class _LockEntry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.holders = 0


class BookingLockRegistry:
    """
    Keyed asyncio locks, created on demand and dropped once nobody holds or
    waits for them. Reads never take a lock.

    Example:
        ```python
        locks = BookingLockRegistry()
        async with locks.hold(doctor_id, day):
            conflicts = detector.check(...)
            await repository.add(appointment)
        ```
    """

    def __init__(self) -> None:
        self._entries: dict[LockKey, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @asynccontextmanager
    async def hold(self, doctor_id: int, day: date) -> AsyncIterator[None]:
        """Hold the lock for one (doctor, date) key."""
        key = (doctor_id, day)
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _LockEntry()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._entries.pop(key, None)

    @asynccontextmanager
    async def hold_many(self, keys: list[LockKey]) -> AsyncIterator[None]:
        """Hold several keys, acquired in sorted order to avoid deadlocks."""
        async with AsyncExitStack() as stack:
            for doctor_id, day in sorted(set(keys)):
                await stack.enter_async_context(self.hold(doctor_id, day))
            yield
