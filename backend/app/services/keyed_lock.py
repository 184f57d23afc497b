"""
Plateful Backend — Per-Key Async Locks
========================================

What:  An asyncio.Lock per key (restaurant id), created on first use.
Why:   Votes on the same restaurant must run their read-modify-write one at a
       time, while votes on different restaurants proceed in parallel.
How:   A dict of key → [lock, holders]. The entry is dropped once the last
       holder or waiter leaves, so the table only holds ids with traffic.

Scope:
    Serializes coroutines inside one process (uvicorn worker). Across
    workers/instances the restaurant row's version column catches the race
    and VotingService retries; see voting_service.py.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List


class KeyedLock:
    def __init__(self):
        # key -> [lock, number of coroutines holding or waiting]
        self._entries: Dict[str, List] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = [asyncio.Lock(), 0]
            self._entries[key] = entry
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
