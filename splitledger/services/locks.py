import asyncio
from contextlib import asynccontextmanager
from typing import Dict


class GroupLocks:
    """
    One asyncio.Lock per group; serializes every mutation of a group.

    Keys must be normalized group ids (str of the ObjectId), otherwise two
    spellings of one id would get two locks. A lock is dropped as soon as
    nobody holds or waits for it.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, group_id):
        key = str(group_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


group_locks = GroupLocks()
