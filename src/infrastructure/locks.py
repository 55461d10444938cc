"""
Redis-based distributed lock.

Every fleet operation holds the ``fleet:writer`` lock for its whole
read-modify-write, making the state machine the single logical writer
even with several API processes.

Implementation uses SET NX EX for acquire and a Lua script for
atomic check-and-delete on release.  The TTL bounds how long a crashed
holder can block other writers.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import redis.asyncio as aioredis

from src.domain.errors import LockUnavailable

WRITER_LOCK_KEY = "fleet:writer"

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class DistributedLock:
    def __init__(
        self,
        client: aioredis.Redis,
        key: str,
        ttl_seconds: int = 10,
        wait_seconds: float = 0.0,
        poll_interval: float = 0.05,
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.wait = wait_seconds
        self.poll_interval = poll_interval
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try once. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def acquire_within(self, timeout: float) -> bool:
        """Retry ``acquire`` until it succeeds or *timeout* seconds pass."""
        deadline = time.monotonic() + timeout
        while True:
            if await self.acquire():
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self.poll_interval)

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token)

    # context-manager support
    async def __aenter__(self):
        if not await self.acquire_within(self.wait):
            raise LockUnavailable(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        await self.release()
