"""
Operations service: runs one fleet operation end to end.

1. Take the Redis writer lock (single logical writer across processes).
2. Load a fresh snapshot from the database; preconditions are never
   evaluated against a cached snapshot, so a second concurrent "dispatch"
   sees the first one's committed result.
3. Compute the transition with the pure state machine.
4. Apply its write intents and commit in one transaction; on failure roll
   back and raise ``ConsistencyError``.
5. Commit the transition to the process's ``FleetStore``, which notifies
   its listeners (change feed, ...).
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import redis.asyncio as aioredis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.domain.entities import Principal
from src.domain.errors import ConsistencyError
from src.domain.fleet import Transition
from src.infrastructure.locks import WRITER_LOCK_KEY, DistributedLock
from src.infrastructure.repositories import FleetRepository
from src.services.store import FleetStore

logger = logging.getLogger(__name__)


class OperationsService:
    def __init__(
        self,
        session: AsyncSession,
        redis: aioredis.Redis,
        store: FleetStore,
        principal: Optional[Principal] = None,
    ):
        self.session = session
        self.redis = redis
        self.store = store
        self.principal = principal

    @property
    def actor(self) -> str:
        if self.principal is None:
            return "anonymous"
        return f"{self.principal.id} ({self.principal.role.value})"

    def _lock(self) -> DistributedLock:
        return DistributedLock(
            self.redis,
            WRITER_LOCK_KEY,
            ttl_seconds=settings.writer_lock_ttl_seconds,
            wait_seconds=settings.writer_lock_wait_seconds,
        )

    async def run(
        self, operation: Callable[..., Transition], *args, **kwargs
    ) -> Transition:
        name = operation.__name__
        async with self._lock():
            repo = FleetRepository(self.session)
            snapshot = await repo.load_snapshot()
            transition = operation(snapshot, *args, **kwargs)
            if not transition.applied:
                return transition

            try:
                await repo.apply(transition.intents)
                await self.session.commit()
            except SQLAlchemyError as exc:
                await self.session.rollback()
                logger.error(
                    "%s by %s rolled back after a failed write", name, self.actor
                )
                raise ConsistencyError(f"{name} was rolled back: {exc}") from exc

            logger.info(
                "%s by %s applied %d write(s) to %s %s",
                name,
                self.actor,
                len(transition.intents),
                transition.collection.value if transition.collection else "-",
                transition.entity_id,
            )
            # local store updates in the same order as the database
            await self.store.commit(transition)
        return transition
