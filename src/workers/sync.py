"""
Background Sync Worker
======================

Keeps this process's ``FleetStore`` in step with writes made by other
processes.

Loop
----
1. Subscribe to the change feed (Redis pub/sub).
2. For every remote notification, reload the named collections from the
   database and swap them into the store (``FleetStore.replace``).
3. If the subscription drops, log it, wait ``RECONNECT_DELAY_SECONDS`` and
   subscribe again.

Between a remote commit and the reload, readers see the previous
snapshot; writers are unaffected because ``OperationsService`` always
reads the database under the writer lock.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.enums import Collection
from src.infrastructure.change_feed import ChangeFeed
from src.infrastructure.database import async_session_factory
from src.infrastructure.repositories import FleetRepository
from src.services.store import FleetStore

logger = logging.getLogger(__name__)

RECONNECT_DELAY_SECONDS = 2.0

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_sync_loop(store: FleetStore, feed: ChangeFeed) -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop(store, feed))
    logger.info("Sync worker started (channel=%s)", feed.channel)


async def stop_sync_loop() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Sync worker stopped")


async def refresh_collections(
    store: FleetStore,
    collections: Iterable[Collection],
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
) -> None:
    """Reload *collections* from the database into *store*."""
    async with session_factory() as session:
        repo = FleetRepository(session)
        reloaded = {c.value: await repo.load_collection(c) for c in collections}
    if reloaded:
        await store.replace(replace(store.snapshot, **reloaded))
        logger.debug("Reloaded %s from the database", sorted(reloaded))


# ── Internals ─────────────────────────────────────────────────────────


async def _loop(store: FleetStore, feed: ChangeFeed) -> None:
    """Listen for remote changes; reconnect after failures until stopped."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            async for collections in feed.listen():
                await refresh_collections(store, collections)
        except Exception:
            logger.exception("Change feed subscription failed")
        # Wait before reconnecting, or until stop is signalled
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=RECONNECT_DELAY_SECONDS
            )
            break
        except asyncio.TimeoutError:
            pass  # reconnect
