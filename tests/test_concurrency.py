"""
Concurrency safety tests.

Demonstrates:
1. Every operation runs under the ``fleet:writer`` lock and reads a fresh
   snapshot from the database, so a second dispatch sees the first.
2. A held lock surfaces as ``LockUnavailable`` and nothing is written.
3. A failed write rolls back every entity of the transition.
4. Distributed lock acquire / release semantics.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from src.config import settings
from src.domain import fleet
from src.domain.entities import FleetSnapshot, Principal, WriteIntent
from src.domain.enums import Collection, TripStatus, UserRole, VehicleStatus, WriteAction
from src.domain.errors import ConsistencyError, InvalidStateTransition, LockUnavailable
from src.infrastructure.change_feed import ChangeFeed
from src.infrastructure.locks import WRITER_LOCK_KEY, DistributedLock
from src.infrastructure.repositories import FleetRepository
from src.services.operations import OperationsService
from src.services.store import FleetStore
from tests.conftest import TODAY, make_driver, make_vehicle, trip_payload


def insert(collection: Collection, record) -> WriteIntent:
    return WriteIntent(collection, WriteAction.CREATE, record.id, record)


@pytest_asyncio.fixture
async def seeded(session_factory):
    """Persist V1 / D1 and a Draft trip T1; return a store loaded from the DB."""
    snapshot = FleetSnapshot(vehicles=(make_vehicle(),), drivers=(make_driver(),))
    transition = fleet.create_trip(snapshot, trip_payload(), today=TODAY, trip_id="T1")
    async with session_factory() as session:
        repo = FleetRepository(session)
        await repo.apply(
            [
                insert(Collection.VEHICLES, make_vehicle()),
                insert(Collection.DRIVERS, make_driver()),
                *transition.intents,
            ]
        )
        await session.commit()
        return FleetStore(await repo.load_snapshot())


class TestOperationsService:
    @pytest.mark.asyncio
    async def test_commits_to_database_and_store(self, session_factory, seeded, mock_redis):
        async with session_factory() as session:
            ops = OperationsService(session, mock_redis, seeded)
            transition = await ops.run(fleet.dispatch_trip, "T1")

        assert transition.applied
        assert seeded.snapshot.get(Collection.TRIPS, "T1").status == TripStatus.DISPATCHED

        async with session_factory() as session:
            persisted = await FleetRepository(session).load_snapshot()
        assert persisted.get(Collection.TRIPS, "T1").status == TripStatus.DISPATCHED
        assert persisted.get(Collection.VEHICLES, "V1").status == VehicleStatus.ON_TRIP

        mock_redis.set.assert_awaited_once()
        assert mock_redis.set.await_args.args[0] == f"lock:{WRITER_LOCK_KEY}"
        mock_redis.eval.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_dispatch_sees_first(self, session_factory, seeded, mock_redis):
        async with session_factory() as session:
            await OperationsService(session, mock_redis, seeded).run(
                fleet.dispatch_trip, "T1"
            )

        # A second process whose cache still shows T1 as Draft
        stale = FleetStore(FleetSnapshot())
        async with session_factory() as session:
            with pytest.raises(InvalidStateTransition):
                await OperationsService(session, mock_redis, stale).run(
                    fleet.dispatch_trip, "T1"
                )

    @pytest.mark.asyncio
    async def test_concurrent_dispatches_only_one_wins(self, session_factory, seeded):
        """Two writers share one lock key; only one dispatch can succeed."""
        held = asyncio.Lock()

        async def set_nx(key, token, nx, ex):
            if held.locked():
                return False
            await held.acquire()
            return True

        async def release(script, numkeys, key, token):
            held.release()
            return 1

        redis = AsyncMock()
        redis.set = AsyncMock(side_effect=set_nx)
        redis.eval = AsyncMock(side_effect=release)

        async def dispatch():
            async with session_factory() as session:
                return await OperationsService(session, redis, seeded).run(
                    fleet.dispatch_trip, "T1"
                )

        results = await asyncio.gather(dispatch(), dispatch(), return_exceptions=True)
        applied = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, InvalidStateTransition)]
        assert len(applied) == 1
        assert len(rejected) == 1

    @pytest.mark.asyncio
    async def test_lock_unavailable(self, session_factory, seeded, monkeypatch):
        monkeypatch.setattr(settings, "writer_lock_wait_seconds", 0.0)
        redis = AsyncMock()
        redis.set = AsyncMock(return_value=False)
        before = seeded.snapshot

        async with session_factory() as session:
            with pytest.raises(LockUnavailable):
                await OperationsService(session, redis, seeded).run(
                    fleet.dispatch_trip, "T1"
                )
        assert seeded.snapshot is before
        redis.eval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_write_rolls_back_everything(self, session_factory, seeded, mock_redis):
        def dispatch_and_duplicate(snapshot, trip_id):
            # Dispatch, then try to insert a second V1 in the same transaction
            transition = fleet.dispatch_trip(snapshot, trip_id)
            duplicate = insert(Collection.VEHICLES, make_vehicle())
            return fleet.Transition(
                transition.snapshot,
                transition.intents + (duplicate,),
                transition.collection,
                transition.entity_id,
            )

        before = seeded.snapshot
        async with session_factory() as session:
            with pytest.raises(ConsistencyError) as exc_info:
                await OperationsService(session, mock_redis, seeded).run(
                    dispatch_and_duplicate, "T1"
                )
        assert exc_info.value.__cause__ is not None
        assert seeded.snapshot is before
        mock_redis.eval.assert_awaited_once()  # lock still released

        async with session_factory() as session:
            persisted = await FleetRepository(session).load_snapshot()
        assert persisted.get(Collection.TRIPS, "T1").status == TripStatus.DRAFT
        assert persisted.get(Collection.VEHICLES, "V1").status == VehicleStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_noop_writes_nothing(self, session_factory, seeded, mock_redis):
        listener = AsyncMock()
        seeded.subscribe(listener)
        async with session_factory() as session:
            transition = await OperationsService(session, mock_redis, seeded).run(
                fleet.dispatch_trip, "missing"
            )
        assert not transition.applied
        listener.assert_not_awaited()

    def test_actor_names_principal(self, mock_redis):
        ops = OperationsService(
            AsyncMock(), mock_redis, FleetStore(), Principal("u-7", "a@b.c", UserRole.MANAGER)
        )
        assert ops.actor == "u-7 (Manager)"
        assert OperationsService(AsyncMock(), mock_redis, FleetStore()).actor == "anonymous"

    @pytest.mark.asyncio
    async def test_store_commits_before_lock_release(self, session_factory, seeded, mock_redis):
        releases_seen = []
        seeded.subscribe(lambda snapshot, intents: releases_seen.append(mock_redis.eval.await_count))

        async with session_factory() as session:
            await OperationsService(session, mock_redis, seeded).run(fleet.dispatch_trip, "T1")

        assert releases_seen == [0]
        mock_redis.eval.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publish_failure_keeps_committed_write(
        self, session_factory, seeded, mock_redis
    ):
        feed = ChangeFeed(mock_redis, "fleet:changes")
        seeded.subscribe(feed.on_commit)
        mock_redis.publish.side_effect = RedisConnectionError("redis down")

        async with session_factory() as session:
            transition = await OperationsService(session, mock_redis, seeded).run(
                fleet.dispatch_trip, "T1"
            )

        assert transition.applied
        mock_redis.publish.assert_awaited_once()
        assert seeded.snapshot.get(Collection.TRIPS, "T1").status == TripStatus.DISPATCHED
        async with session_factory() as session:
            persisted = await FleetRepository(session).load_snapshot()
        assert persisted.get(Collection.TRIPS, "T1").status == TripStatus.DISPATCHED


class TestDistributedLock:
    """Tests the Redis distributed lock logic (mocked Redis)."""

    @pytest.mark.asyncio
    async def test_acquire_succeeds(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=True)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        assert await lock.acquire() is True
        mock_redis.set.assert_awaited_once_with(
            "lock:test-key", lock.token, nx=True, ex=10
        )

    @pytest.mark.asyncio
    async def test_acquire_fails_if_held(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=False)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        assert await lock.acquire() is False

    @pytest.mark.asyncio
    async def test_acquire_within_retries_until_free(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(side_effect=[False, False, True])

        lock = DistributedLock(mock_redis, "test-key", poll_interval=0)
        assert await lock.acquire_within(1.0) is True
        assert mock_redis.set.await_count == 3

    @pytest.mark.asyncio
    async def test_release_calls_eval(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=True)
        mock_redis.eval = AsyncMock(return_value=1)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        await lock.acquire()
        await lock.release()

        mock_redis.eval.assert_called_once()

    @pytest.mark.asyncio
    async def test_context_manager_acquire_fail_raises(self):
        mock_redis = AsyncMock()
        mock_redis.set = AsyncMock(return_value=False)

        lock = DistributedLock(mock_redis, "test-key", ttl_seconds=10)
        with pytest.raises(LockUnavailable, match="Could not acquire lock"):
            async with lock:
                pass
