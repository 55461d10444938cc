"""
Change notifications over Redis pub/sub.

After a fleet operation commits, the process publishes which collections
changed on ``settings.change_channel``.  Every other process runs the sync
worker, which listens here and reloads those collections into its own
``FleetStore``.  Messages carry the publisher's ``origin`` so a process
ignores its own notifications.

Message format (JSON)::

    {"origin": "<uuid>", "collections": ["trips", "vehicles"]}
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import AsyncIterator

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.domain.entities import FleetSnapshot, WriteIntent
from src.domain.enums import Collection

logger = logging.getLogger(__name__)


class ChangeFeed:
    def __init__(self, client: aioredis.Redis, channel: str):
        self.redis = client
        self.channel = channel
        self.origin = str(uuid.uuid4())

    async def publish(self, collections) -> None:
        payload = json.dumps(
            {
                "origin": self.origin,
                "collections": sorted(Collection(c).value for c in collections),
            }
        )
        await self.redis.publish(self.channel, payload)

    async def on_commit(
        self, snapshot: FleetSnapshot, intents: tuple[WriteIntent, ...]
    ) -> None:
        """``FleetStore`` listener: announce local commits, skip reloads."""
        if not intents:
            return
        # a committed write never fails on notification
        try:
            await self.publish({intent.collection for intent in intents})
        except RedisError:
            logger.exception(
                "Change notification for %d write(s) was not published", len(intents)
            )

    async def listen(self) -> AsyncIterator[set[Collection]]:
        """Yield the set of changed collections for each remote change."""
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self.channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                collections = self.parse(message["data"])
                if collections:
                    yield collections
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()

    def parse(self, data) -> set[Collection]:
        try:
            payload = json.loads(data)
            if payload.get("origin") == self.origin:
                return set()
            return {Collection(name) for name in payload.get("collections", [])}
        except (TypeError, ValueError, AttributeError):
            logger.warning("Ignoring malformed change notification: %r", data)
            return set()
