"""
In-process fleet state container.

Holds the current ``FleetSnapshot`` for readers (dashboard, reports) and
notifies subscribers whenever it changes.  The store never computes
transitions against storage itself: ``OperationsService`` commits a
transition only after its writes are durable, and the sync worker calls
``replace`` when another process changed the fleet.

Listeners receive ``(snapshot, intents)``; ``intents`` is empty for a
wholesale ``replace``.  A listener may be a plain function or a coroutine
function.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from src.domain.entities import FleetSnapshot, WriteIntent
from src.domain.fleet import Transition

logger = logging.getLogger(__name__)

Listener = Callable[
    [FleetSnapshot, tuple[WriteIntent, ...]], Union[None, Awaitable[None]]
]


class FleetStore:
    def __init__(self, snapshot: Optional[FleetSnapshot] = None):
        self._snapshot = snapshot or FleetSnapshot()
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> FleetSnapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def apply(self, operation: Callable[..., Transition], *args, **kwargs) -> Transition:
        """Run *operation* against the current snapshot and commit the result.

        Validation errors propagate and leave the store untouched.
        """
        transition = operation(self._snapshot, *args, **kwargs)
        await self.commit(transition)
        return transition

    async def commit(self, transition: Transition) -> None:
        if not transition.applied:
            return
        self._snapshot = transition.snapshot
        logger.debug(
            "Store committed %d write(s) to %s",
            len(transition.intents),
            sorted(c.value for c in transition.collections),
        )
        await self._notify(transition.intents)

    async def replace(self, snapshot: FleetSnapshot) -> None:
        self._snapshot = snapshot
        await self._notify(())

    async def _notify(self, intents: tuple[WriteIntent, ...]) -> None:
        for listener in list(self._listeners):
            result = listener(self._snapshot, intents)
            if inspect.isawaitable(result):
                await result
