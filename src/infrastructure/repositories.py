"""
Repository Pattern -- abstracts DB access so the state machine stays DB-agnostic.

``FleetRepository`` receives an ``AsyncSession`` (unit-of-work) and offers
exactly what the persistence collaborator needs: load the full snapshot
(or one collection of it) and apply a transition's write intents by id.
Committing is left to the caller so a multi-entity transition lands in a
single transaction.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    DriverModel,
    ExpenseModel,
    MaintenanceLogModel,
    TripModel,
    VehicleModel,
)
from src.domain.entities import RECORD_TYPES, FleetSnapshot, WriteIntent
from src.domain.enums import Collection, WriteAction

MODELS = {
    Collection.VEHICLES: VehicleModel,
    Collection.DRIVERS: DriverModel,
    Collection.TRIPS: TripModel,
    Collection.MAINTENANCE_LOGS: MaintenanceLogModel,
    Collection.EXPENSES: ExpenseModel,
}


def to_entity(collection: Collection, row):
    record_type = RECORD_TYPES[collection]
    return record_type(**{f.name: getattr(row, f.name) for f in fields(record_type)})


def to_values(record) -> dict:
    return {f.name: getattr(record, f.name) for f in fields(record)}


class FleetRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_collection(self, collection: Collection) -> tuple:
        model = MODELS[collection]
        result = await self.session.execute(
            select(model).order_by(model.created_at, model.id)
        )
        return tuple(to_entity(collection, row) for row in result.scalars().all())

    async def load_snapshot(self) -> FleetSnapshot:
        return FleetSnapshot(
            **{c.value: await self.load_collection(c) for c in Collection}
        )

    async def apply(self, intents: Iterable[WriteIntent]) -> None:
        """Stage *intents* in the session, in order, and flush them."""
        for intent in intents:
            model = MODELS[intent.collection]
            if intent.action == WriteAction.CREATE:
                self.session.add(model(**to_values(intent.record)))
            elif intent.action == WriteAction.UPDATE:
                values = to_values(intent.record)
                values.pop("id")
                await self.session.execute(
                    update(model).where(model.id == intent.entity_id).values(**values)
                )
            else:
                await self.session.execute(
                    delete(model).where(model.id == intent.entity_id)
                )
        await self.session.flush()
