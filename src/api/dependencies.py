"""FastAPI dependency injection helpers."""

from datetime import date
from typing import Optional

import redis.asyncio as aioredis
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities import Principal
from src.domain.enums import UserRole
from src.infrastructure.database import async_session_factory
from src.infrastructure.redis_client import get_redis
from src.services.operations import OperationsService
from src.services.store import FleetStore


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_store(request: Request) -> FleetStore:
    return request.app.state.store


def get_today() -> date:
    """Reference date for licence validity and vehicle year checks."""
    return date.today()


def get_principal(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[UserRole] = Header(None),
) -> Optional[Principal]:
    """Caller identity as forwarded by the auth proxy; None when absent."""
    if not x_user_id:
        return None
    return Principal(
        id=x_user_id,
        email=x_user_email or "",
        role=x_user_role or UserRole.DISPATCHER,
    )


async def get_operations(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
    store: FleetStore = Depends(get_store),
    principal: Optional[Principal] = Depends(get_principal),
) -> OperationsService:
    return OperationsService(db, redis, store, principal)
