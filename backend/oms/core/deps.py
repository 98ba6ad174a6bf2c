"""Dependency injection - session and acting profile"""
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.config import settings
from oms.core.logging_config import current_principal
from oms.core.permissions import Actor, resolve_actor, resolve_optional_actor
from oms.db.session import SessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency
    """
    async with SessionLocal() as session:
        yield session


async def get_principal(principal: Optional[str] = Header(default=None, alias=settings.ACTOR_HEADER)) -> Optional[str]:
    """Principal id forwarded by the auth gateway"""
    if principal:
        current_principal.set(principal)
    return principal


async def get_current_actor(
    db: AsyncSession = Depends(get_db),
    principal: Optional[str] = Depends(get_principal),
) -> Actor:
    return await resolve_actor(db, principal)


async def get_optional_actor(
    db: AsyncSession = Depends(get_db),
    principal: Optional[str] = Depends(get_principal),
) -> Optional[Actor]:
    return await resolve_optional_actor(db, principal)
