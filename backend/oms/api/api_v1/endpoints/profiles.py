"""User profile API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor, get_optional_actor, get_principal
from oms.core.exceptions import AuthenticationRequired, ProfileNotFound
from oms.core.permissions import Actor
from oms.db.session import transaction
from oms.models.profile import Profile
from oms.schemas.misc import ProfileResponse, ProfileUpsert
from oms.services import profiles as profile_service

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)) -> Any:
    profile = await db.get(Profile, actor.id)
    if not profile:
        raise ProfileNotFound()
    return profile


@router.get("/", response_model=List[ProfileResponse])
async def list_profiles(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)) -> Any:
    return await profile_service.list_profiles(db, actor)


@router.put("/", response_model=ProfileResponse)
async def upsert_profile(
    *,
    db: AsyncSession = Depends(get_db),
    principal: Optional[str] = Depends(get_principal),
    actor: Optional[Actor] = Depends(get_optional_actor),
    profile_in: ProfileUpsert) -> Any:
    """Admins manage any profile; a new principal registers itself as sales"""
    if not principal:
        raise AuthenticationRequired()
    async with transaction(db):
        profile = await profile_service.upsert_profile(db, principal, actor, profile_in)
    return profile
