import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.exceptions import AuthorizationDenied
from oms.core.permissions import Actor, actor_from_profile, authorize, ADMIN_ONLY, SALES
from oms.models.profile import Profile
from oms.schemas.misc import ProfileUpsert
from oms.services.audit import apply_changes, create_audit_log, snapshot_changes

logger = logging.getLogger(__name__)


async def list_profiles(db: AsyncSession, actor: Actor) -> List[Profile]:
    authorize(actor, ADMIN_ONLY, "manage user profiles")
    result = await db.execute(select(Profile).order_by(Profile.name))
    return list(result.scalars().all())


async def upsert_profile(
    db: AsyncSession,
    principal: str,
    actor: Optional[Actor],
    data: ProfileUpsert) -> Profile:
    """Create or update a profile

    Admins manage every profile. A principal that has no profile yet may
    register itself, with the sales role only.
    """
    if actor is None:
        if data.user_id != principal or data.role != SALES:
            logger.warning(f"Principal {principal} tried to register {data.user_id} as {data.role}")
            raise AuthorizationDenied("You can only create your own profile with the sales role")
    else:
        authorize(actor, ADMIN_ONLY, "manage user profiles")

    result = await db.execute(select(Profile).where(Profile.user_id == data.user_id))
    profile = result.scalar_one_or_none()

    if profile is None:
        profile = Profile(**data.model_dump())
        db.add(profile)
        await db.flush()
        create_audit_log(
            db, actor or actor_from_profile(profile), "create", "profile",
            resource_id=profile.id,
            resource_name=profile.user_id,
            changes=snapshot_changes(data.model_dump()),
        )
        logger.info(f"Profile created: {profile.user_id} as {profile.role}")
        return profile

    changes = apply_changes(profile, data.model_dump(exclude={"user_id"}))
    if changes:
        create_audit_log(
            db, actor, "update", "profile",
            resource_id=profile.id,
            resource_name=profile.user_id,
            changes=changes,
        )
        logger.info(f"Profile updated: {profile.user_id} by {actor.name}")
    return profile
