"""
Access control

Roles are a closed set. The acting profile is resolved once at the request
boundary into an Actor and passed down explicitly to every service call.
admin passes every role gate except gates declared admin-only.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.exceptions import AuthenticationRequired, AuthorizationDenied, ProfileNotFound
from oms.models.profile import Profile

logger = logging.getLogger(__name__)

SALES = "sales"
ACCOUNTANT = "accountant"
WAREHOUSE_MANAGER = "warehouse_manager"
SHIPPER = "shipper"
ADMIN = "admin"

ROLES: Tuple[str, ...] = (SALES, ACCOUNTANT, WAREHOUSE_MANAGER, SHIPPER, ADMIN)

ROLE_DISPLAY = {
    SALES: "sales",
    ACCOUNTANT: "accountants",
    WAREHOUSE_MANAGER: "warehouse managers",
    SHIPPER: "shippers",
    ADMIN: "admins",
}

# Role gates shared by several services
ORDER_CREATORS = (SALES, ADMIN)
ORDER_REVIEWERS = (ACCOUNTANT, ADMIN)
WAREHOUSE_STAFF = (WAREHOUSE_MANAGER, ADMIN)
SHIPPING_STAFF = (SHIPPER, ADMIN)
PARTNER_MANAGERS = (ACCOUNTANT, ADMIN)
ADMIN_ONLY = (ADMIN,)


@dataclass(frozen=True)
class Actor:
    """The resolved acting profile"""
    id: int
    user_id: str
    name: str
    role: str


def describe_roles(roles: Iterable[str]) -> str:
    names = [ROLE_DISPLAY.get(r, r) for r in roles]
    if len(names) == 1:
        return names[0]
    return " or ".join([", ".join(names[:-1]), names[-1]])


def has_role(actor: Actor, allowed_roles: Iterable[str], admin_only: bool = False) -> bool:
    allowed = tuple(allowed_roles)
    if actor.role in allowed:
        return True
    return actor.role == ADMIN and not admin_only


def authorize(actor: Actor, allowed_roles: Iterable[str], action: str) -> Actor:
    """Fail closed unless the actor holds one of the allowed roles

    A gate whose only role is admin is admin-only; otherwise admin always passes.
    """
    allowed = tuple(allowed_roles)
    admin_only = allowed == ADMIN_ONLY
    if not has_role(actor, allowed, admin_only=admin_only):
        logger.warning(f"Denied '{action}' for profile {actor.id} ({actor.role})")
        raise AuthorizationDenied(f"Only {describe_roles(allowed)} can {action}")
    return actor


def actor_from_profile(profile: Profile) -> Actor:
    return Actor(id=profile.id, user_id=profile.user_id, name=profile.name, role=profile.role)


async def resolve_actor(db: AsyncSession, principal: Optional[str]) -> Actor:
    """Resolve an authenticated principal into exactly one profile"""
    if not principal:
        raise AuthenticationRequired()
    result = await db.execute(select(Profile).where(Profile.user_id == principal))
    profile = result.scalar_one_or_none()
    if not profile:
        raise ProfileNotFound()
    return actor_from_profile(profile)


async def resolve_optional_actor(db: AsyncSession, principal: Optional[str]) -> Optional[Actor]:
    """Soft variant for read paths that tolerate a missing profile"""
    if not principal:
        raise AuthenticationRequired()
    result = await db.execute(select(Profile).where(Profile.user_id == principal))
    profile = result.scalar_one_or_none()
    return actor_from_profile(profile) if profile else None
