"""Role gates, actor resolution and principal-tagged logging"""
import logging

import pytest

from oms.core.exceptions import AuthenticationRequired, AuthorizationDenied, ProfileNotFound
from oms.core.logging_config import PrincipalFilter, current_principal
from oms.core.permissions import (
    Actor, ROLES, ORDER_REVIEWERS, WAREHOUSE_STAFF, ADMIN_ONLY,
    authorize, describe_roles, has_role, resolve_actor, resolve_optional_actor,
)


def _actor(role):
    return Actor(id=1, user_id=f"{role}-x", name=role.title(), role=role)


def test_describe_roles():
    assert describe_roles(ADMIN_ONLY) == "admins"
    assert describe_roles(WAREHOUSE_STAFF) == "warehouse managers or admins"
    assert describe_roles(ROLES) == "sales, accountants, warehouse managers, shippers or admins"


@pytest.mark.parametrize("role, allowed", [
    ("accountant", True),
    ("admin", True),
    ("sales", False),
    ("warehouse_manager", False),
    ("shipper", False),
])
def test_reviewer_gate(role, allowed):
    assert has_role(_actor(role), ORDER_REVIEWERS) is allowed


def test_admin_passes_gates_it_is_not_listed_in():
    assert has_role(_actor("admin"), ("shipper",))
    assert not has_role(_actor("admin"), ("shipper",), admin_only=True)


def test_admin_only_gate():
    assert authorize(_actor("admin"), ADMIN_ONLY, "delete products").role == "admin"
    with pytest.raises(AuthorizationDenied) as exc:
        authorize(_actor("warehouse_manager"), ADMIN_ONLY, "delete products")
    assert exc.value.status_code == 403
    assert exc.value.detail == "Only admins can delete products"


async def test_resolve_actor(db, profiles):
    actor = await resolve_actor(db, "acct-1")
    assert actor.role == "accountant"
    assert actor.id == profiles["accountant"].id

    with pytest.raises(AuthenticationRequired):
        await resolve_actor(db, None)
    with pytest.raises(ProfileNotFound):
        await resolve_actor(db, "ghost")

    assert await resolve_optional_actor(db, "ghost") is None
    with pytest.raises(AuthenticationRequired):
        await resolve_optional_actor(db, "")


def test_log_records_carry_the_principal():
    record = logging.LogRecord("oms", logging.INFO, __file__, 1, "approved", None, None)
    token = current_principal.set("acct-1")
    try:
        assert PrincipalFilter().filter(record)
    finally:
        current_principal.reset(token)
    assert record.principal == "acct-1"

    PrincipalFilter().filter(record)
    assert record.principal == "-"
