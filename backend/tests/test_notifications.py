"""Notification reads and read-state changes"""
import pytest

from oms.core.exceptions import AuthorizationDenied, NotificationNotFound
from oms.db.session import transaction
from oms.services import notifications as notification_service


@pytest.fixture
async def inbox(db, actors, make_product, place_order):
    """Two submitted orders: the accountant gets two unread notifications"""
    product_id = await make_product("N-1")
    await place_order([(product_id, 1, "1.00")])
    await place_order([(product_id, 1, "1.00")])
    return await notification_service.get_notifications(db, actors["accountant"])


async def test_latest_first_and_unread_count(db, actors, inbox):
    assert len(inbox) == 2
    assert inbox[0].id > inbox[1].id
    assert await notification_service.get_unread_count(db, actors["accountant"]) == 2
    assert await notification_service.get_unread_count(db, actors["sales"]) == 0


async def test_missing_profile_reads_as_empty(db):
    assert await notification_service.get_notifications(db, None) == []
    assert await notification_service.get_unread_count(db, None) == 0


async def test_mark_one_as_read(db, actors, inbox):
    async with transaction(db):
        notification = await notification_service.mark_as_read(db, actors["accountant"], inbox[0].id)
    assert notification.is_read
    assert await notification_service.get_unread_count(db, actors["accountant"]) == 1


async def test_cannot_mark_someone_elses_notification(db, actors, inbox):
    with pytest.raises(AuthorizationDenied) as exc:
        await notification_service.mark_as_read(db, actors["sales"], inbox[0].id)
    assert exc.value.detail == "You can only mark your own notifications as read"

    with pytest.raises(NotificationNotFound):
        await notification_service.mark_as_read(db, actors["sales"], 12345)


async def test_mark_all_as_read(db, actors, inbox):
    async with transaction(db):
        marked = await notification_service.mark_all_as_read(db, actors["accountant"])
    assert marked == 2
    assert await notification_service.get_unread_count(db, actors["accountant"]) == 0
