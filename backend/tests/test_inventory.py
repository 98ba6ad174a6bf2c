"""Inventory ledger: batches, adjustments and the stock = sum(transactions) rule"""
from datetime import datetime

import pytest
from sqlalchemy import select, func, update

from oms.core.exceptions import (
    AuthorizationDenied, BatchNotFound, InvalidState, NegativeQuantity, ProductNotFound, UniquenessViolation,
)
from oms.db.session import transaction
from oms.models import InventoryBatch, InventoryTransaction, Order, OrderShippedQuantity
from oms.schemas.inventory import InventoryBatchCreate, InventoryBatchUpdate
from oms.services import inventory as inventory_service
from oms.services import orders as order_service


async def _ledger_total(db, product_id):
    result = await db.execute(
        select(func.coalesce(func.sum(InventoryTransaction.quantity), 0))
        .where(InventoryTransaction.product_id == product_id)
    )
    return result.scalar_one()


async def _batch_quantity(db, batch_id):
    return (await db.execute(select(InventoryBatch.quantity).where(InventoryBatch.id == batch_id))).scalar_one()


async def test_receive_then_damage_round_trip(db, actors, make_product, receive, stock_of):
    product_id = await make_product("RT")
    batch = await receive(product_id, "LOT-20", 20)
    assert await stock_of(product_id) == 20
    assert batch.status == "available"
    assert batch.product_code == "RT"

    async with transaction(db):
        batch = await inventory_service.adjust_inventory_quantity(
            db, actors["warehouse"], batch.id, -5, "damage", "Forklift accident"
        )
    assert batch.quantity == 15
    assert await stock_of(product_id) == 15

    transactions = await inventory_service.list_inventory_transactions(db, actors["warehouse"], batch_id=batch.id)
    assert [(t.transaction_type, t.quantity) for t in transactions] == [("damage", -5), ("receive", 20)]
    assert transactions[0].notes == "Forklift accident"
    assert transactions[0].performed_by_name == actors["warehouse"].name
    assert transactions[1].notes == "Batch received"


async def test_duplicate_batch_number_is_rejected(db, make_product, receive, stock_of):
    product_id = await make_product("DP")
    await receive(product_id, "LOT-1", 4)

    with pytest.raises(UniquenessViolation) as exc:
        await receive(product_id, "LOT-1", 9)
    assert exc.value.detail == "Batch number already exists"
    assert exc.value.status_code == 409
    assert await stock_of(product_id) == 4


async def test_batch_for_unknown_product(make_product, receive):
    with pytest.raises(ProductNotFound):
        await receive(4242, "LOT-X", 1)


async def test_negative_adjustment_below_zero_changes_nothing(db, actors, make_product, receive, stock_of):
    product_id = await make_product("NG")
    batch = await receive(product_id, "LOT-5", 5)
    batch_id = batch.id

    with pytest.raises(NegativeQuantity) as exc:
        async with transaction(db):
            await inventory_service.adjust_inventory_quantity(db, actors["warehouse"], batch_id, -6, "damage")
    assert exc.value.detail == "Insufficient quantity in batch"
    assert exc.value.status_code == 400

    assert await _batch_quantity(db, batch_id) == 5
    assert await stock_of(product_id) == 5
    damages = await db.execute(
        select(func.count(InventoryTransaction.id)).where(InventoryTransaction.transaction_type == "damage")
    )
    assert damages.scalar() == 0


@pytest.mark.parametrize("quantity, transaction_type", [(0, "adjust"), (3, "receive"), (-1, "ship")])
async def test_adjustment_rejects_zero_and_non_adjustment_types(db, actors, make_product, receive, quantity, transaction_type):
    product_id = await make_product("ZT")
    batch = await receive(product_id, "LOT-Z", 2)
    with pytest.raises(InvalidState):
        await inventory_service.adjust_inventory_quantity(db, actors["warehouse"], batch.id, quantity, transaction_type)


async def test_adjust_unknown_batch(db, actors):
    with pytest.raises(BatchNotFound):
        await inventory_service.adjust_inventory_quantity(db, actors["warehouse"], 777, 1, "adjust")


async def test_update_batch_books_quantity_change_as_adjustment(db, actors, make_product, receive, stock_of):
    product_id = await make_product("UP")
    batch = await receive(product_id, "LOT-U", 10)

    async with transaction(db):
        batch = await inventory_service.update_inventory_batch(
            db, actors["warehouse"], batch.id, InventoryBatchUpdate(quantity=7, location="Aisle 4")
        )
    assert batch.quantity == 7
    assert batch.location == "Aisle 4"
    assert await stock_of(product_id) == 7

    adjustments = await inventory_service.list_inventory_transactions(db, actors["warehouse"], product_id=product_id)
    assert adjustments[0].transaction_type == "adjust"
    assert adjustments[0].quantity == -3
    assert adjustments[0].notes == "Quantity corrected from 10 to 7"


async def test_delete_batch_records_compensating_transaction(db, actors, make_product, receive, place_order, stock_of):
    product_id = await make_product("DL")
    batch = await receive(product_id, "LOT-D", 10)
    batch_id = batch.id
    order_id = await place_order([(product_id, 4, "1.00")])
    async with transaction(db):
        await order_service.approve_order(db, actors["accountant"], order_id)
    assert await stock_of(product_id) == 6

    async with transaction(db):
        await inventory_service.delete_inventory_batch(db, actors["admin"], batch_id)

    assert await stock_of(product_id) == 0
    compensation = (await db.execute(
        select(InventoryTransaction)
        .where(InventoryTransaction.batch_id == batch_id, InventoryTransaction.transaction_type == "adjust")
    )).scalar_one()
    assert compensation.quantity == -6
    assert compensation.notes == "Batch LOT-D deleted"
    remaining = await db.execute(select(func.count(InventoryBatch.id)).where(InventoryBatch.id == batch_id))
    assert remaining.scalar() == 0
    assert await _ledger_total(db, product_id) == 0


async def test_only_admins_delete_batches(db, actors, make_product, receive):
    product_id = await make_product("DA")
    batch = await receive(product_id, "LOT-A", 1)
    with pytest.raises(AuthorizationDenied) as exc:
        await inventory_service.delete_inventory_batch(db, actors["warehouse"], batch.id)
    assert exc.value.detail == "Only admins can delete inventory batches"


async def test_stock_equals_sum_of_ledger_after_mixed_operations(
        db, actors, make_product, receive, place_order, stock_of):
    product_id = await make_product("LG")
    batch = await receive(product_id, "LOT-L", 20)
    batch_id = batch.id

    async with transaction(db):
        await inventory_service.adjust_inventory_quantity(db, actors["warehouse"], batch_id, -5, "damage")
    assert await _ledger_total(db, product_id) == await stock_of(product_id) == 15

    order_id = await place_order([(product_id, 3, "1.00")])
    async with transaction(db):
        await order_service.approve_order(db, actors["accountant"], order_id)
    assert await _ledger_total(db, product_id) == await stock_of(product_id) == 12

    async with transaction(db):
        await order_service.reject_warehouse(db, actors["warehouse"], order_id, "No pallet")
    assert await _ledger_total(db, product_id) == await stock_of(product_id) == 15

    async with transaction(db):
        await inventory_service.adjust_inventory_quantity(db, actors["admin"], batch_id, 2, "return")
    assert await _ledger_total(db, product_id) == await stock_of(product_id) == 17

    async with transaction(db):
        await inventory_service.delete_inventory_batch(db, actors["admin"], batch_id)
    assert await _ledger_total(db, product_id) == await stock_of(product_id) == 0


@pytest.mark.parametrize("role", ["sales", "accountant", "shipper"])
async def test_inventory_is_warehouse_only(db, actors, make_product, role):
    product_id = await make_product("RM")
    with pytest.raises(AuthorizationDenied) as exc:
        await inventory_service.create_inventory_batch(db, actors[role], InventoryBatchCreate(
            product_id=product_id, batch_number="LOT-R", quantity=1, received_date=datetime(2026, 1, 5),
        ))
    assert exc.value.detail == "Only warehouse managers or admins can manage inventory"

    with pytest.raises(AuthorizationDenied):
        await inventory_service.list_inventory_batches(db, actors[role])


async def test_expire_batches_flags_only_past_expiry(db, make_product, receive, stock_of):
    product_id = await make_product("EX")
    old = await receive(product_id, "LOT-OLD", 3, expiry_date=datetime(2026, 1, 1))
    fresh = await receive(product_id, "LOT-NEW", 3, expiry_date=datetime(2027, 1, 1))
    await receive(product_id, "LOT-NONE", 3)

    async with transaction(db):
        expired = await inventory_service.expire_batches(db, now=datetime(2026, 2, 1))

    assert [b.batch_number for b in expired] == ["LOT-OLD"]
    assert old.status == "expired"
    assert fresh.status == "available"
    assert await _batch_quantity(db, old.id) == 3
    assert await stock_of(product_id) == 9


async def test_batch_queries(db, actors, make_product, receive):
    product_id = await make_product("BQ")
    first = await receive(product_id, "LOT-Q1", 2)
    second = await receive(product_id, "LOT-Q2", 1)
    async with transaction(db):
        await inventory_service.adjust_inventory_quantity(db, actors["warehouse"], second.id, -1, "expire")

    found = await inventory_service.get_batch_by_number(db, actors["warehouse"], "LOT-Q2")
    assert found.id == second.id
    with pytest.raises(BatchNotFound):
        await inventory_service.get_batch_by_number(db, actors["warehouse"], "LOT-404")

    all_batches = await inventory_service.list_batches_by_product(db, actors["warehouse"], product_id)
    assert [b.id for b in all_batches] == [first.id, second.id]
    available = await inventory_service.list_batches_by_product(db, actors["warehouse"], product_id, available_only=True)
    assert [b.id for b in available] == [first.id]


async def test_active_products_with_stock(db, actors, make_product):
    await make_product("AV-1", stock=3)
    await make_product("AV-2")

    rows = await inventory_service.get_active_products_with_stock(db, actors["sales"])
    assert [(r.product_code, r.stock_quantity, r.available) for r in rows] == [("AV-1", 3, 3), ("AV-2", 0, 0)]


async def test_product_stock_movements(db, actors, make_product):
    product_id = await make_product("MV", stock=5)
    availability, transactions = await inventory_service.get_product_stock_movements(db, actors["warehouse"], product_id)
    assert availability.stock_quantity == 5
    assert [t.quantity for t in transactions] == [5]


async def test_numeric_shipped_refs_belong_to_the_product_with_that_id(db, make_product, place_order):
    first_id = await make_product("FIRST", stock=5)
    coded_id = await make_product(str(first_id), stock=5)
    order_id = await place_order([(first_id, 1, "1.00")])
    async with transaction(db):
        db.add(OrderShippedQuantity(order_id=order_id, product_ref=str(first_id), shipped_quantity=2))
        await db.execute(update(Order).where(Order.id == order_id).values(status="shipped"))

    assert (await inventory_service.derive_availability(db, first_id)).shipped_quantity == 2
    assert (await inventory_service.derive_availability(db, coded_id)).shipped_quantity == 0
