"""Concurrent approvals against a file database with write locks taken at BEGIN"""
import asyncio
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from oms.core.exceptions import InsufficientStock
from oms.core.permissions import actor_from_profile
from oms.db.base import Base
from oms.db.session import configure_sqlite_locking, transaction
from oms.models import InventoryTransaction, Order, Product, Profile
from oms.schemas.inventory import InventoryBatchCreate
from oms.schemas.order import OrderCreate
from oms.schemas.product import ProductCreate
from oms.services.inventory import create_inventory_batch
from oms.services.orders import approve_order, create_order
from oms.services.products import create_product

ADDRESS = {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701", "country": "US"}


@pytest.fixture
async def file_sessions(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'oms.db'}",
        connect_args={"timeout": 30},
    )
    configure_sqlite_locking(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def contested(file_sessions):
    """10 units in stock and two pending orders of 6 each"""
    async with file_sessions() as db:
        people = {
            role: Profile(user_id=f"{role}-c", email=f"{role}@example.com", name=role.title(), role=role)
            for role in ("sales", "accountant", "warehouse_manager")
        }
        async with transaction(db):
            db.add_all(people.values())
        actors = {role: actor_from_profile(p) for role, p in people.items()}

        async with transaction(db):
            product = await create_product(db, actors["warehouse_manager"], ProductCreate(
                product_code="HOT", product_name="Hot Item", unit_price=Decimal("5.00"),
            ))
            await create_inventory_batch(db, actors["warehouse_manager"], InventoryBatchCreate(
                product_id=product.id, batch_number="LOT-HOT", quantity=10, received_date=datetime(2026, 1, 5),
            ))

        order_ids = []
        for _ in range(2):
            data = OrderCreate(
                customer_id="C-001",
                customer_name="Acme",
                items=[{"product_ref": str(product.id), "product_name": "Hot Item", "quantity": 6, "unit_price": Decimal("5.00")}],
                shipping_address=ADDRESS,
            )
            async with transaction(db):
                order_ids.append((await create_order(db, actors["sales"], data)).id)
    return actors["accountant"], product.id, order_ids


async def test_concurrent_approvals_do_not_oversell(file_sessions, contested):
    accountant, product_id, order_ids = contested

    async def approve(order_id):
        async with file_sessions() as db:
            async with transaction(db):
                await approve_order(db, accountant, order_id)

    results = await asyncio.gather(*(approve(order_id) for order_id in order_ids), return_exceptions=True)

    assert sorted(type(r).__name__ for r in results) == ["InsufficientStock", "NoneType"]
    assert isinstance(next(r for r in results if r is not None), InsufficientStock)

    async with file_sessions() as db:
        stock = (await db.execute(select(Product.stock_quantity).where(Product.id == product_id))).scalar_one()
        ledger = (await db.execute(
            select(func.sum(InventoryTransaction.quantity)).where(InventoryTransaction.product_id == product_id)
        )).scalar_one()
        statuses = (await db.execute(select(Order.status).where(Order.id.in_(order_ids)))).scalars().all()
    assert stock == 4
    assert ledger == stock
    assert sorted(statuses) == ["approved", "pending"]
