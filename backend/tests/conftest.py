"""
Pytest fixtures: one in-memory database per test, a profile per role and
small builders for products, stock and orders
"""
import itertools
from datetime import datetime
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from oms.core.deps import get_db
from oms.core.permissions import actor_from_profile
from oms.db.base import Base
from oms.db.session import transaction
from oms.models import Product, Profile
from oms.schemas.inventory import InventoryBatchCreate
from oms.schemas.order import OrderCreate
from oms.schemas.product import ProductCreate
from oms.services.inventory import create_inventory_batch
from oms.services.orders import create_order
from oms.services.products import create_product

PEOPLE = {
    "sales": ("sales-1", "Sam Seller", "sales"),
    "sales_other": ("sales-2", "Sue Seller", "sales"),
    "accountant": ("acct-1", "Alex Ledger", "accountant"),
    "warehouse": ("wh-1", "Wes Stock", "warehouse_manager"),
    "warehouse_2": ("wh-2", "Wren Stock", "warehouse_manager"),
    "shipper": ("ship-1", "Sky Courier", "shipper"),
    "admin": ("admin-1", "Ada Admin", "admin"),
}

ACME_ADDRESS = {
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def profiles(db):
    people = {
        key: Profile(user_id=user_id, email=f"{user_id}@example.com", name=name, role=role)
        for key, (user_id, name, role) in PEOPLE.items()
    }
    async with transaction(db):
        db.add_all(people.values())
    return people


@pytest.fixture
def actors(profiles):
    return {key: actor_from_profile(profile) for key, profile in profiles.items()}


@pytest.fixture
def stock_of(db):
    """Current stock read straight from the database"""
    async def _stock_of(product_id: int) -> int:
        result = await db.execute(select(Product.stock_quantity).where(Product.id == product_id))
        return result.scalar_one()
    return _stock_of


@pytest.fixture
def make_product(db, actors):
    batch_numbers = itertools.count(1)

    async def _make_product(code: str, stock: int = 0, price: str = "10.00") -> int:
        """Create a product, receive `stock` units in one batch, return its id"""
        warehouse = actors["warehouse"]
        async with transaction(db):
            product = await create_product(db, warehouse, ProductCreate(
                product_code=code,
                product_name=f"Product {code}",
                unit_price=Decimal(price),
            ))
            if stock:
                await create_inventory_batch(db, warehouse, InventoryBatchCreate(
                    product_id=product.id,
                    batch_number=f"B-{code}-{next(batch_numbers)}",
                    quantity=stock,
                    received_date=datetime(2026, 1, 5),
                ))
        return product.id
    return _make_product


@pytest.fixture
def receive(db, actors):
    async def _receive(product_id: int, batch_number: str, quantity: int, **extra):
        async with transaction(db):
            return await create_inventory_batch(db, actors["warehouse"], InventoryBatchCreate(
                product_id=product_id,
                batch_number=batch_number,
                quantity=quantity,
                received_date=datetime(2026, 1, 5),
                **extra,
            ))
    return _receive


@pytest.fixture
def place_order(db, actors):
    async def _place_order(lines, creator: str = "sales", customer_name: str = "Acme"):
        """lines: (product_ref, quantity, unit_price) tuples; returns the order id"""
        data = OrderCreate(
            customer_id="C-001",
            customer_name=customer_name,
            items=[
                {
                    "product_ref": str(ref),
                    "product_name": f"Item {ref}",
                    "quantity": quantity,
                    "unit_price": Decimal(price),
                }
                for ref, quantity, price in lines
            ],
            shipping_address=ACME_ADDRESS,
        )
        async with transaction(db):
            order = await create_order(db, actors[creator], data)
        return order.id
    return _place_order


@pytest.fixture
async def client(session_factory, profiles):
    """HTTP client against the app, sharing the test database"""
    from oms.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Request headers for one of the PEOPLE"""
    def _auth(key: str) -> dict:
        return {"X-User-Id": PEOPLE[key][0]}
    return _auth
