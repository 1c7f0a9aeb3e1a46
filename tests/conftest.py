import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.domain.models import Category, Principal, Product, Role
from storefront.infrastructure.db_schema import metadata
from storefront.infrastructure.identity import JWTIdentityGate
from storefront.infrastructure.unit_of_work import UnitOfWork
from storefront.main import app
from storefront.presentation.dependencies import get_identity_gate, get_unit_of_work
from tests.fakes import InMemoryStore, InMemoryUnitOfWork


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def uow(store):
    return InMemoryUnitOfWork(store)


@pytest.fixture
def category(store):
    category = Category(id=str(uuid.uuid4()), name="Chocolate")
    store.categories[category.id] = category
    return category


@pytest.fixture
def make_product(store, category):
    def factory(name="Dark chocolate", price="10.00", stock=5, **kwargs):
        product = Product(
            id=str(uuid.uuid4()),
            name=name,
            price=Decimal(price),
            stock=stock,
            category_id=category.id,
            **kwargs
        )
        store.products[product.id] = product
        return product
    return factory


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def user_id():
    return str(uuid.uuid4())


@pytest.fixture
def gate():
    return JWTIdentityGate("test-secret")


@pytest.fixture
def auth_headers(gate):
    def factory(user_id, role=Role.USER):
        token = gate.issue(Principal(id=user_id, role=role))
        return {"Authorization": f"Bearer {token}"}
    return factory


@pytest.fixture
def client(uow, gate):
    app.dependency_overrides[get_unit_of_work] = lambda: uow
    app.dependency_overrides[get_identity_gate] = lambda: gate
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
async def sqlite_uow():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield UnitOfWork(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))

    await engine.dispose()
