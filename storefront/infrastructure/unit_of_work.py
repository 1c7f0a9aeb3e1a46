from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.application.interfaces import AbstractUnitOfWork
from storefront.infrastructure.repositories import (
    SQLAlchemyCartRepository,
    SQLAlchemyCategoryRepository,
    SQLAlchemyOrderRepository,
    SQLAlchemyProductRepository
)


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            try:
                uow_impl = _UnitOfWorkImpl(session)
                yield uow_impl
                # Если commit не вызван — rollback
                await session.rollback()
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImpl(AbstractUnitOfWork):
    def __init__(self, session: AsyncSession):
        self._session = session
        self.products = SQLAlchemyProductRepository(session)
        self.categories = SQLAlchemyCategoryRepository(session)
        self.carts = SQLAlchemyCartRepository(session)
        self.orders = SQLAlchemyOrderRepository(session)

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()
