import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional, List, Union

from sqlalchemy import select, insert, update, delete, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.models import (
    Cart, CartItem, Category, GuestOwner, Order, OrderLine, OrderStatus, Product, UserOwner
)
from storefront.infrastructure.db_schema import (
    categories_tbl, products_tbl, carts_tbl, cart_items_tbl, orders_tbl, order_items_tbl
)
from storefront.application.interfaces import (
    CartRepository, CategoryRepository, OrderRepository, ProductRepository
)


def _upsert(session: AsyncSession, table):
    """INSERT ... ON CONFLICT для диалекта текущей сессии"""
    if session.get_bind().dialect.name == "sqlite":
        return sqlite.insert(table)
    return postgresql.insert(table)


class SQLAlchemyProductRepository(ProductRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        result = await self._session.execute(
            select(products_tbl).where(products_tbl.c.id == product_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def list(
        self,
        offset: int,
        limit: int,
        category_id: Optional[str] = None,
        is_exclusive: Optional[bool] = None,
    ) -> List[Product]:
        stmt = (
            self._filtered(select(products_tbl), category_id, is_exclusive)
            .order_by(products_tbl.c.created_at.desc(), products_tbl.c.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(row) for row in result.fetchall()]

    async def count(self, category_id: Optional[str] = None, is_exclusive: Optional[bool] = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(products_tbl), category_id, is_exclusive)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def create(self, product: Product) -> None:
        await self._session.execute(insert(products_tbl).values(**product.model_dump(exclude_none=True)))

    async def update(self, product_id: str, changes: dict) -> Optional[Product]:
        stmt = (
            update(products_tbl)
            .where(products_tbl.c.id == product_id)
            .values(**changes, updated_at=datetime.now(timezone.utc))
            .returning(*products_tbl.c)
        )
        result = await self._session.execute(stmt)
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def delete(self, product_id: str) -> bool:
        result = await self._session.execute(
            delete(products_tbl).where(products_tbl.c.id == product_id)
        )
        return result.rowcount > 0

    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        # Проверка и списание одним UPDATE, без окна между чтением и записью
        stmt = (
            update(products_tbl)
            .where(products_tbl.c.id == product_id, products_tbl.c.stock >= quantity)
            .values(
                stock=products_tbl.c.stock - quantity,
                updated_at=datetime.now(timezone.utc)
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    def _filtered(self, stmt, category_id: Optional[str], is_exclusive: Optional[bool]):
        if category_id is not None:
            stmt = stmt.where(products_tbl.c.category_id == category_id)
        if is_exclusive is not None:
            stmt = stmt.where(products_tbl.c.is_exclusive == is_exclusive)
        return stmt

    def _to_domain(self, row) -> Product:
        """Трансформация DB → Domain"""
        return Product(**row._mapping)


class SQLAlchemyCategoryRepository(CategoryRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, category_id: str) -> Optional[Category]:
        result = await self._session.execute(
            select(categories_tbl).where(categories_tbl.c.id == category_id)
        )
        row = result.fetchone()
        return Category(**row._mapping) if row else None

    async def list(self, offset: int, limit: int) -> List[Category]:
        result = await self._session.execute(
            select(categories_tbl)
            .order_by(categories_tbl.c.name, categories_tbl.c.id)
            .offset(offset)
            .limit(limit)
        )
        return [Category(**row._mapping) for row in result.fetchall()]

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(categories_tbl))
        return result.scalar_one()

    async def create(self, category: Category) -> None:
        await self._session.execute(insert(categories_tbl).values(**category.model_dump(exclude_none=True)))


class SQLAlchemyCartRepository(CartRepository):
    """
    Корзина хранится как строка carts (владелец) + строки cart_items.
    Все изменения: атомарные upsert/update по ключу владельца, без чтения перед записью.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, owner: Union[UserOwner, GuestOwner]) -> Optional[Cart]:
        result = await self._session.execute(
            select(carts_tbl).where(self._owner_clause(owner))
        )
        row = result.fetchone()
        if not row:
            return None

        items = await self._session.execute(
            select(cart_items_tbl)
            .where(cart_items_tbl.c.cart_id == row.id)
            .order_by(cart_items_tbl.c.added_at, cart_items_tbl.c.product_id)
        )
        return Cart(
            id=row.id,
            owner=owner,
            items=[CartItem(product_id=i.product_id, quantity=i.quantity) for i in items.fetchall()],
            created_at=row.created_at,
            updated_at=row.updated_at
        )

    async def add_item(self, owner: Union[UserOwner, GuestOwner], product_id: str, quantity: int) -> None:
        cart_id = await self._ensure_cart(owner)
        stmt = _upsert(self._session, cart_items_tbl).values(
            cart_id=cart_id,
            product_id=product_id,
            quantity=quantity,
            added_at=datetime.now(timezone.utc)
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["cart_id", "product_id"],
            set_={"quantity": cart_items_tbl.c.quantity + stmt.excluded.quantity}
        )
        await self._session.execute(stmt)

    async def remove_item(self, owner: Union[UserOwner, GuestOwner], product_id: str) -> bool:
        cart_id = await self._cart_id(owner)
        if not cart_id:
            return False
        result = await self._session.execute(
            delete(cart_items_tbl).where(
                cart_items_tbl.c.cart_id == cart_id,
                cart_items_tbl.c.product_id == product_id
            )
        )
        return result.rowcount > 0

    async def adjust_item(self, owner: Union[UserOwner, GuestOwner], product_id: str, delta: int) -> Optional[int]:
        cart_id = await self._cart_id(owner)
        if not cart_id:
            return None

        item_clause = (
            (cart_items_tbl.c.cart_id == cart_id) & (cart_items_tbl.c.product_id == product_id)
        )
        if delta < 0:
            # Позиция, которая ушла бы в 0, удаляется целиком
            removed = await self._session.execute(
                delete(cart_items_tbl).where(item_clause, cart_items_tbl.c.quantity <= -delta)
            )
            if removed.rowcount:
                return 0

        result = await self._session.execute(
            update(cart_items_tbl)
            .where(item_clause)
            .values(quantity=cart_items_tbl.c.quantity + delta)
            .returning(cart_items_tbl.c.quantity)
        )
        return result.scalar_one_or_none()

    async def reassign(self, guest: GuestOwner, user: UserOwner) -> None:
        await self._session.execute(
            update(carts_tbl)
            .where(carts_tbl.c.session_id == guest.session_id)
            .values(user_id=user.user_id, session_id=None, updated_at=datetime.now(timezone.utc))
        )

    async def delete(self, owner: Union[UserOwner, GuestOwner]) -> bool:
        cart_id = await self._cart_id(owner)
        if not cart_id:
            return False
        await self._session.execute(delete(cart_items_tbl).where(cart_items_tbl.c.cart_id == cart_id))
        await self._session.execute(delete(carts_tbl).where(carts_tbl.c.id == cart_id))
        return True

    async def _cart_id(self, owner: Union[UserOwner, GuestOwner]) -> Optional[str]:
        result = await self._session.execute(
            select(carts_tbl.c.id).where(self._owner_clause(owner))
        )
        return result.scalar_one_or_none()

    async def _ensure_cart(self, owner: Union[UserOwner, GuestOwner]) -> str:
        now = datetime.now(timezone.utc)
        is_user = isinstance(owner, UserOwner)
        stmt = _upsert(self._session, carts_tbl).values(
            id=str(uuid.uuid4()),
            user_id=owner.user_id if is_user else None,
            session_id=None if is_user else owner.session_id,
            created_at=now,
            updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id" if is_user else "session_id"],
            set_={"updated_at": now}
        ).returning(carts_tbl.c.id)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    def _owner_clause(self, owner: Union[UserOwner, GuestOwner]):
        if isinstance(owner, UserOwner):
            return carts_tbl.c.user_id == owner.user_id
        return carts_tbl.c.session_id == owner.session_id


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        if not row:
            return None
        lines = await self._load_lines([row.id])
        return self._to_domain(row, lines[row.id])

    async def list_by_user(self, user_id: str) -> List[Order]:
        result = await self._session.execute(
            select(orders_tbl)
            .where(orders_tbl.c.user_id == user_id)
            .order_by(orders_tbl.c.created_at.desc())
        )
        rows = result.fetchall()
        lines = await self._load_lines([row.id for row in rows])
        return [self._to_domain(row, lines[row.id]) for row in rows]

    async def create(self, order: Order) -> None:
        await self._session.execute(
            insert(orders_tbl).values(
                id=order.id,
                user_id=order.user_id,
                total_amount=order.total_amount,
                status=order.status,
                created_at=order.created_at,
                updated_at=order.updated_at
            )
        )
        await self._session.execute(
            insert(order_items_tbl),
            [
                {
                    "order_id": order.id,
                    "position": position,
                    "product_id": line.product_id,
                    "product_name": line.product_name,
                    "quantity": line.quantity,
                    "price": line.price
                }
                for position, line in enumerate(order.items)
            ]
        )

    async def update_status(
        self, order_id: str, status: OrderStatus, expected: Optional[OrderStatus] = None
    ) -> Optional[Order]:
        stmt = update(orders_tbl).where(orders_tbl.c.id == order_id)
        if expected is not None:
            # Смена статуса только из ожидаемого, одним UPDATE
            stmt = stmt.where(orders_tbl.c.status == expected)
        result = await self._session.execute(
            stmt.values(
                status=status,
                updated_at=datetime.now(timezone.utc)
            )
        )
        if not result.rowcount:
            return None
        return await self.get_by_id(order_id)

    async def _load_lines(self, order_ids: List[str]) -> dict:
        lines = defaultdict(list)
        if not order_ids:
            return lines
        result = await self._session.execute(
            select(order_items_tbl)
            .where(order_items_tbl.c.order_id.in_(order_ids))
            .order_by(order_items_tbl.c.order_id, order_items_tbl.c.position)
        )
        for row in result.fetchall():
            lines[row.order_id].append(
                OrderLine(
                    product_id=row.product_id,
                    product_name=row.product_name,
                    quantity=row.quantity,
                    price=row.price
                )
            )
        return lines

    def _to_domain(self, row, lines: List[OrderLine]) -> Order:
        """Трансформация DB → Domain"""
        return Order(
            id=row.id,
            user_id=row.user_id,
            items=tuple(lines),
            total_amount=row.total_amount,
            status=OrderStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at
        )
