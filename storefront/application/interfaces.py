from abc import ABC, abstractmethod
from typing import Optional, List, Union

from storefront.domain.models import (
    Cart, Category, GuestOwner, Order, OrderStatus, Principal, Product, UserOwner
)


class ProductRepository(ABC):
    @abstractmethod
    async def get_by_id(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def list(
        self,
        offset: int,
        limit: int,
        category_id: Optional[str] = None,
        is_exclusive: Optional[bool] = None,
    ) -> List[Product]:
        pass

    @abstractmethod
    async def count(self, category_id: Optional[str] = None, is_exclusive: Optional[bool] = None) -> int:
        pass

    @abstractmethod
    async def create(self, product: Product) -> None:
        pass

    @abstractmethod
    async def update(self, product_id: str, changes: dict) -> Optional[Product]:
        pass

    @abstractmethod
    async def delete(self, product_id: str) -> bool:
        pass

    @abstractmethod
    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Атомарно: stock -= quantity только если stock >= quantity. False, если товара не хватило"""
        pass


class CategoryRepository(ABC):
    @abstractmethod
    async def get_by_id(self, category_id: str) -> Optional[Category]:
        pass

    @abstractmethod
    async def list(self, offset: int, limit: int) -> List[Category]:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def create(self, category: Category) -> None:
        pass


class CartRepository(ABC):
    @abstractmethod
    async def get(self, owner: Union[UserOwner, GuestOwner]) -> Optional[Cart]:
        pass

    @abstractmethod
    async def add_item(self, owner: Union[UserOwner, GuestOwner], product_id: str, quantity: int) -> None:
        """Upsert по владельцу корзины: создает корзину и позицию или суммирует количество"""
        pass

    @abstractmethod
    async def remove_item(self, owner: Union[UserOwner, GuestOwner], product_id: str) -> bool:
        pass

    @abstractmethod
    async def adjust_item(self, owner: Union[UserOwner, GuestOwner], product_id: str, delta: int) -> Optional[int]:
        """Новое количество, 0 если позиция удалена, None если позиции нет"""
        pass

    @abstractmethod
    async def reassign(self, guest: GuestOwner, user: UserOwner) -> None:
        pass

    @abstractmethod
    async def delete(self, owner: Union[UserOwner, GuestOwner]) -> bool:
        pass


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order) -> None:
        pass

    @abstractmethod
    async def update_status(
        self, order_id: str, status: OrderStatus, expected: Optional[OrderStatus] = None
    ) -> Optional[Order]:
        """None, если заказа нет или (при expected) его статус уже другой"""
        pass


class AbstractUnitOfWork(ABC):
    """Репозитории одной транзакции; изменения без commit() откатываются"""
    products: ProductRepository
    categories: CategoryRepository
    carts: CartRepository
    orders: OrderRepository

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class IdentityGate(ABC):
    @abstractmethod
    def verify(self, token: str) -> Principal:
        """Возвращает Principal или бросает UnauthenticatedError"""
        pass
