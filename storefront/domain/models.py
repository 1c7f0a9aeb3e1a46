import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.exceptions import (
    CartItemNotFoundError,
    InvalidArgumentError,
    InvalidIdentityError,
)

# Точность совпадает с колонками Numeric(12, 2) и Numeric(10, 3)
Price = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]
Weight = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=3)]


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Principal(BaseModel):
    """Проверенная личность (user id + роль), которую выдает IdentityGate"""
    model_config = ConfigDict(frozen=True)

    id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class Category(BaseModel):
    id: str
    name: str
    is_exclusive: bool = False
    created_at: Optional[datetime] = None


class Product(BaseModel):
    """Domain Entity — товар каталога"""
    id: str
    name: str
    price: Price
    stock: int = Field(default=0, ge=0)
    category_id: str
    old_price: Optional[Price] = None
    weight: Optional[Weight] = None
    is_exclusive: bool = False
    image_url: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def has_stock_for(self, quantity: int) -> bool:
        return self.stock >= quantity


class UserOwner(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    user_id: str

    def __str__(self):
        return f"user:{self.user_id}"


class GuestOwner(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["guest"] = "guest"
    session_id: str

    def __str__(self):
        return f"guest:{self.session_id}"


# Корзина принадлежит либо пользователю, либо гостевой сессии, никогда обоим
CartOwner = Annotated[Union[UserOwner, GuestOwner], Field(discriminator="kind")]


def resolve_owner(user_id: Optional[str], session_id: Optional[str]) -> Union[UserOwner, GuestOwner]:
    """Авторизованный пользователь имеет приоритет над sessionId"""
    if user_id:
        return UserOwner(user_id=user_id)
    if session_id:
        return GuestOwner(session_id=session_id)
    raise InvalidIdentityError()


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class Cart(BaseModel):
    """
    Агрегат корзины: читается и пишется целиком.
    Не более одной позиции на product_id, количество всегда >= 1.
    Корзина без id это пустая заглушка, еще не сохраненная в БД.
    """
    id: Optional[str] = None
    owner: CartOwner
    items: list[CartItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def empty(cls, owner: Union[UserOwner, GuestOwner]) -> "Cart":
        return cls(owner=owner)

    @property
    def user_id(self) -> Optional[str]:
        return self.owner.user_id if isinstance(self.owner, UserOwner) else None

    @property
    def session_id(self) -> Optional[str]:
        return self.owner.session_id if isinstance(self.owner, GuestOwner) else None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def is_empty(self) -> bool:
        return not self.items

    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    def find_item(self, product_id: str) -> Optional[CartItem]:
        return next((i for i in self.items if i.product_id == product_id), None)

    def add_item(self, product_id: str, quantity: int) -> CartItem:
        """Добавить товар (или увеличить количество, если он уже в корзине)"""
        if quantity < 1:
            raise InvalidArgumentError("Quantity must be a positive integer")

        existing = self.find_item(product_id)
        if existing:
            existing.quantity += quantity
            return existing

        item = CartItem(product_id=product_id, quantity=quantity)
        self.items.append(item)
        return item

    def remove_item(self, product_id: str) -> bool:
        before = len(self.items)
        self.items = [i for i in self.items if i.product_id != product_id]
        return len(self.items) != before

    def adjust_quantity(self, product_id: str, delta: int) -> int:
        """Изменить количество на +1/-1. Возвращает новое количество (0, если позиция удалена)"""
        if delta not in (1, -1):
            raise InvalidArgumentError("Quantity can only be increased or decreased by one")

        item = self.find_item(product_id)
        if item is None:
            raise CartItemNotFoundError(product_id)

        new_quantity = item.quantity + delta
        if new_quantity < 1:
            self.remove_item(product_id)
            return 0
        item.quantity = new_quantity
        return new_quantity


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class OrderLine(BaseModel):
    """Позиция заказа, цена зафиксирована в момент оформления"""
    model_config = ConfigDict(frozen=True)

    product_id: str
    product_name: str
    quantity: int = Field(ge=1)
    price: Decimal = Field(ge=0)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class Order(BaseModel):
    """Domain Entity — заказ, после создания не меняется (кроме статуса через репозиторий)"""
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    items: tuple[OrderLine, ...]
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def place(cls, user_id: str, lines: list[OrderLine]) -> "Order":
        now = datetime.now(timezone.utc)
        return cls(
            id=str(uuid.uuid4()),
            user_id=user_id,
            items=tuple(lines),
            total_amount=sum((line.subtotal for line in lines), Decimal("0")),
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    def can_be_cancelled(self) -> bool:
        """Бизнес-правило: пользователь может отменить только Pending заказ"""
        return self.status == OrderStatus.PENDING
