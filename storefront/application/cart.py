import logging
from typing import Union

from pydantic import BaseModel

from storefront.domain.models import Cart, GuestOwner, UserOwner
from storefront.domain.exceptions import (
    CartItemNotFoundError,
    InvalidArgumentError,
    ProductNotFoundError,
)


logger = logging.getLogger(__name__)

Owner = Union[UserOwner, GuestOwner]


class AddToCartDTO(BaseModel):
    owner: Owner
    product_id: str
    quantity: int


async def _load_cart(uow, owner: Owner) -> Cart:
    cart = await uow.carts.get(owner)
    return cart if cart else Cart.empty(owner)


class ResolveCartUseCase:
    """Существующая корзина владельца или пустая несохраненная заглушка"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, owner: Owner) -> Cart:
        async with self._uow() as uow:
            return await _load_cart(uow, owner)


class AddToCartUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: AddToCartDTO) -> Cart:
        # Наличие на складе здесь не проверяется: корзина не резервирует товар
        if dto.quantity < 1:
            raise InvalidArgumentError("Quantity must be a positive integer")

        async with self._uow() as uow:
            product = await uow.products.get_by_id(dto.product_id)
            if not product:
                raise ProductNotFoundError(dto.product_id)

            await uow.carts.add_item(dto.owner, dto.product_id, dto.quantity)
            await uow.commit()
            logger.info(f"Товар {dto.product_id} x{dto.quantity} добавлен в корзину {dto.owner}")

            return await _load_cart(uow, dto.owner)


class RemoveFromCartUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, owner: Owner, product_id: str) -> Cart:
        async with self._uow() as uow:
            removed = await uow.carts.remove_item(owner, product_id)
            await uow.commit()
            if removed:
                logger.info(f"Товар {product_id} удален из корзины {owner}")

            return await _load_cart(uow, owner)


class AdjustCartItemUseCase:
    """Увеличение/уменьшение количества на единицу; при 0 позиция удаляется"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, owner: Owner, product_id: str, delta: int) -> Cart:
        if delta not in (1, -1):
            raise InvalidArgumentError("Quantity can only be increased or decreased by one")

        async with self._uow() as uow:
            quantity = await uow.carts.adjust_item(owner, product_id, delta)
            if quantity is None:
                raise CartItemNotFoundError(product_id)
            await uow.commit()

            if quantity == 0:
                logger.info(f"Товар {product_id} удален из корзины {owner} (количество 0)")
            else:
                logger.info(f"Количество товара {product_id} в корзине {owner}: {quantity}")

            return await _load_cart(uow, owner)


class ClearCartUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, owner: Owner) -> bool:
        async with self._uow() as uow:
            deleted = await uow.carts.delete(owner)
            await uow.commit()
            if deleted:
                logger.info(f"Корзина {owner} очищена")
            return deleted
