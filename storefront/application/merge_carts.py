import logging

from storefront.domain.models import Cart, GuestOwner, UserOwner


logger = logging.getLogger(__name__)


class MergeCartsUseCase:
    """
    Слияние гостевой корзины в корзину пользователя при логине.

    Если у пользователя нет корзины, гостевая корзина просто меняет владельца.
    Иначе позиции переносятся (совпадающие товары суммируются), гостевая корзина удаляется.
    Повторный вызов после слияния ничего не делает.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, session_id: str, user_id: str) -> Cart:
        guest = GuestOwner(session_id=session_id)
        user = UserOwner(user_id=user_id)

        async with self._uow() as uow:
            guest_cart = await uow.carts.get(guest)
            if not guest_cart:
                logger.info(f"Гостевая корзина {guest} не найдена, слияние не требуется")
                user_cart = await uow.carts.get(user)
                return user_cart if user_cart else Cart.empty(user)

            user_cart = await uow.carts.get(user)
            if not user_cart:
                await uow.carts.reassign(guest, user)
                logger.info(f"Корзина {guest} передана пользователю {user_id}")
            else:
                for item in guest_cart.items:
                    await uow.carts.add_item(user, item.product_id, item.quantity)
                await uow.carts.delete(guest)
                logger.info(
                    f"Корзина {guest} ({len(guest_cart.items)} позиций) слита в корзину пользователя {user_id}"
                )

            await uow.commit()

            merged = await uow.carts.get(user)
            return merged if merged else Cart.empty(user)
