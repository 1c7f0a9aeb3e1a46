import logging

from storefront.domain.models import Order, OrderLine, UserOwner
from storefront.domain.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    ProductNotFoundError,
)


logger = logging.getLogger(__name__)


class CheckoutUseCase:
    """
    Оформление заказа из корзины пользователя.

    Все шаги выполняются в одной транзакции: проверка остатков, списание,
    создание заказа и удаление корзины. Списание условное (stock >= quantity),
    поэтому при гонке двух оформлений проигравшее откатывается целиком.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, user_id: str) -> Order:
        owner = UserOwner(user_id=user_id)
        logger.info(f"Оформление заказа для пользователя {user_id}")

        async with self._uow() as uow:
            # 1. Корзина
            cart = await uow.carts.get(owner)
            if not cart or cart.is_empty():
                raise EmptyCartError()

            # 2. Проверка остатков до любых изменений
            lines = []
            for item in cart.items:
                product = await uow.products.get_by_id(item.product_id)
                if not product:
                    raise ProductNotFoundError(item.product_id)
                if not product.has_stock_for(item.quantity):
                    logger.warning(
                        f"Недостаточно товара {product.id}: доступно {product.stock}, требуется {item.quantity}"
                    )
                    raise InsufficientStockError(product.name, product.stock, item.quantity)
                # 3. Цена фиксируется сейчас
                lines.append(OrderLine(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=item.quantity,
                    price=product.price,
                ))

            # 4. Условное списание; неудача откатывает уже списанное в этой транзакции
            for line in lines:
                if not await uow.products.decrement_stock(line.product_id, line.quantity):
                    product = await uow.products.get_by_id(line.product_id)
                    available = product.stock if product else 0
                    logger.warning(f"Товар {line.product_id} раскуплен во время оформления, откат")
                    raise InsufficientStockError(line.product_name, available, line.quantity)

            # 5. Заказ
            order = Order.place(user_id, lines)
            await uow.orders.create(order)

            # 6. Корзина больше не нужна
            await uow.carts.delete(owner)

            await uow.commit()
            logger.info(f"Заказ создан: {order.id}, сумма {order.total_amount}")

        return order
