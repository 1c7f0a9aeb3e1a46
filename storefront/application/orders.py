import logging
from typing import List

from storefront.domain.models import Order, OrderStatus
from storefront.domain.exceptions import (
    InvalidArgumentError,
    InvalidOrderStateError,
    OrderNotFoundError,
)


logger = logging.getLogger(__name__)


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(order_id)
            return order


class ListUserOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, user_id: str) -> List[Order]:
        async with self._uow() as uow:
            return await uow.orders.list_by_user(user_id)


class CancelOrderUseCase:
    """Отмена заказа пользователем. Товар на склад не возвращается"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(order_id)

            if not order.can_be_cancelled():
                logger.warning(f"Отмена заказа {order_id} в статусе {order.status.value} отклонена")
                raise InvalidOrderStateError("Only pending orders can be canceled")

            updated = await uow.orders.update_status(
                order_id, OrderStatus.CANCELLED, expected=OrderStatus.PENDING
            )
            if not updated:
                # Статус успел смениться после чтения
                logger.warning(f"Заказ {order_id} сменил статус во время отмены, отмена отклонена")
                raise InvalidOrderStateError("Only pending orders can be canceled")
            await uow.commit()
            logger.info(f"Заказ {order_id} отменен")
            return updated


class UpdateOrderStatusUseCase:
    """Административная смена статуса: допустим любой статус из перечня"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str, status: str) -> Order:
        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise InvalidArgumentError("Invalid status")

        async with self._uow() as uow:
            updated = await uow.orders.update_status(order_id, new_status)
            if not updated:
                raise OrderNotFoundError(order_id)
            await uow.commit()
            logger.info(f"Статус заказа {order_id} изменен на {new_status.value}")
            return updated
