from fastapi import APIRouter, Depends, status

from storefront.application.checkout import CheckoutUseCase
from storefront.application.orders import (
    CancelOrderUseCase,
    GetOrderUseCase,
    ListUserOrdersUseCase,
    UpdateOrderStatusUseCase,
)
from storefront.domain.models import Principal
from storefront.presentation.dependencies import ensure_id, get_admin_principal, get_unit_of_work
from storefront.presentation.schemas import (
    CheckoutRequest, ErrorResponse, OrderEnvelope, OrderResponse, OrdersEnvelope,
    UpdateOrderStatusRequest,
)

router = APIRouter(prefix="/orders", tags=["orders"])


# Фабрики для создания use cases
def get_checkout_use_case(uow=Depends(get_unit_of_work)):
    return CheckoutUseCase(uow)


def get_get_order_use_case(uow=Depends(get_unit_of_work)):
    return GetOrderUseCase(uow)


def get_list_user_orders_use_case(uow=Depends(get_unit_of_work)):
    return ListUserOrdersUseCase(uow)


def get_cancel_order_use_case(uow=Depends(get_unit_of_work)):
    return CancelOrderUseCase(uow)


def get_update_order_status_use_case(uow=Depends(get_unit_of_work)):
    return UpdateOrderStatusUseCase(uow)


@router.post(
    "/checkout",
    response_model=OrderEnvelope,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def checkout(
    request: CheckoutRequest,
    use_case: CheckoutUseCase = Depends(get_checkout_use_case)
):
    """Оформить заказ из корзины пользователя"""
    order = await use_case(ensure_id(request.user_id, "user"))
    return OrderEnvelope(message="Order placed successfully", order=OrderResponse.from_domain(order))


@router.get(
    "/order/{order_id}",
    response_model=OrderEnvelope,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def get_order(
    order_id: str,
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    order = await use_case(ensure_id(order_id, "order"))
    return OrderEnvelope(order=OrderResponse.from_domain(order))


@router.get(
    "/{user_id}",
    response_model=OrdersEnvelope,
    responses={400: {"model": ErrorResponse}}
)
async def list_user_orders(
    user_id: str,
    use_case: ListUserOrdersUseCase = Depends(get_list_user_orders_use_case)
):
    """Заказы пользователя, новые первыми"""
    orders = await use_case(ensure_id(user_id, "user"))
    return OrdersEnvelope(count=len(orders), orders=[OrderResponse.from_domain(o) for o in orders])


@router.put(
    "/cancel/{order_id}",
    response_model=OrderEnvelope,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def cancel_order(
    order_id: str,
    use_case: CancelOrderUseCase = Depends(get_cancel_order_use_case)
):
    order = await use_case(ensure_id(order_id, "order"))
    return OrderEnvelope(message="Order cancelled successfully", order=OrderResponse.from_domain(order))


@router.put(
    "/update/{order_id}",
    response_model=OrderEnvelope,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    admin: Principal = Depends(get_admin_principal),
    use_case: UpdateOrderStatusUseCase = Depends(get_update_order_status_use_case)
):
    """Смена статуса заказа (администратор)"""
    order = await use_case(ensure_id(order_id, "order"), request.status)
    return OrderEnvelope(message="Order status updated", order=OrderResponse.from_domain(order))
