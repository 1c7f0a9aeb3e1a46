import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.application.cart import (
    AddToCartDTO,
    AddToCartUseCase,
    AdjustCartItemUseCase,
    ClearCartUseCase,
    RemoveFromCartUseCase,
    ResolveCartUseCase,
)
from storefront.application.merge_carts import MergeCartsUseCase
from storefront.domain.models import GuestOwner, Principal, UserOwner, resolve_owner
from storefront.domain.exceptions import InvalidArgumentError
from storefront.presentation.dependencies import (
    ensure_id, get_optional_principal, get_principal, get_unit_of_work
)
from storefront.presentation.schemas import (
    AddToCartRequest, CartEnvelope, CartItemRequest, CartResponse, ErrorResponse,
    MergeCartRequest, MessageResponse,
)

router = APIRouter(prefix="/cart", tags=["cart"])

ERRORS = {400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


def _owner(principal: Optional[Principal], session_id: Optional[str]):
    return resolve_owner(principal.id if principal else None, session_id)


def _envelope(cart, message: Optional[str] = None) -> CartEnvelope:
    return CartEnvelope(message=message, cart=CartResponse.from_domain(cart), session_id=cart.session_id)


# Фабрики для создания use cases
def get_resolve_cart_use_case(uow=Depends(get_unit_of_work)):
    return ResolveCartUseCase(uow)


def get_add_to_cart_use_case(uow=Depends(get_unit_of_work)):
    return AddToCartUseCase(uow)


def get_remove_from_cart_use_case(uow=Depends(get_unit_of_work)):
    return RemoveFromCartUseCase(uow)


def get_adjust_cart_item_use_case(uow=Depends(get_unit_of_work)):
    return AdjustCartItemUseCase(uow)


def get_clear_cart_use_case(uow=Depends(get_unit_of_work)):
    return ClearCartUseCase(uow)


def get_merge_carts_use_case(uow=Depends(get_unit_of_work)):
    return MergeCartsUseCase(uow)


@router.post("/add", response_model=CartEnvelope, responses=ERRORS)
async def add_to_cart(
    request: AddToCartRequest,
    principal: Optional[Principal] = Depends(get_optional_principal),
    use_case: AddToCartUseCase = Depends(get_add_to_cart_use_case)
):
    """Добавить товар в корзину. Анонимному клиенту без sessionId выдается новый"""
    product_id = ensure_id(request.product_id, "product")
    session_id = request.session_id
    if principal is None and not session_id:
        session_id = str(uuid.uuid4())

    dto = AddToCartDTO(
        owner=_owner(principal, session_id),
        product_id=product_id,
        quantity=request.quantity
    )
    cart = await use_case(dto)
    return _envelope(cart, "Product added to cart")


@router.get("", response_model=CartEnvelope, responses=ERRORS)
async def get_cart(
    principal: Principal = Depends(get_principal),
    use_case: ResolveCartUseCase = Depends(get_resolve_cart_use_case)
):
    """Корзина авторизованного пользователя (может быть пустой)"""
    cart = await use_case(UserOwner(user_id=principal.id))
    return _envelope(cart)


@router.get("/guest", response_model=CartEnvelope, responses=ERRORS)
async def get_guest_cart(
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    use_case: ResolveCartUseCase = Depends(get_resolve_cart_use_case)
):
    if not session_id:
        raise InvalidArgumentError("sessionId is required")
    cart = await use_case(GuestOwner(session_id=session_id))
    return _envelope(cart)


@router.delete("/remove", response_model=CartEnvelope, responses=ERRORS)
async def remove_from_cart(
    request: CartItemRequest,
    principal: Optional[Principal] = Depends(get_optional_principal),
    use_case: RemoveFromCartUseCase = Depends(get_remove_from_cart_use_case)
):
    cart = await use_case(_owner(principal, request.session_id), ensure_id(request.product_id, "product"))
    return _envelope(cart, "Item removed from cart")


@router.put("/increase", response_model=CartEnvelope, responses=ERRORS)
async def increase_quantity(
    request: CartItemRequest,
    principal: Optional[Principal] = Depends(get_optional_principal),
    use_case: AdjustCartItemUseCase = Depends(get_adjust_cart_item_use_case)
):
    cart = await use_case(_owner(principal, request.session_id), ensure_id(request.product_id, "product"), 1)
    return _envelope(cart, "Quantity increased")


@router.put("/decrease", response_model=CartEnvelope, responses=ERRORS)
async def decrease_quantity(
    request: CartItemRequest,
    principal: Optional[Principal] = Depends(get_optional_principal),
    use_case: AdjustCartItemUseCase = Depends(get_adjust_cart_item_use_case)
):
    cart = await use_case(_owner(principal, request.session_id), ensure_id(request.product_id, "product"), -1)
    return _envelope(cart, "Quantity decreased")


@router.delete("/clear", response_model=MessageResponse, responses=ERRORS)
async def clear_cart(
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    principal: Optional[Principal] = Depends(get_optional_principal),
    use_case: ClearCartUseCase = Depends(get_clear_cart_use_case)
):
    await use_case(_owner(principal, session_id))
    return MessageResponse(message="Cart cleared")


@router.post("/merge", response_model=CartEnvelope, responses=ERRORS)
async def merge_guest_cart(
    request: MergeCartRequest,
    principal: Principal = Depends(get_principal),
    use_case: MergeCartsUseCase = Depends(get_merge_carts_use_case)
):
    """Вызывается при логине: гостевая корзина сливается в корзину пользователя"""
    cart = await use_case(request.session_id, principal.id)
    return _envelope(cart, "Cart merged")
