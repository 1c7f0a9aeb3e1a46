import pytest

from storefront.application.cart import AddToCartDTO, AddToCartUseCase
from storefront.application.merge_carts import MergeCartsUseCase
from storefront.domain.models import GuestOwner, UserOwner

SESSION_ID = "4b1c6c1e-guest"


async def add(uow, owner, product_id, quantity):
    await AddToCartUseCase(uow)(AddToCartDTO(owner=owner, product_id=product_id, quantity=quantity))


@pytest.mark.asyncio
async def test_guest_cart_is_reowned_when_user_has_none(uow, store, user_id, product):
    guest, user = GuestOwner(session_id=SESSION_ID), UserOwner(user_id=user_id)
    await add(uow, guest, product.id, 2)
    guest_cart_id = store.carts[guest].id

    merged = await MergeCartsUseCase(uow)(SESSION_ID, user_id)

    assert merged.user_id == user_id
    assert merged.session_id is None
    assert merged.id == guest_cart_id
    assert [(i.product_id, i.quantity) for i in merged.items] == [(product.id, 2)]
    assert guest not in store.carts
    assert user in store.carts


@pytest.mark.asyncio
async def test_guest_items_are_folded_into_existing_user_cart(uow, store, user_id, make_product):
    shared, guest_only, user_only = make_product(name="A"), make_product(name="B"), make_product(name="C")
    guest, user = GuestOwner(session_id=SESSION_ID), UserOwner(user_id=user_id)
    await add(uow, user, shared.id, 1)
    await add(uow, user, user_only.id, 1)
    await add(uow, guest, shared.id, 2)
    await add(uow, guest, guest_only.id, 5)

    merged = await MergeCartsUseCase(uow)(SESSION_ID, user_id)

    assert {i.product_id: i.quantity for i in merged.items} == {
        shared.id: 3,
        user_only.id: 1,
        guest_only.id: 5,
    }
    assert guest not in store.carts


@pytest.mark.asyncio
async def test_merge_is_idempotent(uow, user_id, product):
    guest = GuestOwner(session_id=SESSION_ID)
    await add(uow, guest, product.id, 2)
    merge = MergeCartsUseCase(uow)

    first = await merge(SESSION_ID, user_id)
    second = await merge(SESSION_ID, user_id)

    assert second.items == first.items
    assert second.items[0].quantity == 2


@pytest.mark.asyncio
async def test_merge_without_any_cart_returns_empty_placeholder(uow, store, user_id):
    merged = await MergeCartsUseCase(uow)(SESSION_ID, user_id)

    assert merged.is_empty()
    assert merged.user_id == user_id
    assert not store.carts
