import uuid

from storefront.domain.models import GuestOwner, OrderStatus, Role, UserOwner


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_guest_add_issues_session_id(client, store, product):
    response = client.post("/api/cart/add", json={"productId": product.id, "quantity": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    session_id = body["sessionId"]
    assert session_id
    assert body["cart"]["items"] == [{"productId": product.id, "quantity": 2}]
    assert GuestOwner(session_id=session_id) in store.carts

    again = client.post("/api/cart/add", json={"productId": product.id, "sessionId": session_id})
    assert again.json()["sessionId"] == session_id
    assert again.json()["cart"]["totalQuantity"] == 3


def test_authenticated_user_wins_over_session(client, store, user_id, product, auth_headers):
    response = client.post(
        "/api/cart/add",
        json={"productId": product.id, "sessionId": "ignored-session"},
        headers=auth_headers(user_id)
    )

    assert response.status_code == 200
    assert response.json()["cart"]["userId"] == user_id
    assert response.json()["sessionId"] is None
    assert UserOwner(user_id=user_id) in store.carts
    assert GuestOwner(session_id="ignored-session") not in store.carts


def test_add_with_invalid_product_id(client):
    response = client.post("/api/cart/add", json={"productId": "not-a-uuid"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid product ID"}


def test_add_unknown_product(client):
    response = client.post("/api/cart/add", json={"productId": str(uuid.uuid4()), "sessionId": "s-1"})

    assert response.status_code == 404
    assert response.json()["message"] == "Product not found"


def test_add_with_zero_quantity(client, product):
    response = client.post("/api/cart/add", json={"productId": product.id, "quantity": 0, "sessionId": "s-1"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_add_without_product_is_validation_error(client):
    response = client.post("/api/cart/add", json={"quantity": 1})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "productId" in response.json()["message"]


def test_get_cart_requires_token(client):
    response = client.get("/api/cart")

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, no token"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_get_cart_with_invalid_token(client):
    response = client.get("/api/cart", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_get_user_cart_placeholder(client, user_id, auth_headers):
    response = client.get("/api/cart", headers=auth_headers(user_id))

    assert response.status_code == 200
    cart = response.json()["cart"]
    assert cart["id"] is None
    assert cart["userId"] == user_id
    assert cart["items"] == []


def test_guest_cart_requires_session_id(client):
    response = client.get("/api/cart/guest")

    assert response.status_code == 400
    assert response.json()["message"] == "sessionId is required"


def test_increase_decrease_remove_clear(client, store, make_product):
    first, second = make_product(name="First"), make_product(name="Second")
    for product in (first, second):
        client.post("/api/cart/add", json={"productId": product.id, "sessionId": "s-1"})

    response = client.put("/api/cart/increase", json={"productId": first.id, "sessionId": "s-1"})
    assert response.status_code == 200
    assert response.json()["cart"]["items"][0] == {"productId": first.id, "quantity": 2}

    response = client.put("/api/cart/decrease", json={"productId": second.id, "sessionId": "s-1"})
    assert [i["productId"] for i in response.json()["cart"]["items"]] == [first.id]

    response = client.put("/api/cart/decrease", json={"productId": second.id, "sessionId": "s-1"})
    assert response.status_code == 404
    assert response.json()["message"] == "Item not found in cart"

    response = client.request("DELETE", "/api/cart/remove", json={"productId": first.id, "sessionId": "s-1"})
    assert response.status_code == 200
    assert response.json()["cart"]["items"] == []

    response = client.delete("/api/cart/clear", params={"sessionId": "s-1"})
    assert response.json() == {"success": True, "message": "Cart cleared"}
    assert GuestOwner(session_id="s-1") not in store.carts


def test_cart_operation_without_identity(client, product):
    response = client.put("/api/cart/increase", json={"productId": product.id})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_merge_on_login(client, user_id, product, auth_headers):
    client.post("/api/cart/add", json={"productId": product.id, "quantity": 2, "sessionId": "s-merge"})
    client.post("/api/cart/add", json={"productId": product.id}, headers=auth_headers(user_id))

    response = client.post("/api/cart/merge", json={"sessionId": "s-merge"}, headers=auth_headers(user_id))

    assert response.status_code == 200
    assert response.json()["cart"]["items"] == [{"productId": product.id, "quantity": 3}]
    guest = client.get("/api/cart/guest", params={"sessionId": "s-merge"}).json()["cart"]
    assert guest["items"] == [] and guest["id"] is None


def test_merge_requires_token(client):
    response = client.post("/api/cart/merge", json={"sessionId": "s-merge"})

    assert response.status_code == 401


def test_checkout_and_order_lifecycle(client, store, user_id, make_product, auth_headers):
    product = make_product(price="10.00", stock=5)
    client.post("/api/cart/add", json={"productId": product.id, "quantity": 3}, headers=auth_headers(user_id))

    response = client.post("/api/orders/checkout", json={"userId": user_id})

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Order placed successfully"
    order = body["order"]
    assert order["status"] == "Pending"
    assert order["totalAmount"] == 30.0
    assert order["items"][0]["price"] == 10.0
    assert order["items"][0]["productName"] == "Dark chocolate"
    assert store.products[product.id].stock == 2

    listed = client.get(f"/api/orders/{user_id}").json()
    assert listed["count"] == 1
    assert listed["orders"][0]["id"] == order["id"]

    fetched = client.get(f"/api/orders/order/{order['id']}")
    assert fetched.status_code == 200

    cancelled = client.put(f"/api/orders/cancel/{order['id']}")
    assert cancelled.json()["order"]["status"] == "Cancelled"
    assert store.products[product.id].stock == 2

    again = client.put(f"/api/orders/cancel/{order['id']}")
    assert again.status_code == 400
    assert again.json()["message"] == "Only pending orders can be canceled"


def test_checkout_finds_cart_of_uppercase_token_subject(client, store, user_id, product, auth_headers):
    added = client.post("/api/cart/add", json={"productId": product.id}, headers=auth_headers(user_id.upper()))
    assert added.json()["cart"]["userId"] == user_id

    response = client.post("/api/orders/checkout", json={"userId": user_id.upper()})

    assert response.status_code == 201
    assert response.json()["order"]["userId"] == user_id
    assert UserOwner(user_id=user_id) not in store.carts


def test_token_with_non_uuid_subject(client, product, auth_headers):
    response = client.post("/api/cart/add", json={"productId": product.id}, headers=auth_headers("alice"))

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_checkout_with_empty_cart(client, user_id):
    response = client.post("/api/orders/checkout", json={"userId": user_id})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Cart is empty"}


def test_checkout_with_insufficient_stock(client, store, user_id, make_product, auth_headers):
    product = make_product(name="Truffle", stock=1)
    client.post("/api/cart/add", json={"productId": product.id, "quantity": 2}, headers=auth_headers(user_id))

    response = client.post("/api/orders/checkout", json={"userId": user_id})

    assert response.status_code == 400
    assert response.json()["message"] == "Not enough stock for Truffle. Available: 1"
    assert store.products[product.id].stock == 1


def test_get_missing_order(client):
    response = client.get(f"/api/orders/order/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["message"] == "Order not found"


def test_update_status_requires_admin(client, store, user_id, product, auth_headers):
    client.post("/api/cart/add", json={"productId": product.id}, headers=auth_headers(user_id))
    order_id = client.post("/api/orders/checkout", json={"userId": user_id}).json()["order"]["id"]

    forbidden = client.put(f"/api/orders/update/{order_id}", json={"status": "Shipped"}, headers=auth_headers(user_id))
    assert forbidden.status_code == 403
    assert forbidden.json()["message"] == "Access denied"

    admin = auth_headers(str(uuid.uuid4()), Role.ADMIN)
    invalid = client.put(f"/api/orders/update/{order_id}", json={"status": "Lost"}, headers=admin)
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Invalid status"

    shipped = client.put(f"/api/orders/update/{order_id}", json={"status": "Shipped"}, headers=admin)
    assert shipped.status_code == 200
    assert store.orders[order_id].status == OrderStatus.SHIPPED


def test_products_listing_and_detail(client, make_product):
    for i in range(3):
        make_product(name=f"Bar {i}")
    exclusive = make_product(name="Gold", is_exclusive=True, old_price="15.00")

    response = client.get("/api/products", params={"page": 1, "limit": 2})
    body = response.json()
    assert body["totalProducts"] == 4
    assert body["totalPages"] == 2
    assert body["count"] == 2

    response = client.get("/api/products", params={"isExclusive": "true"})
    assert [p["id"] for p in response.json()["products"]] == [exclusive.id]
    assert response.json()["products"][0]["oldPrice"] == 15.0

    response = client.get(f"/api/products/{exclusive.id}")
    assert response.json()["product"]["name"] == "Gold"
    assert response.json()["product"]["category"] == exclusive.category_id


def test_products_listing_rejects_bad_limit(client):
    response = client.get("/api/products", params={"limit": 1000})

    assert response.status_code == 400


def test_admin_manages_products(client, store, category, auth_headers):
    admin = auth_headers(str(uuid.uuid4()), Role.ADMIN)

    created = client.post(
        "/api/products",
        json={"name": "Hazelnut", "price": "4.20", "category": category.id, "stock": 3},
        headers=admin
    )
    assert created.status_code == 201
    product_id = created.json()["product"]["id"]
    assert store.products[product_id].stock == 3

    updated = client.put(f"/api/products/{product_id}", json={"stock": 30}, headers=admin)
    assert updated.json()["product"]["stock"] == 30

    deleted = client.delete(f"/api/products/{product_id}", headers=admin)
    assert deleted.json() == {"success": True, "message": "Product deleted"}
    assert client.get(f"/api/products/{product_id}").status_code == 404


def test_price_with_too_many_decimal_places(client, store, category, product, auth_headers):
    admin = auth_headers(str(uuid.uuid4()), Role.ADMIN)

    created = client.post(
        "/api/products",
        json={"name": "Fraction", "price": "10.005", "category": category.id},
        headers=admin
    )
    updated = client.put(f"/api/products/{product.id}", json={"weight": "0.1255"}, headers=admin)

    assert created.status_code == 400
    assert created.json()["success"] is False
    assert "price" in created.json()["message"]
    assert updated.status_code == 400
    assert [p.name for p in store.products.values()] == [product.name]


def test_product_changes_require_admin(client, user_id, product, auth_headers):
    assert client.delete(f"/api/products/{product.id}").status_code == 401
    assert client.delete(f"/api/products/{product.id}", headers=auth_headers(user_id)).status_code == 403


def test_create_product_in_unknown_category(client, auth_headers):
    response = client.post(
        "/api/products",
        json={"name": "Orphan", "price": "1", "category": str(uuid.uuid4())},
        headers=auth_headers(str(uuid.uuid4()), Role.ADMIN)
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Category not found"


def test_categories(client, category, auth_headers):
    created = client.post(
        "/api/categories",
        json={"name": "Pralines", "isExclusive": True},
        headers=auth_headers(str(uuid.uuid4()), Role.ADMIN)
    )
    assert created.status_code == 201
    assert created.json()["category"]["isExclusive"] is True

    listed = client.get("/api/categories").json()
    assert listed["totalCategories"] == 2
    assert [c["name"] for c in listed["categories"]] == ["Chocolate", "Pralines"]
