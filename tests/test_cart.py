"""Tests for the in-memory cart."""

import pytest
from bson import ObjectId

import cart_store


@pytest.fixture
def mat(make_product):
    return make_product(name="Yoga Mat", price=100.0, stock=10)


@pytest.fixture
def lamp(make_product):
    return make_product(name="Desk Lamp", price=25.5, stock=5, category="Home")


def test_empty_cart(client, customer_headers):
    response = client.get("/api/cart", headers=customer_headers)

    assert response.status_code == 200
    assert response.json()["cart"] == {"items": [], "total": 0}


def test_cart_requires_auth(client):
    assert client.get("/api/cart").status_code == 401


def test_add_uses_product_price(client, customer_headers, mat):
    response = client.post("/api/cart/add", json={"product_id": mat, "quantity": 2}, headers=customer_headers)

    assert response.status_code == 200
    cart = response.json()["cart"]
    assert cart["items"] == [
        {"product_id": mat, "name": "Yoga Mat", "price": 100.0, "image": "https://example.com/img.png", "quantity": 2}
    ]
    assert cart["total"] == 200.0


def test_adding_same_product_increments_quantity(client, customer_headers, mat, lamp):
    client.post("/api/cart/add", json={"product_id": mat}, headers=customer_headers)
    client.post("/api/cart/add", json={"product_id": lamp, "quantity": 2}, headers=customer_headers)
    cart = client.post("/api/cart/add", json={"product_id": mat, "quantity": 3}, headers=customer_headers).json()["cart"]

    assert [(i["product_id"], i["quantity"]) for i in cart["items"]] == [(mat, 4), (lamp, 2)]
    assert cart["total"] == 451.0


def test_add_unknown_product(client, customer_headers):
    response = client.post("/api/cart/add", json={"product_id": str(ObjectId())}, headers=customer_headers)
    assert response.status_code == 404


def test_add_rejects_zero_quantity(client, customer_headers, mat):
    response = client.post("/api/cart/add", json={"product_id": mat, "quantity": 0}, headers=customer_headers)
    assert response.status_code == 422


def test_update_quantity_recomputes_total(client, customer_headers, mat, lamp):
    client.post("/api/cart/add", json={"product_id": mat}, headers=customer_headers)
    client.post("/api/cart/add", json={"product_id": lamp}, headers=customer_headers)

    response = client.put(f"/api/cart/item/{lamp}", json={"quantity": 4}, headers=customer_headers)

    assert response.status_code == 200
    assert response.json()["cart"]["total"] == 202.0


def test_update_without_cart(client, customer_headers, mat):
    response = client.put(f"/api/cart/item/{mat}", json={"quantity": 2}, headers=customer_headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Cart not found"


def test_update_missing_item(client, customer_headers, mat, lamp):
    client.post("/api/cart/add", json={"product_id": mat}, headers=customer_headers)

    response = client.put(f"/api/cart/item/{lamp}", json={"quantity": 2}, headers=customer_headers)

    assert response.status_code == 404
    assert response.json()["detail"] == "Item not found in cart"


def test_remove_item(client, customer_headers, mat, lamp):
    client.post("/api/cart/add", json={"product_id": mat}, headers=customer_headers)
    client.post("/api/cart/add", json={"product_id": lamp}, headers=customer_headers)

    cart = client.delete(f"/api/cart/item/{mat}", headers=customer_headers).json()["cart"]

    assert [i["product_id"] for i in cart["items"]] == [lamp]
    assert cart["total"] == 25.5


def test_remove_without_cart(client, customer_headers, mat):
    assert client.delete(f"/api/cart/item/{mat}", headers=customer_headers).status_code == 404


def test_clear_cart(client, customer_headers, mat):
    client.post("/api/cart/add", json={"product_id": mat}, headers=customer_headers)

    assert client.delete("/api/cart", headers=customer_headers).status_code == 200
    assert client.get("/api/cart", headers=customer_headers).json()["cart"] == {"items": [], "total": 0}


def test_carts_are_per_user(client, customer_headers, other_customer, headers_for, mat):
    client.post("/api/cart/add", json={"product_id": mat}, headers=customer_headers)

    other = client.get("/api/cart", headers=headers_for(other_customer)).json()["cart"]

    assert other["items"] == []


def test_store_returns_copies():
    cart_store.reset()
    cart_store.add_item("u1", "p1", "Thing", 10.0, None, 1)

    cart = cart_store.get_cart("u1")
    cart["items"].clear()

    assert len(cart_store.get_cart("u1")["items"]) == 1
    cart_store.reset()


def test_discard_items_keeps_other_lines():
    cart_store.reset()
    cart_store.add_item("u1", "p1", "Thing", 10.0, None, 1)
    cart_store.add_item("u1", "p2", "Other", 4.5, None, 2)

    cart_store.discard_items("u1", ["p1"])
    cart_store.discard_items("nobody", ["p1"])

    cart = cart_store.get_cart("u1")
    assert [i["product_id"] for i in cart["items"]] == ["p2"]
    assert cart["total"] == 9.0
    cart_store.reset()
