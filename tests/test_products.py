"""Tests for the public catalog and admin product management."""

import pytest
from bson import ObjectId


@pytest.fixture
def catalog(make_product):
    return {
        "mat": make_product(name="Yoga Mat", price=929.99, category="Sports", rating=4.6),
        "shoes": make_product(name="Running Shoes", price=2289.99, category="Sports", rating=4.7),
        "lamp": make_product(name="Desk Lamp", price=739.99, category="Home", rating=4.3),
        "hidden": make_product(name="Old Lamp", price=10.0, category="Attic", is_active=False),
    }


class TestListProducts:
    def test_lists_only_active_products(self, client, catalog):
        data = client.get("/api/products").json()

        names = {p["name"] for p in data["products"]}
        assert names == {"Yoga Mat", "Running Shoes", "Desk Lamp"}
        assert data["total"] == 3
        assert data["categories"] == ["Home", "Sports"]

    def test_filters_by_category(self, client, catalog):
        data = client.get("/api/products", params={"category": "Sports"}).json()
        assert {p["name"] for p in data["products"]} == {"Yoga Mat", "Running Shoes"}

    def test_filters_by_price_range(self, client, catalog):
        data = client.get("/api/products", params={"min_price": 800, "max_price": 1000}).json()
        assert [p["name"] for p in data["products"]] == ["Yoga Mat"]

    def test_search_is_case_insensitive(self, client, catalog):
        data = client.get("/api/products", params={"search": "lamp"}).json()
        assert [p["name"] for p in data["products"]] == ["Desk Lamp"]

    def test_search_treats_input_literally(self, client, catalog):
        response = client.get("/api/products", params={"search": "(["})

        assert response.status_code == 200
        assert response.json()["products"] == []

    def test_sorts_by_price(self, client, catalog):
        data = client.get("/api/products", params={"sort": "price_asc"}).json()
        assert [p["name"] for p in data["products"]] == ["Desk Lamp", "Yoga Mat", "Running Shoes"]

        data = client.get("/api/products", params={"sort": "price_desc"}).json()
        assert [p["name"] for p in data["products"]] == ["Running Shoes", "Yoga Mat", "Desk Lamp"]

    def test_paginates(self, client, catalog):
        data = client.get("/api/products", params={"limit": 2, "page": 2, "sort": "price_asc"}).json()

        assert data["pages"] == 2
        assert data["current_page"] == 2
        assert [p["name"] for p in data["products"]] == ["Running Shoes"]


class TestGetProduct:
    def test_returns_product_with_related(self, client, catalog):
        data = client.get(f"/api/products/{catalog['mat']}").json()

        assert data["product"]["id"] == catalog["mat"]
        assert [r["name"] for r in data["related_products"]] == ["Running Shoes"]

    def test_inactive_product_is_not_found(self, client, catalog):
        assert client.get(f"/api/products/{catalog['hidden']}").status_code == 404

    def test_malformed_id_is_not_found(self, client):
        assert client.get("/api/products/not-an-id").status_code == 404

    def test_unknown_id_is_not_found(self, client):
        assert client.get(f"/api/products/{ObjectId()}").status_code == 404


class TestManageProducts:
    payload = {
        "name": "Coffee Maker",
        "description": "12-cup drip",
        "price": 879.989,
        "category": "Home",
        "image": "https://example.com/coffee.png",
        "stock": 20,
    }

    def test_admin_creates_product_with_rounded_price(self, client, admin_headers):
        response = client.post("/api/products", json=self.payload, headers=admin_headers)

        assert response.status_code == 201
        product = response.json()["product"]
        assert product["price"] == 879.99
        assert product["is_active"] is True

    def test_customer_cannot_create_product(self, client, customer_headers):
        response = client.post("/api/products", json=self.payload, headers=customer_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    def test_anonymous_cannot_create_product(self, client):
        assert client.post("/api/products", json=self.payload).status_code == 401

    def test_rejects_negative_stock(self, client, admin_headers):
        response = client.post("/api/products", json={**self.payload, "stock": -1}, headers=admin_headers)
        assert response.status_code == 422

    def test_admin_updates_product(self, client, admin_headers, catalog):
        response = client.put(f"/api/products/{catalog['lamp']}", json={"price": 699.5, "stock": 3}, headers=admin_headers)

        assert response.status_code == 200
        product = response.json()["product"]
        assert product["price"] == 699.5
        assert product["stock"] == 3
        assert product["name"] == "Desk Lamp"

    def test_update_unknown_product(self, client, admin_headers):
        response = client.put(f"/api/products/{ObjectId()}", json={"price": 1}, headers=admin_headers)
        assert response.status_code == 404

    def test_admin_deletes_product(self, client, admin_headers, catalog):
        assert client.delete(f"/api/products/{catalog['lamp']}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/products/{catalog['lamp']}").status_code == 404
        assert client.delete(f"/api/products/{catalog['lamp']}", headers=admin_headers).status_code == 404
