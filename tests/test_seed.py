"""Tests for demo data seeding."""

from seed import SAMPLE_PRODUCTS, SAMPLE_USERS, seed_data


def test_seeds_users_and_products(db):
    result = seed_data(db)

    assert result == {"seeded": True, "users": len(SAMPLE_USERS), "products": len(SAMPLE_PRODUCTS)}
    assert db["user"].find_one({"email": "admin@example.com"})["role"] == "admin"


def test_is_idempotent(db):
    seed_data(db)

    result = seed_data(db)

    assert result == {"seeded": False, "users": 0, "products": 0}
    assert db["product"].count_documents({}) == len(SAMPLE_PRODUCTS)


def test_reset_clears_orders(db):
    seed_data(db)
    db["order"].insert_one({"user_id": "x", "order_items": []})

    seed_data(db, reset=True)

    assert db["order"].count_documents({}) == 0
    assert db["user"].count_documents({}) == len(SAMPLE_USERS)


def test_seeded_admin_can_log_in(client, db):
    seed_data(db)

    response = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "admin123"})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"
