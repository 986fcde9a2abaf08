"""Pytest configuration for the storefront API tests."""

import os

# Must be set before the app modules read their settings
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_ON_STARTUP", "false")
os.environ.setdefault("JWT_SECRET", "test-secret-key")

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import cart_store
from database import create_document, ensure_indexes, get_db
from main import app
from schemas import Address, Product as ProductSchema, User as UserSchema
from security import hash_password, token_for_user


@pytest.fixture
def db():
    """Return a fresh in-memory database."""
    database = mongomock.MongoClient()["storefront_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    """Return a test client wired to the in-memory database."""
    app.dependency_overrides[get_db] = lambda: db
    cart_store.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()
    cart_store.reset()


@pytest.fixture
def make_user(db):
    """Factory inserting a user and returning the stored document."""

    def _make_user(email="customer@example.com", password="secret123", role="customer", name="Test Customer", **extra):
        user = UserSchema(name=name, email=email, password_hash=hash_password(password), role=role, **extra)
        uid = create_document(db, "user", user)
        return db["user"].find_one({"_id": ObjectId(uid)})

    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user(
        address=Address(street="1 Long St", city="Cape Town", state="WC", zip_code="8001", country="South Africa"),
    )


@pytest.fixture
def other_customer(make_user):
    return make_user(email="other@example.com", name="Other Customer")


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", password="admin123", role="admin", name="Admin User")


def auth_header(user):
    return {"Authorization": f"Bearer {token_for_user(user)}"}


@pytest.fixture
def headers_for():
    """Return a function building bearer headers for a user document."""
    return auth_header


@pytest.fixture
def customer_headers(customer):
    return auth_header(customer)


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin)


@pytest.fixture
def make_product(db):
    """Factory inserting a product and returning its id as a string."""

    def _make_product(name="Yoga Mat", price=100.0, stock=10, category="Sports", **extra):
        product = ProductSchema(
            name=name,
            description=extra.pop("description", f"{name} description"),
            price=price,
            category=category,
            image=extra.pop("image", "https://example.com/img.png"),
            stock=stock,
            **extra,
        )
        return create_document(db, "product", product)

    return _make_product


@pytest.fixture
def shipping_address():
    return {"street": "9 Bree St", "city": "Cape Town", "state": "WC", "zip_code": "8001", "country": "South Africa"}
