"""Demo data for the storefront.

Idempotent: the admin account, demo customers and demo products are only
inserted when missing. ``python seed.py --reset`` wipes the collections first.
"""

import argparse
import logging
from typing import Any, Dict

from pymongo.database import Database

from database import close_db, create_document, ensure_indexes, get_db
from schemas import Address, Product as ProductSchema, User as UserSchema
from security import hash_password

logger = logging.getLogger(__name__)

IMG = "https://images.unsplash.com/{}?q=80&w=1200&auto=format&fit=crop"

SAMPLE_USERS = [
    {
        "name": "Admin User",
        "email": "admin@example.com",
        "password": "admin123",
        "role": "admin",
        "address": {"street": "123 Admin St", "city": "Admin City", "state": "AC", "zip_code": "12345", "country": "Adminland"},
        "phone": "123-456-7890",
    },
    {
        "name": "John Doe",
        "email": "john@example.com",
        "password": "user123",
        "role": "customer",
        "address": {"street": "456 User Ave", "city": "User City", "state": "UC", "zip_code": "67890", "country": "Userland"},
        "phone": "987-654-3210",
    },
]

SAMPLE_PRODUCTS = [
    {
        "name": "iPhone 15 Pro",
        "description": "Latest Apple smartphone with A17 Pro chip",
        "price": 14999.99,
        "category": "Electronics",
        "image": IMG.format("photo-1695048133142-1a20484d2569"),
        "stock": 50,
        "rating": 4.8,
        "num_reviews": 120,
        "brand": "Apple",
        "features": ["A17 Pro chip", "Titanium design", "48MP camera"],
        "colors": ["Natural Titanium", "Black Titanium"],
    },
    {
        "name": "Sony Headphones",
        "description": "Wireless noise-cancelling over-ear headphones",
        "price": 1299.99,
        "category": "Electronics",
        "image": IMG.format("photo-1518443895914-6bd2e0def5a6"),
        "stock": 100,
        "rating": 4.6,
        "num_reviews": 85,
        "brand": "Sony",
        "features": ["Active noise cancellation", "30h battery"],
    },
    {
        "name": "Nike Air Max",
        "description": "Cushioned everyday sneakers",
        "price": 3129.99,
        "category": "Fashion",
        "image": IMG.format("photo-1542291026-7eec264c27ff"),
        "stock": 200,
        "rating": 4.5,
        "num_reviews": 64,
        "brand": "Nike",
        "sizes": ["7", "8", "9", "10", "11"],
    },
    {
        "name": "Leather Backpack",
        "description": "Full-grain leather backpack for daily carry",
        "price": 789.99,
        "category": "Fashion",
        "image": IMG.format("photo-1483985988355-763728e1935b"),
        "stock": 75,
        "rating": 4.4,
        "num_reviews": 31,
    },
    {
        "name": "Coffee Maker",
        "description": "Programmable 12-cup drip coffee maker",
        "price": 879.99,
        "category": "Home",
        "image": IMG.format("photo-1495474472287-4d71bcdd2085"),
        "stock": 20,
        "rating": 4.4,
        "num_reviews": 22,
    },
    {
        "name": "Yoga Mat",
        "description": "Non-slip 6mm exercise mat",
        "price": 929.99,
        "category": "Sports",
        "image": IMG.format("photo-1601925260368-ae2f83cf8b7f"),
        "stock": 50,
        "rating": 4.6,
        "num_reviews": 40,
    },
]


def seed_data(db: Database, reset: bool = False) -> Dict[str, Any]:
    if reset:
        for name in ("user", "product", "order"):
            db[name].delete_many({})
        logger.info("Cleared existing data")

    users_created = 0
    for u in SAMPLE_USERS:
        if db["user"].find_one({"email": u["email"]}):
            continue
        user = UserSchema(
            name=u["name"],
            email=u["email"],
            password_hash=hash_password(u["password"]),
            role=u["role"],
            address=Address(**u["address"]),
            phone=u["phone"],
        )
        create_document(db, "user", user)
        users_created += 1

    products_created = 0
    # Seed products only if the collection is empty
    if db["product"].count_documents({}) == 0:
        for p in SAMPLE_PRODUCTS:
            create_document(db, "product", ProductSchema(**p))
            products_created += 1

    logger.info("Seeded %d user(s) and %d product(s)", users_created, products_created)
    return {"seeded": bool(users_created or products_created), "users": users_created, "products": products_created}


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the storefront database with demo data")
    parser.add_argument("--reset", action="store_true", help="delete users, products and orders first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    db = get_db()
    try:
        ensure_indexes(db)
        result = seed_data(db, reset=args.reset)
    finally:
        close_db()
    print(f"Seeded: {result}")
    print("Admin: admin@example.com / admin123")
    print("Customer: john@example.com / user123")


if __name__ == "__main__":
    main()
