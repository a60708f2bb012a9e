"""
Demo data

    ADMIN_EMAIL=admin@shop.com ADMIN_PASSWORD=... python seed.py

Inserts the demo catalog into an empty product collection and creates an
admin account when none exists.
"""
import logging
import os

from auth import configure_hashing, hash_password
from database import Database
from schemas import Product, User
from settings import Settings

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    {
        "name": "Gorgeous Wooden Shoes",
        "description": "Handcrafted clogs carved from a single piece of poplar.",
        "price": 49.9,
        "image": "https://images.unsplash.com/photo-1525966222134-fcfa99b8ae77",
    },
    {
        "name": "Ceramic Mug",
        "description": "12oz matte finish mug.",
        "price": 12.5,
        "image": "https://images.unsplash.com/photo-1525385133512-2f3bdd039054",
    },
    {
        "name": "Mechanical Keyboard",
        "description": "Hot-swappable RGB keyboard.",
        "price": 79.99,
        "image": "https://images.unsplash.com/photo-1516382799247-87df95d790b5",
    },
    {
        "name": "Noise Cancelling Headphones",
        "description": "Immerse in music with ANC.",
        "price": 199.99,
        "image": "https://images.unsplash.com/photo-1518443248587-30bdc8f94f04",
    },
    {
        "name": "Minimal Backpack",
        "description": "Lightweight everyday backpack.",
        "price": 49.0,
        "image": "https://images.unsplash.com/photo-1519681393784-d120267933ba",
    },
]


def seed_database(database: Database, admin_email: str, admin_password: str) -> dict:
    products = database.collection("product")
    users = database.collection("user")

    inserted = 0
    if products.count_documents({}) == 0:
        for p in DEMO_PRODUCTS:
            database.create_document("product", Product(**p))
            inserted += 1

    admin_created = False
    if users.count_documents({"role": "admin"}) == 0:
        admin = User(name="Admin", email=admin_email, password=admin_password, role="admin")
        doc = admin.model_dump(exclude={"password"})
        doc["password_hash"] = hash_password(admin.password)
        users.insert_one(doc)
        admin_created = True

    logger.info("Seeded %d products, admin created: %s", inserted, admin_created)
    return {"products": inserted, "admin_created": admin_created}


if __name__ == "__main__":
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    configure_hashing(settings.bcrypt_rounds)
    database = Database(settings.database_url, settings.database_name)
    try:
        print(seed_database(
            database,
            os.getenv("ADMIN_EMAIL", "admin@shop.com"),
            os.getenv("ADMIN_PASSWORD", "adminpassword"),
        ))
    finally:
        database.disconnect()
