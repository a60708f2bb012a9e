"""
pytest configuration and fixtures.
"""

import base64
from typing import Generator

import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import hash_password
from database import Database
from main import create_app
from settings import Settings


def basic_auth(email: str, password: str) -> dict:
    """Authorization header for Basic auth."""
    token = base64.b64encode(f"{email}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}", "Accept": "application/json"}


def insert_user(database: Database, name: str, email: str, password: str, role: str) -> dict:
    """Store a user directly and return its login details."""
    result = database.collection("user").insert_one({
        "name": name,
        "email": email,
        "role": role,
        "password_hash": hash_password(password),
    })
    return {
        "id": str(result.inserted_id),
        "email": email,
        "password": password,
        "role": role,
        "headers": basic_auth(email, password),
    }


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings with a throwaway public directory."""
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>Web Shop</h1>")
    (public / "cart.js").write_text("console.log('cart');")
    (tmp_path / "secret.txt").write_text("not public")
    return Settings(
        database_url="mongodb://localhost:27017",
        database_name="WebShopTest",
        public_dir=str(public),
        bcrypt_rounds=4,
    )


@pytest.fixture
def database(settings: Settings) -> Database:
    """Database handle backed by mongomock."""
    return Database(settings.database_url, settings.database_name, client=mongomock.MongoClient())


@pytest.fixture
def client(settings: Settings, database: Database) -> Generator[TestClient, None, None]:
    """Test client for a fresh application."""
    app = create_app(settings, database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin(database: Database) -> dict:
    return insert_user(database, "Admin", "admin@shop.com", "1234567890", "admin")


@pytest.fixture
def customer(database: Database) -> dict:
    return insert_user(database, "Customer", "customer@shop.com", "0987654321", "customer")


@pytest.fixture
def other_customer(database: Database) -> dict:
    return insert_user(database, "Other", "other@shop.com", "abcdefghijk", "customer")


@pytest.fixture
def product_data() -> dict:
    return {
        "name": "Ceramic Mug",
        "description": "12oz matte finish mug",
        "price": 12.5,
        "image": "https://images.example.com/mug.png",
    }


@pytest.fixture
def product(database: Database, product_data: dict) -> dict:
    """A stored product as the API would return it."""
    result = database.collection("product").insert_one(dict(product_data))
    return {"id": str(result.inserted_id), **product_data}


@pytest.fixture
def order_items(product: dict) -> list:
    return [{
        "product": {
            "_id": product["id"],
            "name": product["name"],
            "description": product["description"],
            "price": product["price"],
        },
        "quantity": 2,
    }]
