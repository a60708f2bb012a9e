"""
Tests for demo data seeding.
"""

from auth import authenticate
from conftest import basic_auth
from seed import DEMO_PRODUCTS, seed_database


def test_seeds_empty_database(database):
    result = seed_database(database, "boss@shop.com", "bosspassword")

    assert result == {"products": len(DEMO_PRODUCTS), "admin_created": True}
    assert database.collection("product").count_documents({}) == len(DEMO_PRODUCTS)
    user = authenticate(database, basic_auth("boss@shop.com", "bosspassword")["Authorization"])
    assert user["role"] == "admin"


def test_seeding_twice_changes_nothing(database):
    seed_database(database, "boss@shop.com", "bosspassword")
    assert seed_database(database, "boss@shop.com", "bosspassword") == {"products": 0, "admin_created": False}


def test_keeps_existing_admin(database, admin):
    result = seed_database(database, "boss@shop.com", "bosspassword")
    assert result["admin_created"] is False
    assert database.collection("user").count_documents({}) == 1
