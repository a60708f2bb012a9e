"""
Resource controllers

Each function performs one read or write against the store and returns the
JSON-ready result. Missing rows raise a 404 HTTPException, schema violations
raise ValidationFailed.
"""
import logging
from typing import List, Optional

from bson import ObjectId
from fastapi import HTTPException
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from auth import hash_password, serialize_user
from database import Database
from schemas import Order, Product, RoleUpdate, User, validation_details

logger = logging.getLogger(__name__)


class ValidationFailed(Exception):
    def __init__(self, details: Optional[List[dict]] = None):
        super().__init__("Validation error")
        self.details = details or []


def serialize_doc(doc):
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc = {"id": str(_id), **doc}
    return doc


def _object_id(value: str) -> Optional[ObjectId]:
    if not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def _find_or_404(database: Database, collection: str, item_id: str, detail: str, **extra) -> dict:
    _id = _object_id(item_id)
    doc = database.collection(collection).find_one({"_id": _id, **extra}) if _id else None
    if not doc:
        raise HTTPException(status_code=404, detail=detail)
    return doc


def _validate(model, data):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(validation_details(e))


# ----------------------- Users -----------------------

def list_users(database: Database) -> List[dict]:
    return [serialize_user(u) for u in database.get_documents("user")]


def view_user(database: Database, user_id: str) -> dict:
    return serialize_user(_find_or_404(database, "user", user_id, "User not found"))


def register_user(database: Database, data: dict) -> dict:
    data = {k: v for k, v in data.items() if k != "role"}
    user = _validate(User, data)
    users = database.collection("user")
    if users.find_one({"email": user.email}):
        raise ValidationFailed([{"field": "email", "message": "Email already registered"}])
    doc = user.model_dump(exclude={"password"})
    doc["password_hash"] = hash_password(user.password)
    try:
        result = users.insert_one(doc)
    except DuplicateKeyError:
        raise ValidationFailed([{"field": "email", "message": "Email already registered"}])
    logger.info("Registered user %s", user.email)
    return serialize_user({**doc, "_id": result.inserted_id})


def update_user(database: Database, user_id: str, data: dict) -> dict:
    existing = _find_or_404(database, "user", user_id, "User not found")
    update = _validate(RoleUpdate, {"role": data.get("role")})
    updated = database.collection("user").find_one_and_update(
        {"_id": existing["_id"]},
        {"$set": {"role": update.role}},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Changed role of user %s to %s", user_id, update.role)
    return serialize_user(updated)


def delete_user(database: Database, user_id: str) -> dict:
    existing = _find_or_404(database, "user", user_id, "User not found")
    database.collection("user").delete_one({"_id": existing["_id"]})
    logger.info("Deleted user %s", user_id)
    return serialize_user(existing)


# ----------------------- Products -----------------------

def list_products(database: Database) -> List[dict]:
    return [serialize_doc(p) for p in database.get_documents("product")]


def view_product(database: Database, product_id: str) -> dict:
    return serialize_doc(_find_or_404(database, "product", product_id, "Product not found"))


def register_product(database: Database, data: dict) -> dict:
    product = _validate(Product, data)
    product_id = database.create_document("product", product)
    logger.info("Created product %s", product_id)
    return {"id": product_id, **product.model_dump(exclude_none=True)}


def update_product(database: Database, product_id: str, data: dict) -> dict:
    existing = _find_or_404(database, "product", product_id, "Product not found")
    fields = {k: v for k, v in existing.items() if k != "_id"}
    fields["name"] = data.get("name")
    fields["price"] = data.get("price")
    for key in ("description", "image"):
        # empty values keep the stored field
        if data.get(key):
            fields[key] = data[key]
    product = _validate(Product, fields)
    doc = product.model_dump(exclude_none=True)
    database.collection("product").replace_one({"_id": existing["_id"]}, doc)
    logger.info("Updated product %s", product_id)
    return {"id": str(existing["_id"]), **doc}


def delete_product(database: Database, product_id: str) -> dict:
    existing = _find_or_404(database, "product", product_id, "Product not found")
    database.collection("product").delete_one({"_id": existing["_id"]})
    logger.info("Deleted product %s", product_id)
    return serialize_doc(existing)


# ----------------------- Orders -----------------------

def list_orders(database: Database) -> List[dict]:
    return [serialize_doc(o) for o in database.get_documents("order")]


def list_own_orders(database: Database, customer_id: str) -> List[dict]:
    return [serialize_doc(o) for o in database.get_documents("order", {"customerId": customer_id})]


def view_order(database: Database, order_id: str) -> dict:
    return serialize_doc(_find_or_404(database, "order", order_id, "Order not found"))


def view_own_order(database: Database, order_id: str, customer_id: str) -> dict:
    # someone else's order is reported exactly like a missing one
    return serialize_doc(_find_or_404(database, "order", order_id, "Order not found", customerId=customer_id))


def register_order(database: Database, data: dict, customer_id: str) -> dict:
    order = _validate(Order, {"customerId": customer_id, "items": data.get("items")})
    doc = order.model_dump(by_alias=True, exclude_none=True)
    order_id = database.create_document("order", doc)
    logger.info("Customer %s placed order %s", customer_id, order_id)
    return {"id": order_id, **doc}
